"""Fleet equipment-activity KPI engine (PA, UA, rankings, trends, operators)."""

from .kpi import compute_all
from .operators import compute_operator_metrics, rank_operators

__version__ = "0.1.0"

__all__ = ["compute_all", "compute_operator_metrics", "rank_operators", "__version__"]
