"""Setup configuration for fleetkpi"""

from setuptools import setup, find_packages

setup(
    name="fleet-kpi-engine",
    version="0.1.0",
    description=(
        "Fleet equipment-activity KPI engine: physical availability, "
        "utilization availability, vehicle and operator rankings."
    ),
    author="Fleet KPI Engine Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "openpyxl>=3.1",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "fleet-kpi=fleetkpi.main:main",
        ],
    },
)
