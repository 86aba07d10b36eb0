"""Gas cylinder fuel monitoring: ingestion, outlier correction and consumption analytics."""

__version__ = "1.0.0"
