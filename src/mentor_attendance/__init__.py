"""Session numbering, missing-attendance detection and backfill checks for mentor programs."""

__version__ = "0.1.0"
