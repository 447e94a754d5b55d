"""NewsData.io aggregation backend: scheduled ingestion into a local article store."""

__version__ = "0.1.0"
