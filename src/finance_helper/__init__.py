"""Personal finance statement ingestion and classification pipeline."""

__version__ = "0.1.0"
