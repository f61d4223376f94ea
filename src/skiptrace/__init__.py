"""skiptrace: entity extraction, confidence scoring, and deduplication for skip tracing."""

__version__ = "0.1.0"
