"""docreview - two-stage document review and sealing backend."""

__version__ = "0.1.0"
