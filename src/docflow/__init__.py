"""docflow - document upload, text extraction and comparison backend."""

__version__ = "0.1.0"
