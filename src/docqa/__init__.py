"""docqa — upload documents, ask questions, get answers grounded in them."""

__version__ = "0.1.0"
