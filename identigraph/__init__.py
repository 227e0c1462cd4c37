"""identigraph: connectivity analytics and label maintenance for identity graphs."""

__version__ = "0.1.0"
