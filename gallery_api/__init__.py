"""Gallery API - image gallery backend with a hosted media store."""

__version__ = "1.0.0"
