"""FileBox — per-user file catalog client for Firebase Storage."""

__version__ = "0.1.0"
