"""Email one-time code step for multi-step authentication flows."""

__version__ = "1.0.0"
