"""A flip-through family cookbook served with FastAPI."""

__version__ = "0.1.0"
