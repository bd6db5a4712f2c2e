"""Court availability and reservation engine."""

__version__ = "0.1.0"
