"""Sound effects for keyboard and mouse events, configured from a JSON file."""

__version__ = "0.1.0"
__all__ = ["__version__"]