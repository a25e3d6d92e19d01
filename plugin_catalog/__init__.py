"""plugin-catalog - fuzzy search over the Vendetta plugin catalog."""

__version__ = "0.1.0"
