"""Desktop launcher for the Stow dashboard."""

__version__ = "0.1.0"
