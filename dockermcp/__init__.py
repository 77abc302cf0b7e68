"""Model Context Protocol server for managing Docker containers, images and builds."""

__version__ = "0.1.0"

__all__ = ["__version__"]