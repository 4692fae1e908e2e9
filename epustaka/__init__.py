"""E-Pustaka: school library catalog, circulation and reporting."""

__version__ = "1.0.0"
