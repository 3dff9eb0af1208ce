"""Session, zone resolution and caching layer for the praise night admin tool."""

__version__ = "0.4.0"
