"""Session-scoped zone resolution and caching."""
