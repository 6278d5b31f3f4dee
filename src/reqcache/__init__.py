"""In-process TTL cache, memoization and request validation for FastAPI services."""

__version__ = "0.1.0"
