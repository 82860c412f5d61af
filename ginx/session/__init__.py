"""Session interfaces, in-memory and Redis sessions, and default-provider helpers."""

__all__ = ["builder", "redis_session", "types"]