"""Request context, routing engine, sessions, handler wrappers and middlewares."""

__version__ = "0.1.0"
__all__ = [
    "context",
    "crawlerdetect",
    "errors",
    "jwt_options",
    "middlewares",
    "session",
    "wrapper",
]