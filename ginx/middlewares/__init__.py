"""Access log, crawler detection, rate limit and active-request limit middlewares."""

__all__ = ["accesslog", "activelimit", "crawlerdetect", "ratelimit"]