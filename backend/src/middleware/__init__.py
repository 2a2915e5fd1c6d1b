"""Preflight request tracing middleware."""

from src.middleware.performance import RequestIDMiddleware, RequestTimingMiddleware

__all__ = ["RequestIDMiddleware", "RequestTimingMiddleware"]
