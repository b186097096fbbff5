# src/gipfladder/middleware/__init__.py

"""Middleware components for the GIPF Ladder API."""

from .logging import REQUEST_ID_HEADER, RequestLoggingMiddleware

__all__ = ["REQUEST_ID_HEADER", "RequestLoggingMiddleware"]
