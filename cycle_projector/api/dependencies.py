"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from fastapi import Request


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_now() -> datetime:
    """Point in time projections are made against; overridden in tests"""
    return datetime.now()
