"""Dependency injection for FastAPI endpoints"""

from fastapi import Header, HTTPException, Request


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """
    Caller identity forwarded by the upstream auth gateway.

    Raises 401 when the gateway did not attach a user.
    """
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id.strip()
