from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from fastapi import FastAPI

_HTTP_METHODS = {"GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"}


# PUBLIC_INTERFACE
def error_envelope(
    message: str,
    errors: Optional[Iterable[str]] = None,
    error: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the standard body for failed requests.

    Args:
        message: Short description of what failed.
        errors: Field-level validation messages (400 responses).
        error: Underlying error text (500 responses).

    Returns:
        Dict with keys: success (False), message, and errors/error when given.
    """
    body: Dict[str, Any] = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = list(errors)
    if error is not None:
        body["error"] = error
    return body


# PUBLIC_INTERFACE
def available_routes(app: FastAPI) -> List[str]:
    """
    List "METHOD /path" for every documented route, mounted routers included.

    Built from the OpenAPI schema so routes registered through include_router
    are listed however the framework stores them internally.
    """
    listed: List[str] = []
    for path, operations in app.openapi().get("paths", {}).items():
        for method in sorted(operations):
            if method.upper() in _HTTP_METHODS:
                listed.append(f"{method.upper()} {path}")
    return listed
