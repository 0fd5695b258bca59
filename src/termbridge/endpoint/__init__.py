"""JSON-RPC endpoint for termbridge.

Public API:
    Gateway -- Validation, routing and envelopes
    build_gateway -- Wire a Gateway from settings
    create_app -- FastAPI application factory
"""

from termbridge.endpoint.gateway import Gateway, build_gateway

__all__ = ["Gateway", "build_gateway", "create_app"]


def __getattr__(name: str) -> object:
    """Lazy import for the HTTP server, which pulls in FastAPI and uvicorn."""
    if name == "create_app":
        from termbridge.endpoint.server import create_app
        return create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
