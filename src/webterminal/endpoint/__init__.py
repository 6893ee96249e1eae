"""Terminal endpoint module for webterminal.

Hosts the FastAPI application: the terminal WebSocket, whose messages
are driven by one ConnectionHandler per connection, and the REST routes
over the history store.

Public API:
    ConnectionHandler -- Per-connection protocol state machine
    create_app -- FastAPI application factory
"""

from webterminal.endpoint.handler import ConnectionHandler, ConnectionState

__all__ = ["ConnectionHandler", "ConnectionState", "create_app"]


def __getattr__(name: str) -> object:
    """Lazy import for the app factory, which pulls in FastAPI and uvicorn."""
    if name == "create_app":
        from webterminal.endpoint.server import create_app
        return create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
