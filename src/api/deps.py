"""Shared FastAPI dependencies.

Provides the model graph query dependency used by all route files.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from src.intellisense.query import GraphQuery


def get_graph_query(request: Request) -> GraphQuery:
    """Get the model graph query from app state.

    The graph is built once in the application lifespan and shared by
    every request; it is never mutated afterwards.
    """
    return request.app.state.graph_query


def require_initialized_graph(request: Request) -> GraphQuery:
    """Like ``get_graph_query`` but fails with 503 when no definitions are loaded."""
    query = get_graph_query(request)
    if not query.initialized():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Model definitions are not loaded",
        )
    return query
