"""Health check endpoint.

Returns overall service health and the state of the model graph.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends

from src.api.deps import get_graph_query
from src.api.version import API_VERSION
from src.intellisense.query import GraphQuery

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/api/v1/health")
async def health_check(query: GraphQuery = Depends(get_graph_query)) -> dict[str, Any]:
    """Check the health of the service.

    Returns:
        JSON object with overall status and graph statistics:
        {
            "status": "healthy" | "degraded",
            "graph": {"initialized": true, "class_count": 23, ...},
            "version": "0.3.0"
        }
    """
    initialized = query.initialized()
    if not initialized:
        logger.warning("Health check: model graph is not initialized")
    stats = query.store.stats()
    return {
        "status": "healthy" if initialized else "degraded",
        "graph": {
            "initialized": initialized,
            "class_count": stats.class_count,
            "property_count": stats.property_count,
            "enum_count": stats.enum_count,
            "versions": stats.versions,
        },
        "version": API_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
    }
