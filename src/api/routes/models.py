"""Model document API routes.

Provides endpoints for validating Digital Twin model documents and for
inspecting the classes and properties of the loaded model graph.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.deps import get_graph_query, require_initialized_graph
from src.api.schemas.models import (
    ClassResponse,
    ProblemResponse,
    PropertyResponse,
    ValidateRequest,
    ValidateResponse,
)
from src.intellisense.json_tree import tree_from_value
from src.intellisense.query import GraphQuery
from src.intellisense.validator import resolve_document_version, validate_document

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/models", tags=["models"])


@router.post("/validate", response_model=ValidateResponse)
async def validate_model(
    payload: ValidateRequest,
    query: GraphQuery = Depends(require_initialized_graph),
) -> ValidateResponse:
    """Validate a decoded model document.

    Problem offsets refer to the canonical text returned alongside them.
    A document without a recognised ``@context`` has version 0 and no
    problems.
    """
    root, text = tree_from_value(payload.document)
    version = resolve_document_version(query, root)
    problems = validate_document(query, root)
    logger.info("Validated model document (version %d): %d problem(s)", version, len(problems))
    return ValidateResponse(
        version=version,
        text=text,
        problems=[ProblemResponse(offset=p.offset, length=p.length, message=p.message) for p in problems],
    )


@router.get("/classes/{name}", response_model=ClassResponse)
async def get_model_class(
    name: str,
    version: int = Query(default=1, ge=1),
    query: GraphQuery = Depends(get_graph_query),
) -> ClassResponse:
    """Return a class with its version-filtered properties and children."""
    class_node = query.get_class_node(name)
    if class_node is None or not query.is_available_by_version(class_node.version, version):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Class {name} not found at version {version}",
        )
    properties = query.get_properties_of_class_by_version(class_node, version)
    children = query.get_children_of_class_by_version(class_node, version)
    required = class_node.constraint.required if class_node.constraint and class_node.constraint.required else []
    return ClassResponse(
        id=class_node.id,
        label=class_node.label,
        is_abstract=class_node.is_abstract,
        is_object=query.is_object_class(class_node),
        properties=[p.label or p.id for p in properties],
        children=[query.get_class_type(c) for c in children],
        enums=list(class_node.enums or []),
        required=list(required),
    )


@router.get("/properties/{name}", response_model=PropertyResponse)
async def get_model_property(
    name: str,
    version: int = Query(default=1, ge=1),
    query: GraphQuery = Depends(get_graph_query),
) -> PropertyResponse:
    """Return a property with the value types it accepts at ``version``."""
    property_node = query.get_property_node(name)
    if property_node is None or not query.is_available_by_version(property_node.version, version):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Property {name} not found at version {version}",
        )
    return PropertyResponse(
        id=property_node.id,
        label=property_node.label,
        is_array=property_node.is_array,
        comment=property_node.comment,
        valid_types=query.get_valid_types(property_node, version),
        object_classes=[query.get_class_type(c) for c in query.get_object_classes(property_node, version)],
        enums=query.get_enums(property_node, version),
    )
