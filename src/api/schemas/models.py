"""Pydantic schemas for model validation and graph queries."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ValidateRequest(BaseModel):
    """Request body for validating a model document."""

    document: Any = Field(..., description="Decoded JSON model document")


class ProblemResponse(BaseModel):
    """A diagnostic problem; offsets refer to ``ValidateResponse.text``."""

    offset: int
    length: int
    message: str


class ValidateResponse(BaseModel):
    """Result of validating a model document."""

    version: int = Field(..., description="Version resolved from @context, 0 when not a model document")
    text: str = Field(..., description="Canonical rendering of the document")
    problems: list[ProblemResponse]


class ClassResponse(BaseModel):
    """A class of the model graph as seen at one version."""

    id: str
    label: str | None = None
    is_abstract: bool = False
    is_object: bool = False
    properties: list[str] = Field(default_factory=list)
    children: list[str] = Field(default_factory=list)
    enums: list[str] = Field(default_factory=list)
    required: list[str] = Field(default_factory=list)


class PropertyResponse(BaseModel):
    """A property of the model graph as seen at one version."""

    id: str
    label: str | None = None
    is_array: bool = False
    comment: str | None = None
    valid_types: list[str] = Field(default_factory=list)
    object_classes: list[str] = Field(default_factory=list)
    enums: list[str] = Field(default_factory=list)
