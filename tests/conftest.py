"""Shared test fixtures for the TwinLint test suite.

Provides the model graph built from the shipped definitions, sample model
documents and a FastAPI test client with the graph preloaded on app state.
"""

from __future__ import annotations

import copy
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from src.intellisense.builder import GraphBuilder, load_graph
from src.intellisense.query import GraphQuery
from src.intellisense.store import GraphStore

DEFINITIONS_DIR = Path(__file__).resolve().parent.parent / "src" / "intellisense" / "definitions"

CONTEXT_V1 = "http://azureiot.com/v1/contexts/IoTModel.json"
CONTEXT_V2 = "http://azureiot.com/v2/contexts/IoTModel.json"

_INTERFACE: dict[str, Any] = {
    "@id": "urn:example:thermostat:1",
    "@type": "Interface",
    "@context": CONTEXT_V1,
    "displayName": {"en": "Thermostat"},
    "contents": [
        {
            "@type": "Telemetry",
            "name": "temp",
            "schema": "double",
            "unit": "degreeCelsius",
        },
        {
            "@type": "Property",
            "name": "targetTemp",
            "schema": "double",
            "writable": True,
        },
        {
            "@type": "Command",
            "name": "reboot",
            "commandType": "synchronous",
            "request": {"name": "delay", "schema": "integer"},
        },
    ],
}

_CAPABILITY_MODEL: dict[str, Any] = {
    "@id": "urn:example:thermostat_device:1",
    "@type": "CapabilityModel",
    "@context": CONTEXT_V1,
    "implements": [
        {"name": "thermostat", "schema": "urn:example:thermostat:1"},
    ],
}


@pytest.fixture
def definitions_dir() -> Path:
    return DEFINITIONS_DIR


@pytest.fixture
def graph_store(definitions_dir: Path) -> GraphStore:
    """Model graph built from the shipped definition documents."""
    return load_graph(definitions_dir)


@pytest.fixture
def graph_query(graph_store: GraphStore) -> GraphQuery:
    return GraphQuery(graph_store)


@pytest.fixture
def interface_document() -> dict[str, Any]:
    """A valid version 1 interface; each test gets its own copy."""
    return copy.deepcopy(_INTERFACE)


@pytest.fixture
def capability_model_document() -> dict[str, Any]:
    """A valid version 1 capability model; each test gets its own copy."""
    return copy.deepcopy(_CAPABILITY_MODEL)


@pytest.fixture
async def test_app(graph_query: GraphQuery) -> AsyncGenerator[Any, None]:
    """Create a test FastAPI application with the graph preloaded.

    The lifespan is skipped; instead, we manually set app.state.
    """
    from fastapi import FastAPI
    from fastapi.middleware.cors import CORSMiddleware

    from src.api.middleware.security import RequestIDMiddleware, SecurityHeadersMiddleware
    from src.api.routes import health, models

    @asynccontextmanager
    async def test_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        yield

    app = FastAPI(lifespan=test_lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(health.router)
    app.include_router(models.router)

    app.state.graph_query = graph_query

    yield app


@pytest.fixture
async def client(test_app: Any) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP test client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ── Minimal definition set ───────────────────────────────────────

MINI_VOCABULARY = "http://example.com/classes/"
MINI_CONTEXT_V1 = "http://example.com/v1"

_RDF_TYPE = "http://www.w3.org/1999/02/22-rdf-syntax-ns#type"
_RDFS_CLASS = "http://www.w3.org/2000/01/rdf-schema#Class"
_RDF_PROPERTY = "http://www.w3.org/1999/02/22-rdf-syntax-ns#Property"
_RDFS = "http://www.w3.org/2000/01/rdf-schema#"
_XSD_STRING = "http://www.w3.org/2001/XMLSchema#string"


def _make_edge(source: str, target: str, label: str) -> dict[str, Any]:
    """Build one edge of an edge-list document.

    Short ``source``/``target`` names are prefixed with the mini vocabulary;
    ``label`` is an rdf/rdfs predicate name such as ``"domain"``.
    """
    predicate = _RDF_TYPE if label == "type" else _RDFS + label
    target_id = target if target.startswith("http") else MINI_VOCABULARY + target
    return {
        "SourceNode": {"Id": MINI_VOCABULARY + source},
        "TargetNode": {"Id": target_id},
        "Label": predicate,
    }


@pytest.fixture
def mini_definitions() -> tuple[dict[str, Any], dict[str, Any], dict[str, Any]]:
    """A tiny vocabulary: an Interface holding a required list of named Items.

    Returns fresh (context, constraint, graph) documents that tests may edit
    before building.
    """
    context = {
        "@context": {
            "@vocab": MINI_VOCABULARY,
            "Entity": "Entity",
            "Interface": "Interface",
            "CapabilityModel": "CapabilityModel",
            "Item": "Item",
            "Color": "Color",
            "A": "Color/A",
            "B": "Color/B",
            "name": "name",
            "color": "color",
            "items": {"@id": "items", "@container": "@list"},
        }
    }
    constraint = {
        "@context": {"v1": MINI_CONTEXT_V1},
        "Interface": {"required": ["@type", "@context", "items"]},
        "Item": {"required": ["name"]},
    }
    edges = [
        _make_edge("Entity", _RDFS_CLASS, "type"),
        _make_edge("Interface", _RDFS_CLASS, "type"),
        _make_edge("CapabilityModel", _RDFS_CLASS, "type"),
        _make_edge("Item", _RDFS_CLASS, "type"),
        _make_edge("Color", _RDFS_CLASS, "type"),
        _make_edge("name", _RDF_PROPERTY, "type"),
        _make_edge("color", _RDF_PROPERTY, "type"),
        _make_edge("items", _RDF_PROPERTY, "type"),
        _make_edge("Color/A", "Color", "type"),
        _make_edge("Color/B", "Color", "type"),
        _make_edge("Interface", "Entity", "subClassOf"),
        _make_edge("CapabilityModel", "Entity", "subClassOf"),
        _make_edge("Item", "Entity", "subClassOf"),
        _make_edge("items", "Interface", "domain"),
        _make_edge("name", "Item", "domain"),
        _make_edge("color", "Item", "domain"),
        _make_edge("items", "Item", "range"),
        _make_edge("name", _XSD_STRING, "range"),
        _make_edge("color", "Color", "range"),
    ]
    return context, constraint, {"Edges": edges}


@pytest.fixture
def make_edge() -> Any:
    """Edge factory for tests that extend the minimal definition set."""
    return _make_edge


@pytest.fixture
def mini_query(mini_definitions: tuple[dict[str, Any], dict[str, Any], dict[str, Any]]) -> GraphQuery:
    """Query over the minimal definition set, built unchanged."""
    return GraphQuery(GraphBuilder().build(*mini_definitions))
