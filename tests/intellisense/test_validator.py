"""Tests for model document validation."""

from __future__ import annotations

from typing import Any

import pytest

from src.intellisense.builder import GraphBuilder
from src.intellisense.json_tree import tree_from_value
from src.intellisense.nodes import PropertyNode
from src.intellisense.query import GraphQuery
from src.intellisense.store import GraphStore
from src.intellisense.validator import (
    DiagnosticValidator,
    Problem,
    resolve_document_version,
    validate_document,
    validate_node,
)

CONTEXT_V1 = "http://azureiot.com/v1/contexts/IoTModel.json"
CONTEXT_V2 = "http://azureiot.com/v2/contexts/IoTModel.json"
MINI_CONTEXT_V1 = "http://example.com/v1"

PRIMITIVE_SCHEMAS = "boolean\ndouble\nfloat\ninteger\nlong\nstring"


def _validate(query: GraphQuery, document: Any) -> tuple[list[Problem], str]:
    root, text = tree_from_value(document)
    return validate_document(query, root), text


def _telemetry(document: dict[str, Any]) -> dict[str, Any]:
    return document["contents"][0]


class TestValidDocuments:
    def test_interface_has_no_problems(self, graph_query: GraphQuery, interface_document: dict) -> None:
        problems, _ = _validate(graph_query, interface_document)
        assert problems == []

    def test_capability_model_has_no_problems(self, graph_query: GraphQuery, capability_model_document: dict) -> None:
        problems, _ = _validate(graph_query, capability_model_document)
        assert problems == []

    def test_inline_interface_does_not_need_context(
        self, graph_query: GraphQuery, capability_model_document: dict
    ) -> None:
        capability_model_document["implements"][0]["schema"] = {
            "@id": "urn:example:inline:1",
            "@type": "Interface",
            "contents": [{"@type": "Telemetry", "name": "humidity", "schema": "float"}],
        }
        problems, _ = _validate(graph_query, capability_model_document)
        assert problems == []

    def test_integral_float_is_accepted_as_integer(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["schema"] = {
            "@type": "Enum",
            "enumValues": [
                {"name": "on", "enumValue": 1},
                {"name": "off", "enumValue": 2.0},
            ],
        }
        problems, _ = _validate(graph_query, interface_document)
        assert problems == []

    def test_null_values_are_ignored(self, graph_query: GraphQuery, interface_document: dict) -> None:
        interface_document["comment"] = None
        problems, _ = _validate(graph_query, interface_document)
        assert problems == []


class TestDocumentVersion:
    def test_no_context_is_not_a_model_document(self, graph_query: GraphQuery, interface_document: dict) -> None:
        del interface_document["@context"]
        interface_document["unexpected"] = True
        problems, _ = _validate(graph_query, interface_document)
        assert problems == []

    def test_unknown_context_is_not_a_model_document(self, graph_query: GraphQuery, interface_document: dict) -> None:
        interface_document["@context"] = "http://example.com/other.json"
        interface_document["unexpected"] = True
        problems, _ = _validate(graph_query, interface_document)
        assert problems == []

    def test_version_from_context_string(self, graph_query: GraphQuery) -> None:
        root, _ = tree_from_value({"@context": CONTEXT_V2})
        assert resolve_document_version(graph_query, root) == 2

    def test_first_recognised_context_in_array_wins(self, graph_query: GraphQuery) -> None:
        root, _ = tree_from_value({"@context": ["http://example.com/other.json", CONTEXT_V1, CONTEXT_V2]})
        assert resolve_document_version(graph_query, root) == 1

    def test_non_object_root_has_no_version(self, graph_query: GraphQuery) -> None:
        root, _ = tree_from_value([CONTEXT_V1])
        assert resolve_document_version(graph_query, root) == 0

    def test_uninitialized_graph_yields_no_problems(self, interface_document: dict) -> None:
        interface_document["unexpected"] = True
        problems, _ = _validate(GraphQuery(GraphStore()), interface_document)
        assert problems == []

    def test_property_removed_in_later_version_is_unexpected(
        self, graph_query: GraphQuery, interface_document: dict
    ) -> None:
        interface_document["@context"] = CONTEXT_V2
        problems, text = _validate(graph_query, interface_document)
        assert problems == [Problem(text.index('"commandType"'), len('"commandType"'), "commandType is unexpected.")]

    def test_property_added_in_later_version(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["displayUnit"] = "C"
        problems, _ = _validate(graph_query, interface_document)
        assert [p.message for p in problems] == ["displayUnit is unexpected."]

        del interface_document["contents"][2]["commandType"]
        interface_document["@context"] = CONTEXT_V2
        problems, _ = _validate(graph_query, interface_document)
        assert problems == []

    def test_nested_context_must_match_document_version(
        self, graph_query: GraphQuery, capability_model_document: dict
    ) -> None:
        capability_model_document["implements"][0]["schema"] = {
            "@id": "urn:example:inline:1",
            "@type": "Interface",
            "@context": CONTEXT_V2,
        }
        problems, text = _validate(graph_query, capability_model_document)
        offset = text.index(f'"{CONTEXT_V2}"')
        assert problems == [Problem(offset, len(CONTEXT_V2) + 2, "Invalid context of DigitalTwin.")]

    def test_empty_nested_context_is_reported_once(
        self, graph_query: GraphQuery, capability_model_document: dict
    ) -> None:
        capability_model_document["implements"][0]["schema"] = {
            "@id": "urn:example:inline:1",
            "@type": "Interface",
            "@context": [],
        }
        problems, text = _validate(graph_query, capability_model_document)
        assert problems == [Problem(text.index("[]"), 2, "Invalid context of DigitalTwin.")]


class TestObjectValidation:
    def test_missing_required_property(self, graph_query: GraphQuery, interface_document: dict) -> None:
        del interface_document["@id"]
        problems, _ = _validate(graph_query, interface_document)
        assert problems == [Problem(0, 0, "Missing required properties:\n@id")]

    def test_unexpected_property(self, graph_query: GraphQuery, interface_document: dict) -> None:
        interface_document["foo"] = 1
        problems, text = _validate(graph_query, interface_document)
        assert problems == [Problem(text.index('"foo"'), 5, "foo is unexpected.")]

    def test_context_is_unexpected_in_nested_object(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["@context"] = CONTEXT_V1
        problems, _ = _validate(graph_query, interface_document)
        assert [p.message for p in problems] == ["@context is unexpected."]

    def test_missing_type_with_several_candidates(self, graph_query: GraphQuery, interface_document: dict) -> None:
        del _telemetry(interface_document)["@type"]
        problems, text = _validate(graph_query, interface_document)
        offset = text.index("[") + 1
        assert problems == [Problem(offset, 0, "@type is missing.")]

    def test_single_candidate_needs_no_type(self, graph_query: GraphQuery, interface_document: dict) -> None:
        # request has CommandPayload as its only candidate
        assert "@type" not in interface_document["contents"][2]["request"]
        problems, _ = _validate(graph_query, interface_document)
        assert not any(p.message == "@type is missing." for p in problems)

    def test_invalid_type_lists_candidates_of_version(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["@type"] = "Sensor"
        problems, text = _validate(graph_query, interface_document)
        assert problems == [
            Problem(text.index('"Sensor"'), 8, "Invalid type. Valid types:\nTelemetry\nProperty\nCommand"),
        ]

        interface_document["@context"] = CONTEXT_V2
        del interface_document["contents"][2]["commandType"]
        problems, _ = _validate(graph_query, interface_document)
        assert [p.message for p in problems] == ["Invalid type. Valid types:\nTelemetry\nProperty\nCommand\nComponent"]

    def test_object_not_expected(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["name"] = {"first": "temp"}
        problems, _ = _validate(graph_query, interface_document)
        assert [p.message for p in problems] == ["Object is not expected."]

    def test_empty_object_with_several_candidates(self, graph_query: GraphQuery, interface_document: dict) -> None:
        interface_document["contents"].append({})
        problems, text = _validate(graph_query, interface_document)
        assert problems == [Problem(text.index("{}"), 0, "Object is empty.")]

    def test_empty_object_of_settled_class_reports_required(
        self, graph_query: GraphQuery, interface_document: dict
    ) -> None:
        interface_document["contents"][2]["request"] = {}
        problems, text = _validate(graph_query, interface_document)
        assert problems == [Problem(text.index("{}"), 0, "Missing required properties:\nname\nschema")]


class TestMultiType:
    def test_semantic_type_is_accepted(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["@type"] = ["Telemetry", "Temperature"]
        problems, _ = _validate(graph_query, interface_document)
        assert problems == []

    def test_semantic_type_respects_version(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["@type"] = ["Telemetry", "Humidity"]
        problems, text = _validate(graph_query, interface_document)
        assert len(problems) == 1
        assert problems[0].offset == text.index('"Humidity"')
        assert problems[0].message.startswith("Invalid type. Valid types:")

        interface_document["@context"] = CONTEXT_V2
        del interface_document["contents"][2]["commandType"]
        problems, _ = _validate(graph_query, interface_document)
        assert problems == []

    def test_conflicting_types(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["@type"] = ["Telemetry", "Property"]
        problems, text = _validate(graph_query, interface_document)
        array_text = '["Telemetry", "Property"]'
        assert problems == [
            Problem(text.index(array_text), len(array_text), "Conflict type: Telemetry and Property"),
        ]

    def test_duplicated_type(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["@type"] = ["Telemetry", "Telemetry"]
        problems, text = _validate(graph_query, interface_document)
        offset = text.index('["Telemetry", "Telemetry"]') + len('["Telemetry", ')
        assert problems == [Problem(offset, len('"Telemetry"'), "Telemetry is duplicated in @type.")]

    def test_semantic_type_alone_names_no_candidate(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["@type"] = ["Temperature"]
        problems, text = _validate(graph_query, interface_document)
        assert len(problems) == 1
        assert problems[0].offset == text.index('["Temperature"]')
        assert problems[0].message.startswith("Invalid type. Valid types:")

    def test_non_string_type_element(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["@type"] = ["Telemetry", 3]
        problems, text = _validate(graph_query, interface_document)
        assert len(problems) == 1
        assert problems[0].offset == text.index('["Telemetry", 3]') + len('["Telemetry", ')


class TestArrayValidation:
    def test_empty_optional_array(self, graph_query: GraphQuery, interface_document: dict) -> None:
        interface_document["contents"] = []
        problems, text = _validate(graph_query, interface_document)
        assert problems == [Problem(text.index("[]"), 0, "Array is empty.")]

    def test_empty_required_array_is_reported_once(
        self, graph_query: GraphQuery, capability_model_document: dict
    ) -> None:
        capability_model_document["implements"] = []
        problems, text = _validate(graph_query, capability_model_document)
        assert problems == [Problem(text.index("[]"), 0, "implements cannot be empty.")]

    def test_array_for_single_value(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["name"] = ["temp"]
        problems, _ = _validate(graph_query, interface_document)
        assert [p.message for p in problems] == ["Invalid type. Valid types:\nstring"]

    def test_empty_array_for_required_single_value(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["name"] = []
        problems, text = _validate(graph_query, interface_document)
        offset = text.index('"name": []') + len('"name": ')
        assert problems == [
            Problem(offset, 2, "Invalid type. Valid types:\nstring"),
            Problem(offset, 0, "name cannot be empty."),
        ]

    def test_too_many_items(self, graph_query: GraphQuery, capability_model_document: dict) -> None:
        capability_model_document["implements"] = [
            {"name": f"instance{i}", "schema": f"urn:example:thermostat:{i}"} for i in range(31)
        ]
        problems, text = _validate(graph_query, capability_model_document)
        offset = text.index("[", text.index('"implements"'))
        assert problems == [Problem(offset, 0, "Array has too many items. Maximum count is 30.")]

    def test_duplicate_names(self, graph_query: GraphQuery, interface_document: dict) -> None:
        interface_document["contents"][1]["name"] = "temp"
        problems, text = _validate(graph_query, interface_document)
        second = text.index('"temp"', text.index('"temp"') + 1)
        assert problems == [Problem(second, len('"temp"'), "temp has been assigned to another item.")]


class TestScalarValidation:
    @pytest.mark.parametrize(
        ("name", "message"),
        [
            ("", "String is empty."),
            ("1temp", "String does not match the pattern of ^[a-zA-Z_][a-zA-Z0-9_]*$."),
            ("a" * 65, "String is longer than the maximum length of 64."),
        ],
    )
    def test_string_constraints(
        self, graph_query: GraphQuery, interface_document: dict, name: str, message: str
    ) -> None:
        _telemetry(interface_document)["name"] = name
        problems, text = _validate(graph_query, interface_document)
        assert problems == [Problem(text.index(f'"{name}"'), len(name) + 2, message)]

    def test_id_pattern(self, graph_query: GraphQuery, interface_document: dict) -> None:
        interface_document["@id"] = "thermostat"
        problems, _ = _validate(graph_query, interface_document)
        assert [p.message for p in problems] == [
            "String does not match the pattern of ^urn:[a-zA-Z_][a-zA-Z0-9_:]*:[0-9]+$.",
        ]

    def test_invalid_enum_value(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["schema"] = "decimal"
        problems, text = _validate(graph_query, interface_document)
        assert problems == [
            Problem(text.index('"decimal"'), 9, f"Invalid value. Valid values:\n{PRIMITIVE_SCHEMAS}"),
        ]

    def test_enum_values_of_abstract_range(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["unit"] = "meter"
        problems, _ = _validate(graph_query, interface_document)
        assert [p.message for p in problems] == [
            "Invalid value. Valid values:\ndegreeCelsius\ndegreeFahrenheit\nkelvin\nsecond\nminute\nhour",
        ]

    def test_string_for_boolean(self, graph_query: GraphQuery, interface_document: dict) -> None:
        interface_document["contents"][1]["writable"] = "yes"
        problems, _ = _validate(graph_query, interface_document)
        assert [p.message for p in problems] == ["Invalid type. Valid types:\nboolean"]

    def test_boolean_for_string(self, graph_query: GraphQuery, interface_document: dict) -> None:
        _telemetry(interface_document)["name"] = True
        problems, _ = _validate(graph_query, interface_document)
        assert [p.message for p in problems] == ["Invalid type. Valid types:\nstring"]

    @pytest.mark.parametrize("value", [1.5, True])
    def test_non_integer_enum_value(self, graph_query: GraphQuery, interface_document: dict, value: Any) -> None:
        _telemetry(interface_document)["schema"] = {
            "@type": "Enum",
            "enumValues": [{"name": "on", "enumValue": value}],
        }
        problems, _ = _validate(graph_query, interface_document)
        assert [p.message for p in problems] == ["Invalid type. Valid types:\ninteger"]


class TestLanguageMap:
    def test_unknown_language_code(self, graph_query: GraphQuery, interface_document: dict) -> None:
        interface_document["displayName"] = {"en": "Thermostat", "xx": "Thermostat"}
        problems, text = _validate(graph_query, interface_document)
        assert problems == [Problem(text.index('"xx"'), 4, "xx is unexpected.")]

    def test_regional_code_is_accepted(self, graph_query: GraphQuery, interface_document: dict) -> None:
        interface_document["description"] = {"en-US": "Reports temperature", "zh-CN": "温度"}
        problems, _ = _validate(graph_query, interface_document)
        assert problems == []

    def test_value_must_be_string(self, graph_query: GraphQuery, interface_document: dict) -> None:
        interface_document["displayName"] = {"en": 1}
        problems, _ = _validate(graph_query, interface_document)
        assert [p.message for p in problems] == ["Value is not string."]

    def test_value_uses_property_constraint(self, graph_query: GraphQuery, interface_document: dict) -> None:
        interface_document["displayName"] = {"en": "T" * 65}
        problems, _ = _validate(graph_query, interface_document)
        assert [p.message for p in problems] == ["String is longer than the maximum length of 64."]


class TestMinimalVocabulary:
    """Rules exercised on a hand-built vocabulary."""

    def _required_items_query(self, mini_definitions: tuple) -> GraphQuery:
        context, constraint, graph = mini_definitions
        constraint["Interface"] = {"required": ["items"]}
        return GraphQuery(GraphBuilder().build(context, constraint, graph))

    def _holder(self, query: GraphQuery) -> PropertyNode:
        interface = query.get_class_node("Interface")
        assert interface is not None
        return PropertyNode(id="holder", range=[interface])

    def test_required_empty_array_yields_only_cannot_be_empty(self, mini_definitions: tuple) -> None:
        query = self._required_items_query(mini_definitions)
        root, text = tree_from_value({"items": []})
        problems = validate_node(query, root, self._holder(query), 1)
        assert problems == [Problem(text.index("[]"), 0, "items cannot be empty.")]

    def test_empty_object_yields_missing_required(self, mini_definitions: tuple) -> None:
        query = self._required_items_query(mini_definitions)
        root, _ = tree_from_value({})
        problems = validate_node(query, root, self._holder(query), 1)
        assert problems == [Problem(0, 0, "Missing required properties:\nitems")]

    def test_enum_round_trip(self, mini_query: GraphQuery) -> None:
        color = mini_query.get_property_node("color")
        assert color is not None

        root, _ = tree_from_value("B")
        assert validate_node(mini_query, root, color, 1) == []

        root, _ = tree_from_value("C")
        problems = validate_node(mini_query, root, color, 1)
        assert problems == [Problem(0, 3, "Invalid value. Valid values:\nA\nB")]

    def test_duplicate_name_located_at_second_value(self, mini_query: GraphQuery) -> None:
        document = {"@context": MINI_CONTEXT_V1, "@type": "Interface", "items": [{"name": "x"}, {"name": "x"}]}
        problems, text = _validate(mini_query, document)
        assert problems == [Problem(text.rindex('"x"'), 3, "x has been assigned to another item.")]


class TestIdempotence:
    def test_same_document_same_problems(self, graph_query: GraphQuery, interface_document: dict) -> None:
        interface_document["foo"] = 1
        _telemetry(interface_document)["@type"] = ["Telemetry", "Telemetry"]
        interface_document["contents"][1]["name"] = "temp"
        root, _ = tree_from_value(interface_document)

        first = validate_document(graph_query, root)
        second = validate_document(graph_query, root)

        assert len(first) == 3
        assert first == second

    def test_validator_instance_collects_one_pass(self, graph_query: GraphQuery) -> None:
        entry = graph_query.get_entry_node()
        assert entry is not None
        root, _ = tree_from_value({"@type": "Interface"})
        validator = DiagnosticValidator(graph_query, 1)
        assert validator.validate(root, entry) == [Problem(0, 0, "Missing required properties:\n@id\n@context")]
