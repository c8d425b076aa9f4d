"""Tests for the tool catalog, argument validation and dispatch."""

import json
from unittest.mock import MagicMock

from tools import TOOLS, TOOL_REGISTRY, execute_tool, get_tool_definition, parse_arguments
from tests.conftest import GATEWAY_ARGS


def test_catalog_has_single_strict_descriptor():
    assert len(TOOLS) == 1
    tool = TOOLS[0]
    assert tool["type"] == "function"
    function = tool["function"]
    assert function["name"] == "create_api_gateway"
    assert function["strict"] is True

    parameters = function["parameters"]
    assert parameters["additionalProperties"] is False
    assert sorted(parameters["required"]) == sorted(parameters["properties"])
    assert set(parameters["required"]) == {"project_id", "gateway_id", "region", "openapi_spec_url"}
    assert all(p["type"] == "string" for p in parameters["properties"].values())


def test_every_descriptor_has_a_handler():
    assert {t["function"]["name"] for t in TOOLS} == set(TOOL_REGISTRY)


def test_get_tool_definition_unknown():
    assert get_tool_definition("delete_everything") is None


def test_parse_valid_arguments():
    arguments, problem = parse_arguments("create_api_gateway", json.dumps(GATEWAY_ARGS))
    assert problem is None
    assert arguments == GATEWAY_ARGS


def test_parse_invalid_json():
    arguments, problem = parse_arguments("create_api_gateway", "{not json")
    assert arguments is None
    assert problem.startswith("Invalid arguments for create_api_gateway")


def test_parse_non_object():
    _, problem = parse_arguments("create_api_gateway", '["acme"]')
    assert problem == "Invalid arguments for create_api_gateway: expected a JSON object"


def test_parse_missing_required():
    args = dict(GATEWAY_ARGS)
    del args["region"]
    _, problem = parse_arguments("create_api_gateway", json.dumps(args))
    assert problem == "Missing required arguments for create_api_gateway: region"


def test_parse_rejects_unlisted_fields():
    args = dict(GATEWAY_ARGS, labels="prod")
    _, problem = parse_arguments("create_api_gateway", json.dumps(args))
    assert problem == "Unexpected arguments for create_api_gateway: labels"


def test_parse_rejects_non_string_values():
    args = dict(GATEWAY_ARGS, region=42)
    _, problem = parse_arguments("create_api_gateway", json.dumps(args))
    assert problem == "Argument 'region' for create_api_gateway must be a string"


def test_execute_unknown_tool_is_error_result():
    manager = MagicMock()
    result = execute_tool("delete_everything", "{}", manager)

    assert result == {"status": "error", "message": "Unknown function: delete_everything"}
    manager.create_api_gateway.assert_not_called()


def test_execute_malformed_arguments_never_dispatches():
    manager = MagicMock()
    result = execute_tool("create_api_gateway", '{"project_id": "acme"}', manager)

    assert result["status"] == "error"
    assert "gateway_id" in result["message"]
    manager.create_api_gateway.assert_not_called()


def test_execute_dispatches_to_manager():
    manager = MagicMock()
    manager.create_api_gateway.return_value = {"status": "success"}

    result = execute_tool("create_api_gateway", json.dumps(GATEWAY_ARGS), manager)

    assert result == {"status": "success"}
    manager.create_api_gateway.assert_called_once_with(**GATEWAY_ARGS)
