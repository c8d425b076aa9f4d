# tools.py
import json
import logging
from typing import Callable, Dict, Optional, Tuple

from gateway_manager import ApiGatewayManager

logger = logging.getLogger(__name__)

# 定義所有可用的工具
TOOLS = [
    {
        "type": "function",
        "function": {
            "name": "create_api_gateway",
            "description": "Creates a new API Gateway in Google Cloud with an API config (OpenAPI spec).",
            "parameters": {
                "type": "object",
                "properties": {
                    "project_id": {
                        "type": "string",
                        "description": "Google Cloud project ID."
                    },
                    "gateway_id": {
                        "type": "string",
                        "description": "Unique identifier for the API Gateway."
                    },
                    "region": {
                        "type": "string",
                        "description": "Google Cloud region to deploy the gateway in."
                    },
                    "openapi_spec_url": {
                        "type": "string",
                        "description": "URL or path to the OpenAPI specification file to attach to the gateway."
                    }
                },
                "required": ["project_id", "gateway_id", "region", "openapi_spec_url"],
                "additionalProperties": False
            },
            "strict": True
        }
    }
]


def _create_api_gateway(manager: ApiGatewayManager, arguments: Dict) -> Dict:
    return manager.create_api_gateway(
        project_id=arguments['project_id'],
        gateway_id=arguments['gateway_id'],
        region=arguments['region'],
        openapi_spec_url=arguments['openapi_spec_url']
    )


TOOL_REGISTRY: Dict[str, Callable[[ApiGatewayManager, Dict], Dict]] = {
    "create_api_gateway": _create_api_gateway,
}


def get_tool_definition(tool_name: str) -> Optional[Dict]:
    for tool in TOOLS:
        if tool["function"]["name"] == tool_name:
            return tool["function"]
    return None


def error_result(message: str) -> Dict:
    return {
        'status': 'error',
        'message': message
    }


def parse_arguments(tool_name: str, raw_arguments: str) -> Tuple[Optional[Dict], Optional[str]]:
    """
    Parse and validate tool arguments against the descriptor

    The model is asked for strict schema output, but the arguments are
    still checked against the descriptor before anything runs.

    Returns:
        (arguments, error_message)
    """
    definition = get_tool_definition(tool_name)
    if definition is None:
        return None, f"Unknown function: {tool_name}"

    try:
        arguments = json.loads(raw_arguments) if raw_arguments else {}
    except (TypeError, ValueError) as e:
        return None, f"Invalid arguments for {tool_name}: {e}"

    if not isinstance(arguments, dict):
        return None, f"Invalid arguments for {tool_name}: expected a JSON object"

    schema = definition["parameters"]
    properties = schema.get("properties", {})

    missing = [name for name in schema.get("required", []) if name not in arguments]
    if missing:
        return None, f"Missing required arguments for {tool_name}: {', '.join(missing)}"

    if schema.get("additionalProperties") is False:
        unexpected = sorted(name for name in arguments if name not in properties)
        if unexpected:
            return None, f"Unexpected arguments for {tool_name}: {', '.join(unexpected)}"

    for name, value in arguments.items():
        if properties.get(name, {}).get("type") == "string" and not isinstance(value, str):
            return None, f"Argument '{name}' for {tool_name} must be a string"

    return arguments, None


def execute_tool(tool_name: str, raw_arguments: str, manager: ApiGatewayManager) -> Dict:
    """執行工具，所有錯誤都轉成 error 結果，不拋出例外"""

    handler = TOOL_REGISTRY.get(tool_name)
    if handler is None:
        logger.warning(f"⚠️  Unknown tool requested: {tool_name}")
        return error_result(f"Unknown function: {tool_name}")

    arguments, problem = parse_arguments(tool_name, raw_arguments)
    if problem:
        logger.warning(f"⚠️  {problem}")
        return error_result(problem)

    logger.info(f"🔧 Executing tool {tool_name}")
    return handler(manager, arguments)
