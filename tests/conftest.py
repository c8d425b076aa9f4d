"""
Shared fixtures: a scripted stand-in for the OpenAI client and a
MagicMock apigateway discovery client. Nothing here calls a real service.
"""

import json
from types import SimpleNamespace
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from config import Settings
from gateway_manager import ApiGatewayManager


def make_tool_call(name: str, arguments, call_id: str = "call_1"):
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return SimpleNamespace(
        id=call_id,
        type="function",
        function=SimpleNamespace(name=name, arguments=arguments)
    )


def make_response(content: Optional[str] = None, tool_calls: Optional[List] = None):
    message = SimpleNamespace(role="assistant", content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    """Returns queued responses and records every request it receives"""

    def __init__(self, responses: List):
        self._responses = list(responses)
        self.requests: List[Dict] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        # snapshot: the agent keeps appending to the same list
        self.requests.append({**kwargs, "messages": [dict(m) for m in kwargs["messages"]]})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_gateway_service():
    """apigateway v1 stand-in; every create call is accepted with an operation"""
    service = MagicMock(name="apigateway")
    locations = service.projects.return_value.locations.return_value

    apis = locations.apis.return_value
    apis.create.return_value.execute.return_value = {
        "name": "projects/acme/locations/global/operations/op-api", "done": False
    }
    configs = apis.configs.return_value
    configs.create.return_value.execute.return_value = {
        "name": "projects/acme/locations/global/operations/op-config", "done": False
    }
    gateways = locations.gateways.return_value
    gateways.create.return_value.execute.return_value = {
        "name": "projects/acme/locations/us-central1/operations/op-gateway", "done": False
    }
    return service


GATEWAY_ARGS = {
    "project_id": "acme",
    "gateway_id": "orders-gateway",
    "region": "us-central1",
    "openapi_spec_url": "gs://bucket/spec.yaml",
}


@pytest.fixture
def settings():
    return Settings(openai_api_key="sk-test-key-0000000000000000")


@pytest.fixture
def gateway_service():
    return make_gateway_service()


@pytest.fixture
def manager(settings, gateway_service):
    return ApiGatewayManager(settings=settings, service=gateway_service, sleep=lambda _: None)
