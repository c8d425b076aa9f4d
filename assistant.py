# assistant.py

import json
import logging
from typing import Dict, List, Optional

from openai import AzureOpenAI, OpenAI

from config import Settings
from gateway_manager import ApiGatewayManager
from models import Completion, ToolInvocation
from tools import TOOLS, execute_tool

logger = logging.getLogger(__name__)

# System Prompt
SYSTEM_PROMPT = (
    "You are assisting with Google API Gateway migrations. "
    "Use create_api_gateway if the user wants to create or migrate an API."
)

FALLBACK_REPLY = "Unexpected tool call structure. Please try again or contact support."


def create_openai_client(settings: Settings):
    """OpenAI 客戶端（設定 AZURE_OPENAI_ENDPOINT 時使用 Azure）"""
    if settings.use_azure:
        return AzureOpenAI(
            api_key=settings.azure_openai_key,
            api_version=settings.azure_openai_api_version,
            azure_endpoint=settings.azure_openai_endpoint,
            timeout=settings.openai_timeout_seconds
        )
    return OpenAI(
        api_key=settings.openai_api_key,
        timeout=settings.openai_timeout_seconds
    )


class AssistantAgent:
    """
    Two-pass function-calling agent

    1. Send system prompt + user message + TOOLS to the model
    2. If the model asks for tools, run every requested call
    3. Append the calls and their results, then ask the model again for
       the final answer
    """

    def __init__(self, client, model: str, manager: ApiGatewayManager, tools: Optional[List[Dict]] = None):
        self.client = client
        self.model = model
        self.manager = manager
        self.tools = tools if tools is not None else TOOLS

    @staticmethod
    def build_messages(user_message: str) -> List[Dict]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": user_message}
        ]

    def complete(self, messages: List[Dict]) -> Completion:
        """One call to the completion service; errors propagate to the caller"""
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            tools=self.tools
        )

        message = response.choices[0].message
        tool_calls = []
        for tc in message.tool_calls or []:
            function = getattr(tc, 'function', None)
            if getattr(tc, 'type', 'function') != 'function' or function is None:
                logger.warning(f"⚠️  Ignoring non-function tool call: {getattr(tc, 'type', None)}")
                continue
            tool_calls.append(ToolInvocation(
                id=tc.id,
                name=function.name,
                arguments=function.arguments or ""
            ))

        if message.tool_calls and not tool_calls:
            # tool calls were requested but none of them can be handled
            return Completion(content=None, unsupported_tool_calls=True)

        return Completion(content=message.content, tool_calls=tool_calls)

    def run_tools(self, invocations: List[ToolInvocation]) -> List[Dict]:
        results = []
        for invocation in invocations:
            result = execute_tool(invocation.name, invocation.arguments, self.manager)
            logger.info(f"📦 {invocation.name} ({invocation.id}) → {result.get('status')}")
            results.append(result)
        return results

    def reconcile(
        self,
        messages: List[Dict],
        invocations: List[ToolInvocation],
        results: List[Dict]
    ) -> str:
        """Fold every tool result back into the conversation and ask for the final answer"""
        messages.append({
            "role": "assistant",
            "content": "",
            "tool_calls": [invocation.to_message_entry() for invocation in invocations]
        })

        for invocation, result in zip(invocations, results):
            messages.append({
                "role": "tool",
                "tool_call_id": invocation.id,
                "content": json.dumps(result, ensure_ascii=False)
            })

        final = self.complete(messages)
        if final.wants_tools or final.unsupported_tool_calls:
            logger.warning("⚠️  Model asked for more tools after reconciliation")
            return FALLBACK_REPLY
        return final.content or ""

    def run(self, user_message: str) -> str:
        messages = self.build_messages(user_message)

        first = self.complete(messages)

        if first.unsupported_tool_calls:
            return FALLBACK_REPLY

        if not first.wants_tools:
            # 不需要工具，直接回覆
            return first.content or ""

        results = self.run_tools(first.tool_calls)
        return self.reconcile(messages, first.tool_calls, results)
