# models.py
from pydantic import BaseModel
from typing import List, Optional


class AssistantRequest(BaseModel):
    userMessage: str


class AssistantResponse(BaseModel):
    assistantResponse: str


class ErrorResponse(BaseModel):
    error: bool = True
    message: str


class ToolInvocation(BaseModel):
    """A tool call requested by the model; arguments is the raw JSON text"""
    id: str
    name: str
    arguments: str = ""
    type: str = "function"

    def to_message_entry(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "function": {
                "name": self.name,
                "arguments": self.arguments
            }
        }


class Completion(BaseModel):
    """One completion result: plain text, or the tool calls the model asked for"""
    content: Optional[str] = None
    tool_calls: List[ToolInvocation] = []
    unsupported_tool_calls: bool = False

    @property
    def wants_tools(self) -> bool:
        return len(self.tool_calls) > 0
