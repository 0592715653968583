"""Data models for messages, tool calls, completions and tools."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


Role = Literal["user", "assistant", "system", "tool", "function"]


class FunctionCall(BaseModel):
    """Name and JSON-encoded arguments of a requested tool invocation."""

    name: str = ""
    arguments: str = "{}"


class ToolCall(BaseModel):
    """A tool invocation requested by the model in an assistant turn."""

    id: str = ""
    type: Literal["function"] = "function"
    function: FunctionCall = Field(default_factory=FunctionCall)


class Message(BaseModel):
    """A single message in a conversation."""

    role: Role
    content: str = ""
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    @model_validator(mode="after")
    def check_tool_call_id(self) -> "Message":
        if self.role == "tool" and self.tool_call_id is None:
            raise ValueError("tool messages must carry a tool_call_id")
        return self

    def to_chat_dict(self) -> dict[str, Any]:
        """Format for the chat-completions API."""
        out: dict[str, Any] = {"role": self.role, "content": self.content or ""}
        if self.tool_calls:
            out["tool_calls"] = [tc.model_dump() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            out["tool_call_id"] = self.tool_call_id
        if self.name is not None:
            out["name"] = self.name
        return out


@dataclass
class Completion:
    """One assistant reply from the language-model service."""

    message: Message
    total_tokens: int = 0


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@dataclass
class ToolResult:
    """Result of a single tool execution."""

    success: bool
    payload: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    def to_content(self) -> str:
        """JSON text handed back to the model as the tool message content."""
        if self.success:
            return json.dumps(self.payload, ensure_ascii=False)
        return json.dumps({"error": self.error or "Unknown error"}, ensure_ascii=False)


@dataclass
class ToolDef:
    """Tool definition for the orchestrator and LLM."""

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema

    def to_tool_schema(self) -> dict[str, Any]:
        """Standard function-calling schema (OpenAI-style)."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass
class ExecutedTool:
    """A tool that actually ran (memoized repeats and failures are not recorded)."""

    name: str
    result: ToolResult
