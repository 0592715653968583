"""Tool-orchestration loop: relay tool calls between the model and the content backend."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

from .config import (
    DEFAULT_MAX_TOOL_ROUNDS,
    DEFAULT_MODEL,
    FALLBACK_REPLY,
    FALLBACK_REPLY_AFTER_TOOLS,
)
from .errors import LLMServiceError, ToolArgumentsError
from .links import replace_placeholder_links
from .llm import complete
from .models import Completion, ExecutedTool, Message, ToolCall, ToolResult
from .providers import LLMProvider, ToolChoice
from .tool_cache import make_key
from .tools import BaseTool, ToolKind

logger = logging.getLogger(__name__)


@dataclass
class LoopOptions:
    """Options for the orchestration loop."""

    model: str = DEFAULT_MODEL
    max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS
    llm_provider: LLMProvider | None = None


@dataclass
class LoopResult:
    """Outcome of one orchestration run."""

    message: Message
    used_tokens: int = 0
    rounds: int = 0
    executed: list[ExecutedTool] = field(default_factory=list)
    history: list[Message] = field(default_factory=list)


class _Run:
    """State for a single orchestration run."""

    def __init__(self, tools: list[BaseTool], options: LoopOptions) -> None:
        self.options = options
        self.registry: dict[ToolKind, BaseTool] = {t.kind: t for t in tools}
        self.tool_schemas = [t.to_tool_schema() for t in tools]
        self.used_tokens = 0
        self.executed: list[ExecutedTool] = []

    async def call_model(self, messages: list[Message], tool_choice: ToolChoice = "auto") -> Message:
        result: Completion = await complete(
            messages,
            model=self.options.model,
            tools=self.tool_schemas or None,
            tool_choice=tool_choice,
            provider=self.options.llm_provider,
        )
        self.used_tokens += result.total_tokens
        return result.message

    async def run_tool(self, call: ToolCall, args: object) -> tuple[ToolResult, bool]:
        """
        Dispatch one decoded call. Unknown tools, bad arguments and tool failures become error results.

        The flag is True once the tool's execute was entered, whether or not it
        succeeded; such results must not be produced a second time in the round.
        """
        name = call.function.name
        kind = ToolKind.from_name(name)
        tool = self.registry.get(kind) if kind is not None else None
        if tool is None:
            return ToolResult(success=False, error=f"Unsupported tool: {name}"), False
        try:
            parsed = tool.parse_arguments(args)
        except ToolArgumentsError as e:
            logger.info("Rejected arguments for %s: %s", name, e)
            return ToolResult(success=False, error=str(e)), False
        try:
            result = await tool.execute(parsed)
        except Exception as e:
            # Fed back to the model so it can react to the failure
            logger.warning("Tool '%s' failed: %s", name, e)
            return ToolResult(success=False, error=str(e)), True
        if result.success:
            self.executed.append(ExecutedTool(name=name, result=result))
        return result, True

    async def run_round(self, tool_calls: list[ToolCall]) -> list[Message]:
        """Execute one round of tool calls sequentially, memoizing identical calls."""
        memo: dict[str, str] = {}
        replies: list[Message] = []
        for call in tool_calls:
            name = call.function.name
            try:
                args = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError as e:
                content = ToolResult(
                    success=False,
                    error=f"Invalid JSON arguments for {name}: {e.msg}",
                ).to_content()
                replies.append(Message(role="tool", content=content, tool_call_id=call.id, name=name))
                continue

            key = make_key(name, args)
            if key in memo:
                logger.debug("Reusing result of repeated call %s in this round", key)
                content = memo[key]
            else:
                result, executed = await self.run_tool(call, args)
                content = result.to_content()
                # A failed write may still have reached the backend
                if executed:
                    memo[key] = content
            replies.append(Message(role="tool", content=content, tool_call_id=call.id, name=name))
        return replies


async def run_loop(
    messages: list[Message],
    tools: list[BaseTool] | None = None,
    options: LoopOptions | None = None,
) -> LoopResult:
    """
    Run the model with tool access until it produces a text answer.

    The first model call raises on failure. After that every failure is
    absorbed: tool problems are returned to the model as error results, and a
    failed follow-up call ends the loop with a fallback answer.

    Returns:
        LoopResult whose message is a plain assistant message (no tool_calls)
        with placeholder links back-filled from search results.
    """
    opts = options or LoopOptions()
    run = _Run(tools or [], opts)
    history = list(messages)

    assistant = await run.call_model(history)
    rounds = 0
    while assistant.tool_calls and rounds < opts.max_tool_rounds:
        rounds += 1
        tool_replies = await run.run_round(assistant.tool_calls)
        history.extend([assistant, *tool_replies])
        try:
            assistant = await run.call_model(history)
        except LLMServiceError as e:
            logger.warning("Follow-up model call failed in round %d: %s", rounds, e, exc_info=True)
            assistant = Message(role="assistant", content="")
            break

        if not assistant.content and not assistant.tool_calls:
            try:
                assistant = await run.call_model(history, tool_choice="none")
            except LLMServiceError as e:
                logger.warning("Forced text call failed in round %d: %s", rounds, e, exc_info=True)
            break

    if rounds >= opts.max_tool_rounds and assistant.tool_calls:
        logger.warning("Tool round limit (%d) reached; returning current content", opts.max_tool_rounds)

    content = assistant.content or ""
    if not content.strip():
        content = FALLBACK_REPLY_AFTER_TOOLS if assistant.tool_calls else FALLBACK_REPLY
    content = replace_placeholder_links(content, run.executed)

    return LoopResult(
        message=Message(role="assistant", content=content),
        used_tokens=run.used_tokens,
        rounds=rounds,
        executed=run.executed,
        history=history,
    )
