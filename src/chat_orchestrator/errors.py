"""Error taxonomy for the chat orchestrator.

Configuration, authentication and first-call upstream errors are surfaced to
the HTTP caller. Tool argument and tool execution errors are recovered inside
the loop and fed back to the model as tool results.
"""

from __future__ import annotations


class OrchestratorError(Exception):
    """Base class for errors raised by the orchestrator."""

    status_code: int = 500


class ConfigurationError(OrchestratorError):
    """Required configuration (e.g. an API key) is missing."""

    status_code = 500


class AuthenticationError(OrchestratorError):
    """The caller did not supply a user token."""

    status_code = 401


class LLMServiceError(OrchestratorError):
    """The language-model service call failed.

    Carries the upstream HTTP status when one was received.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ToolArgumentsError(OrchestratorError):
    """Tool call arguments could not be parsed or validated."""

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(f"Invalid arguments for {tool_name}: {message}")
        self.tool_name = tool_name
