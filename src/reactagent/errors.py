"""Error taxonomy for agent runs."""

from __future__ import annotations


class ReActAgentError(RuntimeError):
    """Base class for errors raised by reactagent."""


class ConfigurationError(ReActAgentError):
    """Raised at construction time when settings or tools are unusable."""


class UnknownToolError(ReActAgentError):
    """Raised when the model asks for a tool that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class MalformedToolArgumentsError(ReActAgentError):
    """Raised when accumulated tool-call arguments are not a JSON object."""

    def __init__(self, name: str, detail: str) -> None:
        super().__init__(f"Malformed arguments for {name}: {detail}")
        self.name = name
        self.detail = detail


class StepBudgetExceededError(ReActAgentError):
    """Raised when a run uses every step without producing a final answer."""

    def __init__(self, max_steps: int) -> None:
        super().__init__(
            f"Reached the maximum number of steps ({max_steps}) without a final answer. "
            "Increase AGENT_MAX_STEPS if needed."
        )
        self.max_steps = max_steps
