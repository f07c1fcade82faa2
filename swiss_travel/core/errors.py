"""
Error kinds shared across the service.

None of these are fatal to the process: each layer catches the kind it owns
and degrades (empty results, "Error: ..." tool output, fallback reply).
"""


class TravelAdvisorError(Exception):
    """Base class for every error raised by the service."""


class StoreError(TravelAdvisorError):
    """Database-side failure in a catalog or wishlist repository."""


class EmbeddingError(TravelAdvisorError):
    """The embedding provider failed or returned a vector of the wrong size."""


class ToolDispatchError(TravelAdvisorError):
    """Unknown tool name, unparsable arguments or a schema mismatch."""


class LLMError(TravelAdvisorError):
    """The chat-completion endpoint failed or answered with an unusable payload."""


class OrchestratorExhaustion(TravelAdvisorError):
    """The LLM kept requesting tools past the per-turn iteration cap."""

    def __init__(self, iterations: int, last_text: str | None = None) -> None:
        super().__init__(f"No final answer after {iterations} LLM iterations")
        self.iterations = iterations
        self.last_text = last_text
