"""Error taxonomy shared by the runtime, storage backends and LLM layer."""


class AgentMeshError(RuntimeError):
    """Base class for runtime failures.

    ``retryable`` marks errors the LLM retry loop may attempt again and
    ``retry_delay_ms`` is the pause before the next attempt.
    """

    retryable: bool = False
    retry_delay_ms: int = 0


class TransportError(AgentMeshError):
    """Publishing to the message transport failed."""

    retryable = True
    retry_delay_ms = 500


class SerializationError(AgentMeshError):
    """A message or state value could not be encoded or decoded."""


class StorageIOError(AgentMeshError):
    """A persistent backend operation failed."""


class LLMProviderError(AgentMeshError):
    """The LLM provider returned an error."""


class LLMTimeoutError(LLMProviderError):
    """The LLM call did not finish within its timeout."""

    retryable = True
    retry_delay_ms = 1000

    def __init__(self, duration: float, message: str | None = None):
        self.duration = duration
        super().__init__(message or f"LLM API timeout after {duration}s")


class LLMRateLimitError(LLMProviderError):
    """The LLM provider rejected the call because of rate limiting."""

    retryable = True
    retry_delay_ms = 5000


class LLMResponseFormatError(LLMProviderError):
    """The LLM response was empty or not in the expected shape."""


class WorkflowValidationError(AgentMeshError):
    """A workflow plan failed validation."""


class CustomError(AgentMeshError):
    """Application-defined failure."""


def is_retryable(error: BaseException) -> bool:
    """Return True when ``error`` belongs to the retryable set."""
    return isinstance(error, AgentMeshError) and error.retryable


def retry_delay_ms(error: BaseException) -> int:
    """Delay before retrying ``error``; 0 for anything outside the taxonomy."""
    if isinstance(error, AgentMeshError):
        return error.retry_delay_ms
    return 0
