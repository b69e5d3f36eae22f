"""Exception hierarchy shared across the orchestrator."""


class OrchestratorError(Exception):
    """Base class for all orchestrator errors."""


class InferenceError(OrchestratorError):
    """A soft failure of one inference attempt. Recovered by the executor."""


class InferenceTimeoutError(InferenceError):
    """The provider did not answer within the attempt deadline."""


class MalformedDecisionError(InferenceError):
    """The provider answered with text that is not a usable decision."""


class InferenceUnavailableError(InferenceError):
    """The provider rejected the request or could not be reached."""


class OutboundDeliveryError(OrchestratorError):
    """An outbound message could not be delivered to the carrier."""


class DebugRequestError(OrchestratorError):
    """A debug endpoint request that cannot be served. Rendered as ``{"ok": false}``."""

    def __init__(self, status_code: int, error: str) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
