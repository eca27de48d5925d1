"""Error types shared across the ordering services."""


class CashierError(Exception):
    """Base class for service-level failures."""


class AgentTransportError(CashierError):
    """The conversational agent could not be reached or returned garbage."""


class TokenMintingError(CashierError):
    """The short-lived realtime credential could not be minted."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RealtimeConnectionError(CashierError):
    """Negotiating the realtime session failed."""


class ChannelClosedError(RealtimeConnectionError):
    """The realtime event channel closed while the session was live."""


class MicrophoneUnavailableError(CashierError):
    """The customer's microphone could not be acquired."""

    def __init__(
        self,
        message: str = "Could not access microphone. Please check your audio settings.",
    ):
        super().__init__(message)


class MicrophoneDeniedError(MicrophoneUnavailableError):
    """The customer refused microphone access."""

    def __init__(
        self,
        message: str = (
            "Microphone access was denied. Please allow microphone access "
            "in your browser settings and try again."
        ),
    ):
        super().__init__(message)
