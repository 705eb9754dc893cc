"""Error taxonomy for Nexus Studio.

Every externally-facing operation converts collaborator failures into one of
these before they reach presentation code.
"""


class NexusError(Exception):
    """Base class for all Nexus errors."""


class ValidationError(NexusError):
    """Invalid user input (empty prompt, wrong attachment type, empty name).

    Surfaced inline; the operation that raised it has not mutated any state.
    """


class StreamInProgressError(ValidationError):
    """A send was attempted while the session is still streaming a reply."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} is still receiving a response")
        self.session_id = session_id


class SessionNotFoundError(NexusError, KeyError):
    """Operation on a session id that is not registered."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id

    def __str__(self) -> str:
        return self.args[0]


class TransportError(NexusError):
    """The generative service failed (network error, malformed or empty response)."""


class PersistenceError(NexusError):
    """The key/value store could not read or write (quota, corruption, I/O)."""


class UnsupportedCapability(NexusError):
    """A capability such as voice input is unavailable in this environment."""

    def __init__(self, capability: str, message: str | None = None) -> None:
        super().__init__(message or f"{capability} is not supported in this environment.")
        self.capability = capability
