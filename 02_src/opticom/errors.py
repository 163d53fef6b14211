"""Exception taxonomy for OptiCom.

Validation and state errors propagate to callers of the registry and
lifecycle manager. Generation errors are caught at the GenerationDriver
boundary and counted towards its self-disable threshold.
"""


class OptiComError(Exception):
    """Base class for all OptiCom errors."""


class NotFound(OptiComError):
    """An entity id could not be resolved."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} not found")


class AgentNotFound(NotFound):
    """A participant id does not resolve to an agent."""

    def __init__(self, agent_id: str):
        super().__init__("Agent", agent_id)


class DuplicateName(OptiComError):
    """Name is already taken by another agent or conversation."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"A {kind.lower()} named {name!r} already exists")


class InvalidInput(OptiComError):
    """Length or format validation failed."""


class InvalidParticipantCount(InvalidInput):
    """A conversation needs between MIN and MAX distinct participants."""


class NotParticipant(InvalidInput):
    """Message sender is not in the conversation roster."""


class InvalidRecipients(InvalidInput):
    """Explicit recipients include non-participants."""

    def __init__(self, invalid: list[str]):
        self.invalid = invalid
        super().__init__(f"Invalid recipients: {', '.join(invalid) or '(none given)'}")


class InvalidState(OptiComError):
    """An illegal state transition was attempted."""


class AgentNotAvailable(OptiComError):
    """Agent is reserved by another conversation."""

    def __init__(self, agent_id: str, name: str | None = None):
        self.agent_id = agent_id
        label = name or agent_id
        super().__init__(
            f"Agent {label} is not inactive and cannot be added to a new conversation"
        )


class GenerationError(OptiComError):
    """A generation step failed."""


class MalformedResponse(GenerationError):
    """Model reply does not match ``<AgentName>: <content>``."""


class UnknownSpeaker(GenerationError):
    """Model reply names an agent outside the roster."""

    def __init__(self, speaker: str, valid_names: list[str]):
        self.speaker = speaker
        self.valid_names = valid_names
        super().__init__(
            f'Agent "{speaker}" not found in conversation. '
            f"Available agents: {', '.join(valid_names)}"
        )


class ProviderError(GenerationError):
    """The upstream text-generation provider failed."""


class ServiceDisabled(OptiComError):
    """Generation was attempted while the driver is disabled."""
