"""
Error taxonomy for the ads agent service

Function-level errors (validation, not found, unknown function) are recovered
by the function registry into failed results. Upstream model failures halt a
turn and surface as TurnError.
"""


class AgentError(Exception):
    """Base class for all service errors"""


class ValidationError(AgentError):
    """Malformed or missing function arguments"""


class NotFoundError(AgentError):
    """Referenced campaign does not exist"""

    def __init__(self, campaign_id: str):
        self.campaign_id = campaign_id
        super().__init__(f"Campaign {campaign_id} not found")


class UnknownFunctionError(AgentError):
    """Model requested a function that is not in the registry"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown function: {name}")


class UpstreamError(AgentError):
    """The language model call itself failed (network, auth, quota)"""


class TurnError(AgentError):
    """A conversation turn could not produce an assistant reply"""

    def __init__(self, message: str, cause: Exception = None):
        self.cause = cause
        super().__init__(message)


class SessionBusyError(AgentError):
    """A turn is already in flight for this session"""
