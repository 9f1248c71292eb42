"""Error taxonomy shared by every controller.

Each error carries a ``category`` which the navigator uses to pick the
notice style shown to the user.
"""


class NavError(Exception):
    category = "error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(NavError):
    """Empty required field or malformed value; never sent to the remote."""
    category = "validation"


class AuthorizationError(NavError):
    """Mutation attempted while the view mode is readonly."""
    category = "authorization"


class TransportError(NavError):
    """Remote call failed, timed out or returned something unusable."""
    category = "transport"


class ParseError(NavError):
    """Malformed snapshot (import or remote payload) or configuration."""
    category = "parse"


class SortStateError(NavError):
    """Sort-mode operation that is not valid in the current state."""
    category = "state"
