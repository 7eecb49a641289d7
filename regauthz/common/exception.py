from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from regauthz.authorization.provider import AuthorizationDecision


class RegauthzException(Exception):
    """Base class for all regauthz exceptions"""

    _msg_fmt = "An unknown exception occurred."

    def __init__(self, message: Optional[str] = None, **kwargs: Any):
        if not message:
            message = self._msg_fmt % kwargs

        super().__init__(message)


class ConfigurationErrorKind(Enum):
    MISSING_STRATEGY = "missing_strategy"
    UNKNOWN_STRATEGY = "unknown_strategy"
    NOT_FOUND = "not_found"
    CONSTRUCTION_FAILED = "construction_failed"
    CAPABILITY_MISMATCH = "capability_mismatch"


class ConfigurationError(RegauthzException):
    """The authorization engine cannot be built from the current configuration.

    Always fatal at startup: the registry must not serve requests with a
    partially configured authorization layer.
    """

    _msg_fmt = "Invalid authorization configuration."

    def __init__(self, kind: ConfigurationErrorKind, message: Optional[str] = None, **kwargs: Any):
        self.kind = kind
        super().__init__(message, **kwargs)


class RuleLoadError(RegauthzException):
    _msg_fmt = "Could not load rules from %(path)s."


class AccessDenied(RegauthzException):
    """A registry operation was rejected by the active authorizer."""

    _msg_fmt = "Access denied."

    def __init__(self, decision: "AuthorizationDecision", message: Optional[str] = None):
        self.decision = decision
        super().__init__(message or decision.reason or None)
