"""Authorization interface for the registry.

This module defines the actions that can be performed on the registry, the
request and decision dataclasses exchanged with authorizers, and the abstract
interface that all authorizers implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, Mapping, Optional


class Action(Enum):
    """Operations exposed by the registry.

    Each action corresponds to exactly one operation of the wrapped registry.
    """

    REGISTER = "register"
    DEREGISTER = "deregister"
    LOOKUP_ONE = "lookup-one"
    LOOKUP_ALL = "lookup-all"


class Effect(Enum):
    PERMIT = "permit"
    DENY = "deny"


@dataclass(frozen=True)
class Subject:
    """The already-authenticated caller, as seen by the rule checker.

    Attributes:
        attributes: Identity attributes (e.g. token claims) by name
        roles: Roles or granted authorities of the caller
    """

    attributes: Mapping[str, Any] = field(default_factory=dict)
    roles: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class AuthorizationRequest:
    """Request for an authorization decision.

    Attributes:
        subject: The caller
        action: The registry operation being requested
        target: Identifier of the registry entry acted upon. None for actions
                that don't target a specific entry (lookup of all entries)
    """

    subject: Subject
    action: Action
    target: Optional[str] = None


@dataclass(frozen=True)
class AuthorizationDecision:
    """Outcome of an authorization check.

    Attributes:
        allowed: Whether the action is permitted
        reason: Human-readable reason for the decision (for logging and auditing)
    """

    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def permit(cls, reason: Optional[str] = None) -> "AuthorizationDecision":
        return cls(allowed=True, reason=reason)

    @classmethod
    def deny(cls, reason: Optional[str] = None) -> "AuthorizationDecision":
        return cls(allowed=False, reason=reason)


class Authorizer(ABC):
    """Abstract base class for authorizers.

    An authorizer answers whether the subject described by the subject
    information may perform an action on a target. Every variant exposes the
    same ``authorize`` contract so that the authorization decorator does not
    depend on the active strategy.

    Authorizers are built once at startup and shared by all request threads,
    so they must not keep per-request state.
    """

    @abstractmethod
    def authorize(self, subject_information: Any, action: Action, target: Optional[str]) -> AuthorizationDecision:
        """Make an authorization decision.

        Args:
            subject_information: Subject information produced by the configured
                                 subject information provider
            action: The registry operation being requested
            target: Identifier of the targeted entry, None for lookup of all entries

        Returns:
            AuthorizationDecision with the outcome and a reason
        """

    @abstractmethod
    def get_name(self) -> str:
        """Get the authorizer name for logging and debugging."""
