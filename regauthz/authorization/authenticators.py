"""Authenticators and subject information providers.

Subject information providers extract information about the caller from the
ambient security context. Role and granted-authority authenticators turn that
information into the role or authority strings used by the authorizers.

All implementations are stateless and may be shared between request threads.
"""

from abc import ABC, abstractmethod
from typing import Any, FrozenSet, Iterable, Mapping

from regauthz.authorization.context import SecurityContext, current_security_context


class SubjectInformationProvider(ABC):
    @abstractmethod
    def get(self) -> Any:
        """Return information about the caller of the current request."""


class RoleAuthenticator(ABC):
    @abstractmethod
    def get_roles(self, subject_information: Any) -> FrozenSet[str]:
        """Return the roles of the subject described by ``subject_information``."""


class GrantedAuthorityAuthenticator(ABC):
    @abstractmethod
    def get_authorities(self, subject_information: Any) -> FrozenSet[str]:
        """Return the authorities granted to the subject described by ``subject_information``."""


def claims_of(subject_information: Any) -> Mapping[str, Any]:
    """Return the token claims carried by ``subject_information``.

    Accepts either a ``SecurityContext`` or a mapping of claims, so that claim
    based authenticators can be combined with both built-in providers.
    """
    if isinstance(subject_information, SecurityContext):
        return subject_information.claims
    if isinstance(subject_information, Mapping):
        return subject_information
    raise TypeError(f"cannot read claims from {type(subject_information).__name__}")


def claim_strings(value: Any) -> FrozenSet[str]:
    if isinstance(value, str):
        return frozenset(value.split())
    if isinstance(value, Iterable):
        return frozenset(v for v in value if isinstance(v, str))
    return frozenset()


class AuthenticationContextProvider(SubjectInformationProvider):
    """Provides the whole ``SecurityContext`` of the current request."""

    def get(self) -> SecurityContext:
        return current_security_context()


class JWTAuthenticationContextProvider(SubjectInformationProvider):
    """Provides the claims of the bearer token validated for the current request."""

    def get(self) -> Mapping[str, Any]:
        return dict(current_security_context().claims)


class KeycloakRoleAuthenticator(RoleAuthenticator):
    """Reads realm roles from the ``realm_access.roles`` claim of a Keycloak token."""

    def get_roles(self, subject_information: Any) -> FrozenSet[str]:
        realm_access = claims_of(subject_information).get("realm_access")
        if not isinstance(realm_access, Mapping):
            return frozenset()
        return claim_strings(realm_access.get("roles", ()))


class ClaimRoleAuthenticator(RoleAuthenticator):
    """Reads roles from a top-level claim (``roles`` by default).

    The claim may hold a list of strings or a space separated string.
    """

    def __init__(self, claim: str = "roles") -> None:
        self._claim = claim

    def get_roles(self, subject_information: Any) -> FrozenSet[str]:
        return claim_strings(claims_of(subject_information).get(self._claim, ()))


class AuthenticationGrantedAuthorityAuthenticator(GrantedAuthorityAuthenticator):
    """Uses the authorities granted by the authentication mechanism."""

    def get_authorities(self, subject_information: Any) -> FrozenSet[str]:
        if isinstance(subject_information, SecurityContext):
            return subject_information.authorities
        if isinstance(subject_information, Mapping):
            # Scopes of an OAuth2 token, mapped the usual way to SCOPE_<scope>
            return frozenset(f"SCOPE_{scope}" for scope in claim_strings(subject_information.get("scope", ())))
        raise TypeError(f"cannot read authorities from {type(subject_information).__name__}")
