"""Bearer-token validation settings for the upstream authentication middleware.

The authorization layer does not validate tokens itself. When a provider is
configured, its result is attached to the serving context, where the
authentication middleware picks it up before any registry request reaches the
authorization decorator.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from regauthz import config


@dataclass(frozen=True)
class JwtBearerTokenAuthenticationConfiguration:
    """Where and how to validate bearer tokens.

    Attributes:
        issuer_uri: Expected ``iss`` claim
        jwk_set_uri: Location of the issuer's signing keys
        required_audience: Expected ``aud`` claim, None to skip the check
    """

    issuer_uri: str
    jwk_set_uri: str
    required_audience: Optional[str] = None


class JwtBearerTokenAuthenticationConfigurationProvider(ABC):
    @abstractmethod
    def get(self, component: str) -> JwtBearerTokenAuthenticationConfiguration:
        """Build the bearer-token settings from the configuration of ``component``.

        Raises:
            ValueError: If required options are missing
        """


def _required(component: str, option: str) -> str:
    value = config.get(component, option)
    if not value:
        raise ValueError(f"option '{option}' must be set in {component}.conf")
    return value


class StaticJwtBearerTokenAuthenticationConfigurationProvider(JwtBearerTokenAuthenticationConfigurationProvider):
    """Reads ``jwt_issuer_uri``, ``jwt_jwk_set_uri`` and ``jwt_audience``."""

    def get(self, component: str) -> JwtBearerTokenAuthenticationConfiguration:
        return JwtBearerTokenAuthenticationConfiguration(
            issuer_uri=_required(component, "jwt_issuer_uri"),
            jwk_set_uri=_required(component, "jwt_jwk_set_uri"),
            required_audience=config.get(component, "jwt_audience") or None,
        )


class KeycloakJwtBearerTokenAuthenticationConfigurationProvider(JwtBearerTokenAuthenticationConfigurationProvider):
    """Derives the issuer and key set locations of a Keycloak realm.

    Uses ``keycloak_server_url`` and ``keycloak_realm``, plus the optional
    ``jwt_audience``.
    """

    def get(self, component: str) -> JwtBearerTokenAuthenticationConfiguration:
        server_url = _required(component, "keycloak_server_url").rstrip("/")
        realm = _required(component, "keycloak_realm")
        issuer_uri = f"{server_url}/realms/{realm}"
        return JwtBearerTokenAuthenticationConfiguration(
            issuer_uri=issuer_uri,
            jwk_set_uri=f"{issuer_uri}/protocol/openid-connect/certs",
            required_audience=config.get(component, "jwt_audience") or None,
        )
