"""Adapters from upstream authentication to the security context.

Bearer tokens are validated before requests reach the registry (for example
by a reverse proxy using the attached bearer-token settings). The adapters
here only read the outcome of that validation from the request.
"""

from abc import ABC, abstractmethod
from typing import Optional

from tornado.httputil import HTTPServerRequest

from regauthz import json
from regauthz.authorization.authenticators import claim_strings
from regauthz.authorization.bearer import JwtBearerTokenAuthenticationConfiguration
from regauthz.authorization.context import SecurityContext


class RequestAuthenticator(ABC):
    @abstractmethod
    def authenticate(
        self,
        request: HTTPServerRequest,
        bearer_configuration: Optional[JwtBearerTokenAuthenticationConfiguration],
    ) -> Optional[SecurityContext]:
        """Return the authenticated caller of ``request``, None if anonymous."""


class ProxyHeaderAuthenticator(RequestAuthenticator):
    """Reads the caller from headers set by an authenticating reverse proxy.

    ``X-Forwarded-User`` names the principal, ``X-Forwarded-Groups`` is a comma
    separated list of granted authorities and ``X-Forwarded-Claims`` holds the
    validated token claims as a JSON object. Each scope of the ``scope`` claim,
    a space separated string or a list, is granted as authority
    ``SCOPE_<scope>``.

    With bearer-token settings attached, only callers whose claims carry the
    configured issuer and audience are authenticated.

    The proxy must strip these headers from incoming requests.
    """

    USER_HEADER = "X-Forwarded-User"
    GROUPS_HEADER = "X-Forwarded-Groups"
    CLAIMS_HEADER = "X-Forwarded-Claims"

    def authenticate(
        self,
        request: HTTPServerRequest,
        bearer_configuration: Optional[JwtBearerTokenAuthenticationConfiguration],
    ) -> Optional[SecurityContext]:
        claims = {}
        raw_claims = request.headers.get(self.CLAIMS_HEADER)
        if raw_claims:
            try:
                claims = json.loads(raw_claims)
            except ValueError:
                return None
            if not isinstance(claims, dict):
                return None

        if bearer_configuration is not None:
            # Without validated claims, or with claims of another issuer or
            # audience, the caller is anonymous
            if not claims or claims.get("iss") != bearer_configuration.issuer_uri:
                return None
            audience = claims.get("aud")
            audiences = audience if isinstance(audience, list) else [audience]
            if bearer_configuration.required_audience and bearer_configuration.required_audience not in audiences:
                return None

        principal = request.headers.get(self.USER_HEADER) or claims.get("sub")
        if not principal:
            return None

        authorities = {g.strip() for g in request.headers.get(self.GROUPS_HEADER, "").split(",") if g.strip()}
        authorities.update(f"SCOPE_{s}" for s in claim_strings(claims.get("scope", ())))

        return SecurityContext(principal=principal, claims=claims, authorities=frozenset(authorities))
