from typing import Optional

from tornado.httputil import HTTPServerRequest

from regauthz.authorization.bearer import JwtBearerTokenAuthenticationConfiguration
from regauthz.authorization.context import ANONYMOUS, SecurityContext
from regauthz.web.authentication import RequestAuthenticator


class ServingContext:
    """State shared by the HTTP layer of the registry.

    Holds the bearer-token validation settings attached at startup and the
    request authenticator which establishes the security context of each
    request before it reaches the authorization decorator. Without an
    authenticator every request is anonymous.
    """

    def __init__(self, authenticator: Optional[RequestAuthenticator] = None) -> None:
        self._authenticator = authenticator
        self._jwt_bearer_token_authentication_configuration: Optional[JwtBearerTokenAuthenticationConfiguration] = None

    @property
    def jwt_bearer_token_authentication_configuration(self) -> Optional[JwtBearerTokenAuthenticationConfiguration]:
        return self._jwt_bearer_token_authentication_configuration

    def set_jwt_bearer_token_authentication_configuration(
        self, configuration: JwtBearerTokenAuthenticationConfiguration
    ) -> None:
        self._jwt_bearer_token_authentication_configuration = configuration

    @property
    def authenticator(self) -> Optional[RequestAuthenticator]:
        return self._authenticator

    def set_authenticator(self, authenticator: RequestAuthenticator) -> None:
        self._authenticator = authenticator

    def security_context_for(self, request: HTTPServerRequest) -> SecurityContext:
        if self._authenticator is None:
            return ANONYMOUS

        context = self._authenticator.authenticate(request, self._jwt_bearer_token_authentication_configuration)
        return context if context is not None else ANONYMOUS
