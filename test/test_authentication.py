"""Unit tests for the request authenticators and the serving context."""

import unittest
from unittest.mock import MagicMock

from tornado.httputil import HTTPHeaders, HTTPServerRequest

from regauthz import json
from regauthz.authorization.bearer import JwtBearerTokenAuthenticationConfiguration
from regauthz.authorization.context import ANONYMOUS, SecurityContext
from regauthz.web.authentication import ProxyHeaderAuthenticator, RequestAuthenticator
from regauthz.web.serving_context import ServingContext

BEARER = JwtBearerTokenAuthenticationConfiguration(
    issuer_uri="https://idp.example.com/realms/basyx",
    jwk_set_uri="https://idp.example.com/realms/basyx/protocol/openid-connect/certs",
    required_audience="registry",
)


def make_request(**headers):
    return HTTPServerRequest(method="GET", uri="/registry/entries", headers=HTTPHeaders(headers))


def claims_header(claims):
    return json.dumps(claims)


class TestProxyHeaderAuthenticator(unittest.TestCase):
    def setUp(self):
        self.authenticator = ProxyHeaderAuthenticator()

    def test_user_and_groups(self):
        request = make_request(**{"X-Forwarded-User": "alice", "X-Forwarded-Groups": "ROLE_a, ROLE_b,"})
        ctx = self.authenticator.authenticate(request, None)
        self.assertEqual(ctx.principal, "alice")
        self.assertEqual(ctx.authorities, frozenset({"ROLE_a", "ROLE_b"}))
        self.assertEqual(ctx.claims, {})

    def test_claims(self):
        """Test the principal and scopes are taken from the forwarded claims."""
        claims = {"sub": "alice", "scope": "registry:read registry:write", "tenant": "acme"}
        request = make_request(**{"X-Forwarded-Claims": claims_header(claims)})
        ctx = self.authenticator.authenticate(request, None)
        self.assertEqual(ctx.principal, "alice")
        self.assertEqual(ctx.claims, claims)
        self.assertEqual(ctx.authorities, frozenset({"SCOPE_registry:read", "SCOPE_registry:write"}))

    def test_anonymous(self):
        self.assertIsNone(self.authenticator.authenticate(make_request(), None))

    def test_malformed_claims(self):
        for value in ("{not json", "[1, 2]"):
            request = make_request(**{"X-Forwarded-User": "alice", "X-Forwarded-Claims": value})
            self.assertIsNone(self.authenticator.authenticate(request, None))

    def test_bearer_issuer_and_audience(self):
        claims = {"sub": "alice", "iss": BEARER.issuer_uri, "aud": ["account", "registry"]}
        request = make_request(**{"X-Forwarded-Claims": claims_header(claims)})
        self.assertEqual(self.authenticator.authenticate(request, BEARER).principal, "alice")

    def test_bearer_wrong_issuer(self):
        claims = {"sub": "alice", "iss": "https://other.example.com", "aud": "registry"}
        request = make_request(**{"X-Forwarded-Claims": claims_header(claims)})
        self.assertIsNone(self.authenticator.authenticate(request, BEARER))

    def test_bearer_wrong_audience(self):
        claims = {"sub": "alice", "iss": BEARER.issuer_uri, "aud": "account"}
        request = make_request(**{"X-Forwarded-Claims": claims_header(claims)})
        self.assertIsNone(self.authenticator.authenticate(request, BEARER))

    def test_scope_list(self):
        claims = {"sub": "alice", "scope": ["registry:read", "registry:write"]}
        request = make_request(**{"X-Forwarded-Claims": claims_header(claims)})
        ctx = self.authenticator.authenticate(request, None)
        self.assertEqual(ctx.authorities, frozenset({"SCOPE_registry:read", "SCOPE_registry:write"}))

    def test_bearer_without_claims(self):
        """Test forwarded user and groups alone do not authenticate when bearer settings are attached."""
        request = make_request(**{"X-Forwarded-User": "mallory", "X-Forwarded-Groups": "SCOPE_registry:write"})
        self.assertIsNone(self.authenticator.authenticate(request, BEARER))


class TestServingContext(unittest.TestCase):
    def test_anonymous_without_authenticator(self):
        self.assertIs(ServingContext().security_context_for(make_request(**{"X-Forwarded-User": "alice"})), ANONYMOUS)

    def test_authenticator_result(self):
        ctx = SecurityContext(principal="alice")
        authenticator = MagicMock(spec=RequestAuthenticator)
        authenticator.authenticate.return_value = ctx

        context = ServingContext()
        context.set_jwt_bearer_token_authentication_configuration(BEARER)
        context.set_authenticator(authenticator)
        request = make_request()

        self.assertIs(context.security_context_for(request), ctx)
        authenticator.authenticate.assert_called_once_with(request, BEARER)

    def test_unauthenticated_request(self):
        authenticator = MagicMock(spec=RequestAuthenticator)
        authenticator.authenticate.return_value = None
        self.assertIs(ServingContext(authenticator).security_context_for(make_request()), ANONYMOUS)


if __name__ == "__main__":
    unittest.main()
