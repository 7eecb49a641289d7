"""Unit tests for the AttributeBased and AuthorityBased authorizers."""

import unittest
from unittest.mock import MagicMock

from regauthz.authorization.authenticators import (
    AuthenticationGrantedAuthorityAuthenticator,
    KeycloakRoleAuthenticator,
    RoleAuthenticator,
)
from regauthz.authorization.context import SecurityContext
from regauthz.authorization.provider import Action, AuthorizationDecision, AuthorizationRequest, Subject
from regauthz.authorization.providers.attribute_based import AttributeBasedAuthorizer
from regauthz.authorization.providers.authority_based import (
    READ_AUTHORITY,
    WRITE_AUTHORITY,
    AuthorityBasedAuthorizer,
)
from regauthz.authorization.rules import PredefinedSetRuleChecker, RuleChecker, parse_rules

RULES = [
    {"subject": {"role": "admin"}, "action": "*", "target": "*", "effect": "permit"},
    {"subject": {"attributes": {"tenant": "acme"}}, "action": "lookup-one", "target": "urn:acme:1", "effect": "permit"},
    {"subject": {"role": "*"}, "action": "deregister", "target": "urn:root", "effect": "deny"},
]


def keycloak_claims(*roles, **claims):
    return dict(claims, realm_access={"roles": list(roles)})


class TestAttributeBasedAuthorizer(unittest.TestCase):
    def setUp(self):
        self.authorizer = AttributeBasedAuthorizer(
            PredefinedSetRuleChecker(parse_rules(RULES)), KeycloakRoleAuthenticator()
        )

    def test_name(self):
        self.assertEqual(self.authorizer.get_name(), "attribute_based")

    def test_admin_permitted(self):
        decision = self.authorizer.authorize(keycloak_claims("admin"), Action.REGISTER, "urn:x")
        self.assertTrue(decision.allowed)

    def test_admin_denied_by_deny_rule(self):
        decision = self.authorizer.authorize(keycloak_claims("admin"), Action.DEREGISTER, "urn:root")
        self.assertFalse(decision.allowed)

    def test_attributes_from_claims(self):
        """Test token claims are used as the identity attributes of the subject."""
        claims = keycloak_claims(tenant="acme")
        self.assertTrue(self.authorizer.authorize(claims, Action.LOOKUP_ONE, "urn:acme:1").allowed)
        self.assertFalse(self.authorizer.authorize(claims, Action.REGISTER, "urn:acme:1").allowed)

    def test_attributes_from_security_context(self):
        ctx = SecurityContext(principal="alice", claims=keycloak_claims(tenant="acme"))
        self.assertTrue(self.authorizer.authorize(ctx, Action.LOOKUP_ONE, "urn:acme:1").allowed)

    def test_request_passed_to_checker(self):
        """Test the checker receives the roles, attributes, action and target."""
        checker = MagicMock(spec=RuleChecker)
        checker.check.return_value = AuthorizationDecision.permit("ok")
        role_authenticator = MagicMock(spec=RoleAuthenticator)
        role_authenticator.get_roles.return_value = frozenset({"user"})

        authorizer = AttributeBasedAuthorizer(checker, role_authenticator)
        decision = authorizer.authorize({"tenant": "acme"}, Action.LOOKUP_ALL, None)

        self.assertTrue(decision.allowed)
        role_authenticator.get_roles.assert_called_once_with({"tenant": "acme"})
        checker.check.assert_called_once_with(
            AuthorizationRequest(
                subject=Subject(attributes={"tenant": "acme"}, roles=frozenset({"user"})),
                action=Action.LOOKUP_ALL,
                target=None,
            )
        )


class TestAuthorityBasedAuthorizer(unittest.TestCase):
    def setUp(self):
        self.authorizer = AuthorityBasedAuthorizer(AuthenticationGrantedAuthorityAuthenticator())

    def _context(self, *authorities):
        return SecurityContext(principal="svc", authorities=frozenset(authorities))

    def test_name(self):
        self.assertEqual(self.authorizer.get_name(), "authority_based")

    def test_read_authority(self):
        ctx = self._context(READ_AUTHORITY)
        self.assertTrue(self.authorizer.authorize(ctx, Action.LOOKUP_ONE, "urn:x").allowed)
        self.assertTrue(self.authorizer.authorize(ctx, Action.LOOKUP_ALL, None).allowed)
        self.assertFalse(self.authorizer.authorize(ctx, Action.REGISTER, "urn:x").allowed)
        self.assertFalse(self.authorizer.authorize(ctx, Action.DEREGISTER, "urn:x").allowed)

    def test_write_authority(self):
        """Test the write authority does not imply the read authority."""
        ctx = self._context(WRITE_AUTHORITY)
        self.assertTrue(self.authorizer.authorize(ctx, Action.REGISTER, "urn:x").allowed)
        self.assertTrue(self.authorizer.authorize(ctx, Action.DEREGISTER, "urn:x").allowed)
        self.assertFalse(self.authorizer.authorize(ctx, Action.LOOKUP_ALL, None).allowed)

    def test_deny_reason(self):
        decision = self.authorizer.authorize(self._context(), Action.REGISTER, "urn:x")
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, f"action register requires granted authority {WRITE_AUTHORITY}")

    def test_target_ignored(self):
        """Test the decision depends on the action only."""
        ctx = self._context(READ_AUTHORITY)
        self.assertEqual(
            self.authorizer.authorize(ctx, Action.LOOKUP_ONE, "urn:a"),
            self.authorizer.authorize(ctx, Action.LOOKUP_ONE, "urn:b"),
        )

    def test_custom_table(self):
        table = {action: "ROLE_registry" for action in Action}
        authorizer = AuthorityBasedAuthorizer(AuthenticationGrantedAuthorityAuthenticator(), table)
        self.assertTrue(authorizer.authorize(self._context("ROLE_registry"), Action.REGISTER, "urn:x").allowed)

    def test_incomplete_table(self):
        """Test every action needs a required authority."""
        self.assertRaises(
            ValueError,
            AuthorityBasedAuthorizer,
            AuthenticationGrantedAuthorityAuthenticator(),
            {Action.REGISTER: WRITE_AUTHORITY},
        )


if __name__ == "__main__":
    unittest.main()
