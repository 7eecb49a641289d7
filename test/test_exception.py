import unittest

from regauthz.authorization.provider import AuthorizationDecision
from regauthz.common.exception import AccessDenied, ConfigurationError, ConfigurationErrorKind, RuleLoadError


class TestExceptions(unittest.TestCase):
    def test_default_message(self):
        error = RuleLoadError(path="/etc/regauthz/abac_rules.json")
        self.assertEqual(str(error), "Could not load rules from /etc/regauthz/abac_rules.json.")

        error = ConfigurationError(ConfigurationErrorKind.NOT_FOUND)
        self.assertEqual(str(error), "Invalid authorization configuration.")

    def test_configuration_error_kind(self):
        error = ConfigurationError(ConfigurationErrorKind.UNKNOWN_STRATEGY, "unknown strategy")
        self.assertEqual(error.kind, ConfigurationErrorKind.UNKNOWN_STRATEGY)
        self.assertEqual(str(error), "unknown strategy")

    def test_access_denied(self):
        decision = AuthorizationDecision.deny("no matching rule")
        error = AccessDenied(decision)
        self.assertIs(error.decision, decision)
        self.assertEqual(str(error), "no matching rule")
        self.assertEqual(str(AccessDenied(AuthorizationDecision.deny())), "Access denied.")


if __name__ == "__main__":
    unittest.main()
