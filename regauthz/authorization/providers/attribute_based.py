"""Attribute-based authorizer.

The subject's roles are obtained from the configured role authenticator and
its identity attributes from the subject information itself. The resulting
request is decided by the rule checker (deny-overrides, default deny).
"""

import logging
from typing import Any, Mapping, Optional

from regauthz.authorization.authenticators import RoleAuthenticator
from regauthz.authorization.context import SecurityContext
from regauthz.authorization.provider import Action, AuthorizationDecision, AuthorizationRequest, Authorizer, Subject
from regauthz.authorization.rules import RuleChecker

logger = logging.getLogger(__name__)


def _attributes_of(subject_information: Any) -> Mapping[str, Any]:
    if isinstance(subject_information, SecurityContext):
        return subject_information.claims
    if isinstance(subject_information, Mapping):
        return subject_information
    return {}


class AttributeBasedAuthorizer(Authorizer):
    def __init__(self, rule_checker: RuleChecker, role_authenticator: RoleAuthenticator) -> None:
        self._rule_checker = rule_checker
        self._role_authenticator = role_authenticator
        logger.info("Initialized AttributeBasedAuthorizer")

    def authorize(self, subject_information: Any, action: Action, target: Optional[str]) -> AuthorizationDecision:
        subject = Subject(
            attributes=_attributes_of(subject_information),
            roles=self._role_authenticator.get_roles(subject_information),
        )
        return self._rule_checker.check(AuthorizationRequest(subject=subject, action=action, target=target))

    def get_name(self) -> str:
        return "attribute_based"
