"""Authority-based authorizer.

Each registry action requires one granted authority. No rule file is read:
the action to authority table is fixed when the authorizer is created.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from regauthz.authorization.authenticators import GrantedAuthorityAuthenticator
from regauthz.authorization.provider import Action, AuthorizationDecision, Authorizer

logger = logging.getLogger(__name__)

READ_AUTHORITY = "SCOPE_registry:read"
WRITE_AUTHORITY = "SCOPE_registry:write"

DEFAULT_REQUIRED_AUTHORITIES: Dict[Action, str] = {
    Action.REGISTER: WRITE_AUTHORITY,
    Action.DEREGISTER: WRITE_AUTHORITY,
    Action.LOOKUP_ONE: READ_AUTHORITY,
    Action.LOOKUP_ALL: READ_AUTHORITY,
}


class AuthorityBasedAuthorizer(Authorizer):
    def __init__(
        self,
        granted_authority_authenticator: GrantedAuthorityAuthenticator,
        required_authorities: Optional[Mapping[Action, str]] = None,
    ) -> None:
        table = dict(DEFAULT_REQUIRED_AUTHORITIES if required_authorities is None else required_authorities)
        missing = [a.value for a in Action if a not in table]
        if missing:
            raise ValueError(f"no required authority given for actions {missing}")

        self._granted_authority_authenticator = granted_authority_authenticator
        self._required_authorities: Mapping[Action, str] = table
        logger.info("Initialized AuthorityBasedAuthorizer")

    def authorize(self, subject_information: Any, action: Action, target: Optional[str]) -> AuthorizationDecision:
        required = self._required_authorities[action]
        authorities = self._granted_authority_authenticator.get_authorities(subject_information)

        if required in authorities:
            return AuthorizationDecision.permit(f"granted authority {required}")

        return AuthorizationDecision.deny(f"action {action.value} requires granted authority {required}")

    def get_name(self) -> str:
        return "authority_based"
