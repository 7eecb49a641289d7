"""Authorization decorator for the registry.

Every registry operation is checked by the active authorizer before it is
forwarded. A denied operation never reaches the wrapped registry and raises
``AccessDenied``, which the serving layer turns into a rejection response.
"""

import logging
from typing import List, Optional

from regauthz.authorization.authenticators import SubjectInformationProvider
from regauthz.authorization.provider import Action, AuthorizationDecision, Authorizer
from regauthz.common.exception import AccessDenied
from regauthz.registry import Registry, RegistryEntry

logger = logging.getLogger(__name__)


class AuthorizedRegistry(Registry):
    """Registry wrapper enforcing authorization on each operation.

    It keeps no state besides its collaborators and can be shared by all
    request threads.
    """

    def __init__(
        self, registry: Registry, authorizer: Authorizer, subject_information_provider: SubjectInformationProvider
    ) -> None:
        self._registry = registry
        self._authorizer = authorizer
        self._subject_information_provider = subject_information_provider

    def _authorize(self, action: Action, target: Optional[str]) -> None:
        try:
            subject_information = self._subject_information_provider.get()
            decision = self._authorizer.authorize(subject_information, action, target)
        except Exception as e:
            logger.error(
                "Authorizer %s encountered error: %s (denying by default)",
                self._authorizer.get_name(),
                e,
                exc_info=True,
            )
            decision = AuthorizationDecision.deny(f"Authorization error: {e}")

        log_msg = "Authorization %s: authorizer=%s, action=%s, target=%s, reason=%s"
        log_args = (
            "GRANTED" if decision.allowed else "DENIED",
            self._authorizer.get_name(),
            action.value,
            target,
            decision.reason,
        )

        if decision.allowed:
            logger.info(log_msg, *log_args)
            return

        logger.warning(log_msg, *log_args)
        raise AccessDenied(decision)

    def register(self, entry: RegistryEntry) -> None:
        self._authorize(Action.REGISTER, entry.identifier)
        self._registry.register(entry)

    def deregister(self, identifier: str) -> None:
        self._authorize(Action.DEREGISTER, identifier)
        self._registry.deregister(identifier)

    def lookup(self, identifier: str) -> RegistryEntry:
        self._authorize(Action.LOOKUP_ONE, identifier)
        return self._registry.lookup(identifier)

    def lookup_all(self) -> List[RegistryEntry]:
        self._authorize(Action.LOOKUP_ALL, None)
        return self._registry.lookup_all()


class AuthorizedRegistryDecorator:
    """Fully wired authorization decorator, ready to wrap a registry."""

    def __init__(self, authorizer: Authorizer, subject_information_provider: SubjectInformationProvider) -> None:
        self.authorizer = authorizer
        self.subject_information_provider = subject_information_provider

    def decorate(self, registry: Registry) -> AuthorizedRegistry:
        return AuthorizedRegistry(registry, self.authorizer, self.subject_information_provider)
