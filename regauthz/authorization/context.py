"""Ambient security context of the request being served.

Authentication happens upstream of the authorization layer (for instance in
a bearer-token middleware). Its result is published for the duration of a
request through ``security_context_var`` and read back by the subject
information providers.
"""

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Generator, Optional


@dataclass(frozen=True)
class SecurityContext:
    """Already-authenticated caller.

    Attributes:
        principal: Name of the authenticated principal, None if anonymous
        claims: Claims of the validated bearer token (empty if none)
        authorities: Authorities granted by the authentication mechanism
    """

    principal: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)
    authorities: FrozenSet[str] = frozenset()

    @property
    def authenticated(self) -> bool:
        return self.principal is not None


ANONYMOUS = SecurityContext()

security_context_var: contextvars.ContextVar[SecurityContext] = contextvars.ContextVar("security_context")


def current_security_context() -> SecurityContext:
    """Return the security context of the current request, anonymous if unset."""
    return security_context_var.get(ANONYMOUS)


@contextmanager
def security_context(context: SecurityContext) -> Generator[SecurityContext, None, None]:
    """Publish ``context`` as the ambient security context within the block."""
    token = security_context_var.set(context)
    try:
        yield context
    finally:
        security_context_var.reset(token)
