"""Authenticated principals and request metadata.

An :class:`Identity` is what the authorization middleware attaches to a
request after a bearer token has been validated. It is either a
:class:`LocalUser` (an end user authenticated by an access token) or a
:class:`ServicePrincipal` (another backend service authenticated by a
short-lived service token). Both expose the same role-checking surface so
route guards do not need to branch on the principal kind.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional
from uuid import UUID

from lovedev.core.config.settings import ROLE_PREFIX


def normalize_role(role: str) -> str:
    """Returns ``role`` with the ``ROLE_`` prefix, adding it when absent."""
    role = role.strip()
    return role if role.startswith(ROLE_PREFIX) else f"{ROLE_PREFIX}{role}"


@dataclass(frozen=True)
class Identity:
    """Base class for an authenticated principal."""

    authorities: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def principal(self) -> str:
        raise NotImplementedError

    @property
    def is_service(self) -> bool:
        return False

    def has_role(self, role: str) -> bool:
        return normalize_role(role) in self.authorities

    def has_any_role(self, roles: Iterable[str]) -> bool:
        return any(self.has_role(role) for role in roles)


@dataclass(frozen=True)
class LocalUser(Identity):
    """An end user authenticated with an access token."""

    user_id: Optional[UUID] = None

    @property
    def principal(self) -> str:
        return str(self.user_id)


@dataclass(frozen=True)
class ServicePrincipal(Identity):
    """A backend service authenticated with a service token."""

    service_name: str = ""

    @property
    def principal(self) -> str:
        return self.service_name

    @property
    def is_service(self) -> bool:
        return True


@dataclass(frozen=True)
class RequestContext:
    """Client metadata captured at the API edge and recorded in audit entries."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    correlation_id: Optional[str] = None
