from abc import ABC, abstractmethod
from uuid import UUID

from .errors import NotFoundError


class IdentityResolver(ABC):
    """Maps an already-authorized caller identity onto an account id."""

    @abstractmethod
    def resolve(self, identity: str) -> UUID: ...


class UUIDIdentityResolver(IdentityResolver):
    """Identities are the account ids themselves, in canonical UUID text form."""

    def resolve(self, identity: str) -> UUID:
        try:
            return UUID(identity)
        except (ValueError, TypeError, AttributeError):
            raise NotFoundError(f"Account {identity} not found")
