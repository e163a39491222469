"""Abstract base class for calendar owner credentials."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class OwnerCredential:
    """A valid access credential for one calendar owner."""

    owner_id: str
    access_token: str
    # app-only tokens act on any mailbox instead of the signed-in user
    app_only: bool = False


class CredentialProvider(ABC):
    """Source of provider credentials for calendar owners."""

    @abstractmethod
    def get_credential(self, owner_id: str) -> Optional[OwnerCredential]:
        """
        Get a valid credential for an owner without user interaction.

        Tokens close to expiry are refreshed here. An owner whose refresh
        fails is forgotten and has to connect again.

        Returns:
            OwnerCredential, or None if the owner is not connected
        """

    @abstractmethod
    def connect_owner(self, owner_id: str) -> OwnerCredential:
        """
        Connect an owner interactively.

        Raises:
            AuthenticationError: If authentication fails
        """

    @abstractmethod
    def disconnect_owner(self, owner_id: str) -> None:
        """Forget the cached credentials of an owner."""

    @abstractmethod
    def clear_cache(self) -> None:
        """Clear all cached tokens."""
