"""MSAL-based owner credentials for Microsoft 365 calendars."""

import logging
from typing import Optional

import msal

from ..config import M365Config
from ..utils.exceptions import AuthenticationError
from .base import CredentialProvider, OwnerCredential
from .token_cache import TokenCacheManager

logger = logging.getLogger(__name__)

# Microsoft Graph PowerShell public client, usable without an app registration
DEFAULT_CLIENT_ID = "14d82eec-204b-4c2f-b7e8-296a70dab67e"


class M365CredentialProvider(CredentialProvider):
    """
    Owner credentials backed by MSAL.

    With a client secret configured the app-only client credentials flow is
    used and every owner counts as connected (the owner id selects the
    mailbox). Otherwise each owner signs in once through the device code flow
    and is found again in the token cache by username.
    """

    def __init__(
        self,
        config: M365Config,
        cache_manager: TokenCacheManager,
    ):
        client_id = config.client_id or DEFAULT_CLIENT_ID
        tenant_id = config.tenant_id or "common"
        authority = config.authority or f"https://login.microsoftonline.com/{tenant_id}"

        self.config = config
        self.cache_manager = cache_manager
        self.use_client_credentials = bool(config.client_id and config.client_secret)

        if self.use_client_credentials:
            logger.info("Initializing M365 credentials with client credentials flow (app-only)")
            self.scopes = ["https://graph.microsoft.com/.default"]
            self.app = msal.ConfidentialClientApplication(
                client_id=client_id,
                client_credential=config.client_secret,
                authority=authority,
                token_cache=cache_manager.get_cache(),
            )
        else:
            logger.info("Initializing M365 credentials with device code flow (delegated)")
            self.scopes = [
                f"https://graph.microsoft.com/{scope}" for scope in config.scopes
            ]
            self.app = msal.PublicClientApplication(
                client_id=client_id,
                authority=authority,
                token_cache=cache_manager.get_cache(),
            )

    def get_credential(self, owner_id: str) -> Optional[OwnerCredential]:
        if self.use_client_credentials:
            result = self.app.acquire_token_for_client(scopes=self.scopes)
            if result and "access_token" in result:
                return OwnerCredential(owner_id, result["access_token"], app_only=True)
            logger.warning(
                f"Client credentials token unavailable: {result.get('error_description') if result else None}"
            )
            return None

        accounts = self.app.get_accounts(username=owner_id)
        if not accounts:
            logger.info(f"Owner {owner_id} has not connected a calendar account")
            return None

        # MSAL refreshes tokens that are about to expire
        result = self.app.acquire_token_silent_with_error(
            scopes=self.scopes,
            account=accounts[0],
        )
        if result and "access_token" in result:
            logger.debug(f"Token acquired from cache for {owner_id}")
            return OwnerCredential(owner_id, result["access_token"])

        if result and "error" in result:
            logger.warning(
                f"Token refresh failed for {owner_id}: {result.get('error_description', result['error'])}; "
                "owner must reconnect"
            )
            self.disconnect_owner(owner_id)
        return None

    def connect_owner(self, owner_id: str) -> OwnerCredential:
        if self.use_client_credentials:
            credential = self.get_credential(owner_id)
            if credential is None:
                raise AuthenticationError("Client credentials authentication failed")
            return credential

        logger.info(f"Starting device code authentication flow for {owner_id}")
        flow = self.app.initiate_device_flow(scopes=self.scopes)

        if "user_code" not in flow:
            raise AuthenticationError(
                f"Failed to create device flow: {flow.get('error_description', 'Unknown error')}"
            )

        print("\n" + "=" * 70)
        print(f"AUTHENTICATION REQUIRED ({owner_id})")
        print("=" * 70)
        print(f"\n{flow['message']}\n")
        print("=" * 70 + "\n")

        result = self.app.acquire_token_by_device_flow(flow)

        if "access_token" not in result:
            error_desc = result.get("error_description", "Unknown error")
            raise AuthenticationError(f"Device code authentication failed: {error_desc}")

        username = (result.get("id_token_claims") or {}).get("preferred_username", "")
        if username.lower() != owner_id.lower():
            self.disconnect_owner(username)
            raise AuthenticationError(
                f"Signed in as {username or 'unknown user'}, expected {owner_id}"
            )

        logger.info(f"Owner {owner_id} connected")
        return OwnerCredential(owner_id, result["access_token"])

    def disconnect_owner(self, owner_id: str) -> None:
        if not owner_id:
            return
        for account in self.app.get_accounts(username=owner_id):
            self.app.remove_account(account)
        logger.info(f"Removed cached credentials for {owner_id}")

    def clear_cache(self) -> None:
        self.cache_manager.clear_cache()
