"""Token cache management using msal-extensions."""

import logging
import sys
from pathlib import Path
from typing import Optional

from msal_extensions import (
    FilePersistence,
    KeychainPersistence,
    LibsecretPersistence,
    PersistedTokenCache,
)

from ..utils.exceptions import TokenCacheError

logger = logging.getLogger(__name__)


class TokenCacheManager:
    """Manages the owners' token cache using msal-extensions."""

    def __init__(
        self,
        cache_location: Path,
        cache_name: str = "calendar_booking_cache",
        encrypted: bool = True,
    ):
        """
        Initialize token cache manager.

        Args:
            cache_location: Directory for cache storage
            cache_name: Name of the cache file
            encrypted: Whether to encrypt the cache
        """
        self.cache_location = cache_location
        self.cache_name = cache_name
        self.encrypted = encrypted
        self._cache: Optional[PersistedTokenCache] = None

    @property
    def cache_file(self) -> Path:
        suffix = ".bin" if self.encrypted else ".json"
        return self.cache_location / f"{self.cache_name}{suffix}"

    def _persistence(self):
        if not self.encrypted:
            return FilePersistence(str(self.cache_file))
        if sys.platform == "darwin":
            return KeychainPersistence(str(self.cache_file), "calendar_booking", self.cache_name)
        if sys.platform.startswith("linux"):
            try:
                return LibsecretPersistence(
                    str(self.cache_file),
                    schema_name="calendar_booking",
                    attributes={"app": self.cache_name},
                )
            except Exception as e:
                # headless hosts usually have no secret service running
                logger.warning(f"Libsecret unavailable ({e}), using file persistence")
        return FilePersistence(str(self.cache_file))

    def get_cache(self) -> PersistedTokenCache:
        """
        Get or create the token cache.

        Returns:
            Configured PersistedTokenCache instance

        Raises:
            TokenCacheError: If cache initialization fails
        """
        if self._cache is not None:
            return self._cache

        try:
            self.cache_location.mkdir(parents=True, exist_ok=True)
            self._cache = PersistedTokenCache(self._persistence())
            logger.info(f"Token cache initialized at {self.cache_location}")
            return self._cache

        except Exception as e:
            raise TokenCacheError(f"Failed to initialize token cache: {e}") from e

    def clear_cache(self) -> None:
        """Drop the in-memory cache and delete the persisted file."""
        self._cache = None
        try:
            self.cache_file.unlink(missing_ok=True)
        except OSError as e:
            raise TokenCacheError(f"Failed to remove token cache: {e}") from e
        logger.info("Token cache cleared")
