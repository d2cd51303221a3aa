"""
Process-wide bearer token for the upstream travel provider.

Provider adapters share one cached client-credentials token. The token is
refreshed lazily once it is about to expire, and only one refresh runs at a
time no matter how many requests notice the expiry together.
"""
import time
import logging
import threading
from typing import Callable, Optional, Tuple

import requests

from tripledger.config import settings

logger = logging.getLogger(__name__)

# Refresh this many seconds before the provider says the token expires
EXPIRY_MARGIN_SECONDS = 30


class TokenRefreshError(Exception):
    pass


def fetch_client_credentials_token(
    token_url: Optional[str] = None,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
) -> Tuple[str, int]:
    """OAuth2 client-credentials grant; returns (access_token, expires_in seconds)."""
    token_url = token_url or settings.PROVIDER_TOKEN_URL
    if not token_url:
        raise TokenRefreshError("PROVIDER_TOKEN_URL is not configured")
    try:
        resp = requests.post(
            token_url,
            data={
                "grant_type": "client_credentials",
                "client_id": client_id or settings.PROVIDER_CLIENT_ID,
                "client_secret": client_secret or settings.PROVIDER_CLIENT_SECRET,
            },
            timeout=5,
        )
        resp.raise_for_status()
        body = resp.json()
        return body["access_token"], int(body.get("expires_in", 0))
    except (requests.RequestException, KeyError, TypeError, ValueError) as e:
        logger.error(f"Provider token fetch error: {e}")
        raise TokenRefreshError(str(e)) from e


class TokenCache:
    def __init__(
        self,
        fetcher: Callable[[], Tuple[str, int]] = fetch_client_credentials_token,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetcher = fetcher
        self._clock = clock
        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self._expires_at = 0.0

    def _valid(self) -> bool:
        return self._token is not None and self._clock() < self._expires_at

    def get_token(self) -> str:
        if self._valid():
            return self._token
        with self._lock:
            # another caller may have refreshed while we waited
            if self._valid():
                return self._token
            token, expires_in = self._fetcher()
            self._token = token
            self._expires_at = self._clock() + max(expires_in - EXPIRY_MARGIN_SECONDS, 0)
            logger.info(f"Provider token refreshed, valid for {expires_in}s")
            return token

    def invalidate(self):
        with self._lock:
            self._token = None
            self._expires_at = 0.0


provider_tokens = TokenCache()
