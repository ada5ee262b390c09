"""
Session adapters: who is signed in.

The identity is passed explicitly to whoever needs it (page orchestrators,
the CLI); nothing in cvcraft reads a global "current user".
"""

from typing import Optional

import requests

from cvcraft.base import Identity
from cvcraft.logger import get_logger

log = get_logger('session')


class LocalSession:
    """A fixed identity, for single-user local use and tests."""

    def __init__(self, identity: Optional[Identity] = None):
        self._identity = identity

    def current_user(self) -> Optional[Identity]:
        return self._identity

    def sign_out(self) -> None:
        if self._identity is not None:
            log.info(f"signed out {self._identity.id}")
        self._identity = None


class SupabaseSession:
    """Identity from Supabase Auth (GoTrue) for a given access token."""

    def __init__(
        self,
        url: str,
        key: str,
        access_token: Optional[str],
        *,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self._auth_url = f"{url.rstrip('/')}/auth/v1"
        self._key = key
        self._access_token = access_token
        self._timeout = timeout
        self._http = session or requests.Session()
        self._cached: Optional[Identity] = None

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    def _headers(self) -> dict:
        return {'apikey': self._key, 'Authorization': f'Bearer {self._access_token}'}

    def current_user(self) -> Optional[Identity]:
        """The signed-in user, or None when signed out or unreachable."""
        if not self._access_token:
            return None
        if self._cached is not None:
            return self._cached
        try:
            response = self._http.get(
                f'{self._auth_url}/user', headers=self._headers(), timeout=self._timeout
            )
            response.raise_for_status()
            data = response.json()
            identity = Identity(id=str(data['id']), email=data.get('email'))
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            log.warning(f"could not fetch current user: {e}")
            return None
        self._cached = identity
        return self._cached

    def sign_out(self) -> None:
        if self._access_token:
            try:
                self._http.post(
                    f'{self._auth_url}/logout',
                    headers=self._headers(),
                    timeout=self._timeout,
                ).raise_for_status()
            except requests.RequestException as e:
                log.warning(f"remote sign-out failed: {e}")
        self._access_token = None
        self._cached = None
