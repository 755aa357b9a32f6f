import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from app.core.http_client import SupabaseHTTPClient
from app.schemas.auth import AuthSession, AuthUser

logger = logging.getLogger(__name__)


class AuthClient(SupabaseHTTPClient):
    async def get_user(self, access_token: str) -> Optional[AuthUser]:
        """Resolve the user behind ``access_token``; None means no session."""
        if not access_token:
            return None
        try:
            client = await self._get_client()
            response = await client.get(
                f"{self.base_url}/auth/v1/user",
                headers=self._headers(access_token),
            )
            if response.status_code in (401, 403):
                logger.info(f"Access token rejected by auth service: {response.status_code}")
                return None
            response.raise_for_status()
            return AuthUser.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            logger.error(f"User lookup failed with status {e.response.status_code}: {str(e)}")
            return None
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            logger.error(f"User lookup failed: {str(e)}")
            return None


class TokenSessionProvider:
    """Session provider bound to the access token of the current seller."""

    def __init__(self, auth_client: AuthClient, access_token: Optional[str] = None):
        self.auth_client = auth_client
        self.access_token = access_token
        self._user: Optional[AuthUser] = None
        self._user_token: Optional[str] = None

    def use_token(self, access_token: Optional[str]) -> None:
        if access_token != self.access_token:
            self.access_token = access_token
            self._user = None
            self._user_token = None

    def current_token(self) -> Optional[str]:
        return self.access_token

    async def get_current_user(self) -> Optional[AuthUser]:
        token = self.access_token
        if not token:
            return None
        if self._user is not None and self._user_token == token:
            return self._user
        user = await self.auth_client.get_user(token)
        if user is not None:
            self._user = user
            self._user_token = token
        return user

    async def get_current_session(self) -> Optional[AuthSession]:
        user = await self.get_current_user()
        if user is None:
            return None
        return AuthSession(access_token=self.access_token, user=user)
