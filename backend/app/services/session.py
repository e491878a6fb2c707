"""
Session boundary: token pairs as HTTP cookies.
"""
from typing import Any, Dict, Optional

from fastapi import Request, Response

from app.core.config import Settings, settings
from app.schemas import TokenPair

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


class SessionBoundary:
    """Sets, clears and reads the `accessToken`/`refreshToken` cookies."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def cookie_options(self) -> Dict[str, Any]:
        return {
            "httponly": True,
            "secure": self.settings.secure_cookies,
            "path": "/",
        }

    def set_session_cookies(self, response: Response, tokens: TokenPair) -> None:
        options = self.cookie_options()
        response.set_cookie(
            ACCESS_COOKIE,
            tokens.access_token,
            max_age=self.settings.access_token_expire_minutes * 60,
            **options,
        )
        response.set_cookie(
            REFRESH_COOKIE,
            tokens.refresh_token,
            max_age=self.settings.refresh_token_expire_days * 24 * 60 * 60,
            **options,
        )

    def clear_session_cookies(self, response: Response) -> None:
        options = self.cookie_options()
        response.delete_cookie(ACCESS_COOKIE, **options)
        response.delete_cookie(REFRESH_COOKIE, **options)

    @staticmethod
    def read_access_token(request: Request) -> Optional[str]:
        """Access token from the cookie, falling back to a Bearer header."""
        token = request.cookies.get(ACCESS_COOKIE)
        if token:
            return token

        authorization = request.headers.get("Authorization", "")
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
        return None

    @staticmethod
    def read_refresh_token(request: Request, body_token: Optional[str] = None) -> Optional[str]:
        """Refresh token from the cookie, falling back to the request body."""
        return request.cookies.get(REFRESH_COOKIE) or body_token or None


# Global session boundary instance
session_boundary = SessionBoundary(settings)
