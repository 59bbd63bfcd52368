import logging
import secrets
from dataclasses import dataclass
from typing import Any, Dict
from urllib.parse import urlencode

import httpx

from .config import Settings
from .errors import InvalidState, TokenExchangeFailed
from .stores import Credential, SessionStore, TokenStore

logger = logging.getLogger(__name__)


@dataclass
class AuthorizationResult:
    user_id: str
    token_data: Dict[str, Any]
    credential: Credential


class PolarOAuthClient:
    """
    Polar Flow authorization-code flow.
    Sessions bind each redirect to its callback; tokens land in the token store.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        sessions: SessionStore,
        tokens: TokenStore,
    ):
        self.settings = settings
        self.http_client = http_client
        self.sessions = sessions
        self.tokens = tokens

    @property
    def authorization_endpoint(self) -> str:
        return f"{self.settings.POLAR_AUTH_BASE_URL}/oauth2/authorization"

    @property
    def token_endpoint(self) -> str:
        return f"{self.settings.POLAR_AUTH_BASE_URL}/oauth2/token"

    def start_authorization(self, user_id: str) -> str:
        """
        Returns the Polar authorization URL for the user.
        The caller should redirect the browser to it.
        """
        expired = self.sessions.cleanup()
        if expired:
            logger.info(f"Pruned {expired} abandoned OAuth sessions")

        state = secrets.token_hex(32)
        self.sessions.create(state, user_id)

        params = {
            "response_type": "code",
            "client_id": self.settings.POLAR_CLIENT_ID,
            "redirect_uri": self.settings.redirect_uri,
            "scope": self.settings.POLAR_SCOPE,
            "state": state,
        }
        logger.info(f"Starting Polar authorization for user {user_id}")
        return f"{self.authorization_endpoint}?{urlencode(params)}"

    async def complete_authorization(self, code: str, state: str) -> AuthorizationResult:
        """
        Exchange the authorization code for an access token.
        The state is claimed before the exchange and handed back if it fails,
        so a retry works but two callbacks can never both use it.
        """
        session = self.sessions.pop(state)
        if session is None:
            logger.warning("Rejected Polar callback with unknown or expired state")
            raise InvalidState(state)

        try:
            token_data = await self._exchange_code(code, session.user_id)
        except Exception:
            self.sessions.restore(session)
            raise

        expires_in = token_data.get("expires_in")
        credential = Credential(
            user_id=session.user_id,
            access_token=token_data["access_token"],
            token_type=token_data.get("token_type") or "Bearer",
            expires_in=int(expires_in) if expires_in is not None else None,
            acquired_at=self.tokens.now(),
        )
        self.tokens.put(credential)

        logger.info(f"Stored Polar access token for user {session.user_id}")
        return AuthorizationResult(user_id=session.user_id, token_data=token_data, credential=credential)

    async def _exchange_code(self, code: str, user_id: str) -> Dict[str, Any]:
        response = await self.http_client.post(
            self.token_endpoint,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.settings.redirect_uri,
                "client_id": self.settings.POLAR_CLIENT_ID,
                "client_secret": self.settings.POLAR_CLIENT_SECRET,
            },
            headers={"Accept": "application/json"},
        )

        if not response.is_success:
            logger.error(f"Token exchange failed for user {user_id}: {response.status_code}")
            raise TokenExchangeFailed(response.status_code, response.text)

        try:
            token_data = response.json()
        except ValueError:
            token_data = None
        if not isinstance(token_data, dict) or not token_data.get("access_token"):
            logger.error(f"Token response for user {user_id} carried no access token")
            raise TokenExchangeFailed(response.status_code, response.text)
        return token_data
