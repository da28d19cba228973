"""Firebase Auth REST client with a push-based current-identity stream."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

import httpx
from jose import JWTError, jwt

from filebox.config import settings
from filebox.services import errors
from filebox.services.errors import AuthError, ProviderUnavailable

if TYPE_CHECKING:
    from filebox.services.session_store import SessionStore

logger = logging.getLogger(__name__)

IdentityListener = Callable[["Identity | None"], None]

TOKEN_REFRESH_MARGIN = 60  # seconds before exp

# Identity Toolkit error messages -> normalized codes
_PROVIDER_CODES = {
    "EMAIL_EXISTS": errors.EMAIL_IN_USE,
    "INVALID_EMAIL": errors.INVALID_EMAIL,
    "WEAK_PASSWORD": errors.WEAK_PASSWORD,
    "EMAIL_NOT_FOUND": errors.USER_NOT_FOUND,
    "USER_NOT_FOUND": errors.USER_NOT_FOUND,
    "INVALID_PASSWORD": errors.INVALID_CREDENTIALS,
    "INVALID_LOGIN_CREDENTIALS": errors.INVALID_CREDENTIALS,
    "TOO_MANY_ATTEMPTS_TRY_LATER": errors.TOO_MANY_REQUESTS,
    "USER_DISABLED": errors.USER_DISABLED,
    "TOKEN_EXPIRED": errors.SESSION_EXPIRED,
    "INVALID_REFRESH_TOKEN": errors.SESSION_EXPIRED,
}

_SESSION_ENDING_CODES = (errors.SESSION_EXPIRED, errors.USER_NOT_FOUND, errors.USER_DISABLED)


@dataclass(frozen=True)
class Identity:
    uid: str
    email: str
    id_token: str
    refresh_token: str

    def __repr__(self) -> str:
        return f"Identity(uid={self.uid!r}, email={self.email!r})"


def _provider_error(resp: httpx.Response) -> AuthError:
    """Build an AuthError from an Identity Toolkit error body.

    Messages look like ``EMAIL_EXISTS`` or
    ``WEAK_PASSWORD : Password should be at least 6 characters``.
    """
    try:
        message = resp.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        message = f"HTTP {resp.status_code}"
    raw = message.split(":")[0].strip().split(" ")[0]
    return AuthError(_PROVIDER_CODES.get(raw, errors.UNKNOWN), message)


def token_expires_soon(id_token: str, margin: float = TOKEN_REFRESH_MARGIN) -> bool:
    """True if the token's ``exp`` claim is within ``margin`` seconds or unreadable."""
    try:
        claims = jwt.get_unverified_claims(id_token)
        exp = float(claims["exp"])
    except (JWTError, KeyError, TypeError, ValueError):
        return True
    return exp - time.time() < margin


class FirebaseAuthSession:
    """Email/password sessions against the Identity Toolkit REST API."""

    def __init__(
        self,
        api_key: str | None = None,
        auth_url: str | None = None,
        token_url: str | None = None,
        session_store: SessionStore | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key or settings.api_key
        self._accounts_url = (auth_url or settings.auth_url).rstrip("/") + "/v1/accounts"
        self._token_url = (token_url or settings.token_url).rstrip("/") + "/v1/token"
        self._store = session_store
        self._timeout = timeout or settings.request_timeout_seconds
        self._transport = transport
        self._identity: Identity | None = None
        self._listeners: list[IdentityListener] = []
        self._refresh_lock = asyncio.Lock()

    @property
    def identity(self) -> Identity | None:
        return self._identity

    def subscribe(self, callback: IdentityListener) -> Callable[[], None]:
        """Register ``callback`` and call it once with the current identity.

        Returns a function that removes the subscription.
        """
        self._listeners.append(callback)
        callback(self._identity)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def _emit(self) -> None:
        for callback in list(self._listeners):
            try:
                callback(self._identity)
            except Exception:
                logger.exception("Identity listener %r failed", callback)

    async def restore(self) -> Identity | None:
        """Resume the session persisted by a previous run, if any."""
        if self._store is None:
            return None
        identity = await self._store.load()
        if identity is not None:
            logger.info("Restored session for %s", identity.email)
            self._identity = identity
            self._emit()
        return identity

    async def _post(self, url: str, **kwargs: Any) -> dict:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                resp = await client.post(url, params={"key": self._api_key}, **kwargs)
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"Auth provider unreachable: {e}") from e
        if resp.status_code != 200:
            raise _provider_error(resp)
        return resp.json()

    async def _start_session(self, data: dict, email: str) -> Identity:
        identity = Identity(
            uid=data["localId"],
            email=data.get("email") or email,
            id_token=data["idToken"],
            refresh_token=data["refreshToken"],
        )
        self._identity = identity
        if self._store is not None:
            await self._store.save(identity)
        logger.info("Signed in as %s (uid=%s)", identity.email, identity.uid)
        self._emit()
        return identity

    async def sign_up(self, email: str, password: str) -> Identity:
        """Create the account; the provider signs the new user in."""
        data = await self._post(
            f"{self._accounts_url}:signUp",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        return await self._start_session(data, email)

    async def sign_in(self, email: str, password: str) -> Identity:
        data = await self._post(
            f"{self._accounts_url}:signInWithPassword",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        return await self._start_session(data, email)

    async def sign_out(self) -> None:
        """Forget the session locally — Firebase has no server-side sign-out."""
        previous = self._identity
        self._identity = None
        if self._store is not None:
            await self._store.clear()
        if previous is not None:
            logger.info("Signed out %s", previous.email)
        self._emit()

    async def get_id_token(self) -> str | None:
        """Current id token, refreshed first when it is about to expire."""
        identity = self._identity
        if identity is None:
            return None
        if not token_expires_soon(identity.id_token):
            return identity.id_token

        async with self._refresh_lock:
            identity = self._identity
            if identity is None:
                return None
            if token_expires_soon(identity.id_token):
                identity = await self._refresh(identity)
        return identity.id_token

    async def _refresh(self, identity: Identity) -> Identity:
        try:
            data = await self._post(
                self._token_url,
                data={"grant_type": "refresh_token", "refresh_token": identity.refresh_token},
            )
        except AuthError as e:
            if e.code in _SESSION_ENDING_CODES:
                logger.warning("Token refresh rejected (%s) — signing out", e.code)
                await self.sign_out()
            raise

        refreshed = Identity(
            uid=data.get("user_id") or identity.uid,
            email=identity.email,
            id_token=data["id_token"],
            refresh_token=data.get("refresh_token") or identity.refresh_token,
        )
        self._identity = refreshed
        if self._store is not None:
            await self._store.save(refreshed)
        logger.debug("Refreshed id token for uid=%s", refreshed.uid)
        return refreshed
