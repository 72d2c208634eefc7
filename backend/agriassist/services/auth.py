from typing import Callable

from loguru import logger
from pydantic import ValidationError

from agriassist.errors import SupabaseError
from agriassist.models.schemas import AuthError, AuthResult, AuthSession, AuthUser
from agriassist.tools._supabase import SupabaseClient

NOT_CONFIGURED = "Database not configured. Please add Supabase credentials to .env file."

Listener = Callable[[AuthUser | None], None]


def _failure(e: SupabaseError | ValidationError) -> AuthResult:
    if isinstance(e, SupabaseError):
        return AuthResult(error=AuthError(message=str(e), status=e.status_code))
    return AuthResult(error=AuthError(message="Unexpected response from auth provider"))


class AuthBridge:
    """Sign-up / sign-in / sign-out delegated to Supabase auth, for one caller.

    A bridge holds a single caller's session, so the HTTP layer builds one per
    request and seeds it from the caller's access token. Failures come back as
    ``AuthResult.error``; nothing here raises. Without Supabase the bridge never
    touches the network and the user stays None.
    """

    def __init__(self, supabase: SupabaseClient | None, available: bool):
        self.supabase = supabase
        self.available = available and supabase is not None
        self.session: AuthSession | None = None
        self.loading = True
        self._listeners: list[Listener] = []

    @property
    def current_user(self) -> AuthUser | None:
        return self.session.user if self.session else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback for user changes. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_session(self, session: AuthSession | None):
        previous = self.current_user
        self.session = session
        if self.current_user != previous:
            for listener in list(self._listeners):
                listener(self.current_user)

    def start(self):
        """Drop any stale session so every bridge starts signed out."""
        self._set_session(None)
        self.loading = False

    def use_token(self, access_token: str):
        """Adopt a caller's access token without resolving its user."""
        if self.available and access_token:
            self._set_session(AuthSession(access_token=access_token))

    async def restore(self, access_token: str) -> AuthResult:
        """Resolve a caller's access token to their user via Supabase auth."""
        if not self.available:
            return AuthResult()
        self.loading = True
        try:
            data = await self.supabase.get_user(access_token)
            session = AuthSession(access_token=access_token, user=AuthUser(**data))
        except (SupabaseError, ValidationError) as e:
            logger.info("[auth] Access token rejected: {}", e)
            self._set_session(None)
            return _failure(e)
        finally:
            self.loading = False
        self._set_session(session)
        return AuthResult(data=data)

    async def sign_up(self, email: str, password: str) -> AuthResult:
        if not self.available:
            return AuthResult(error=AuthError(message=NOT_CONFIGURED))
        try:
            data = await self.supabase.auth("signup", {"email": email, "password": password})
            session = AuthSession(**data) if data.get("access_token") else None
        except (SupabaseError, ValidationError) as e:
            logger.warning("[auth] Sign-up failed for {}: {}", email, e)
            return _failure(e)
        if session:
            self._set_session(session)
        logger.info("[auth] Signed up {}", email)
        return AuthResult(data=data)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        if not self.available:
            return AuthResult(error=AuthError(message=NOT_CONFIGURED))
        try:
            data = await self.supabase.auth(
                "token",
                {"email": email, "password": password},
                params={"grant_type": "password"},
            )
            session = AuthSession(**data)
        except (SupabaseError, ValidationError) as e:
            logger.warning("[auth] Sign-in failed for {}: {}", email, e)
            return _failure(e)
        self._set_session(session)
        logger.info("[auth] Signed in {}", email)
        return AuthResult(data=data)

    async def sign_out(self) -> AuthResult:
        if not self.available:
            return AuthResult()
        if self.session is None:
            return AuthResult()
        try:
            await self.supabase.auth("logout", access_token=self.session.access_token)
        except SupabaseError as e:
            logger.warning("[auth] Sign-out failed: {}", e)
            return _failure(e)
        self._set_session(None)
        return AuthResult()
