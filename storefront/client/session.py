"""
Client-side session state.

The SessionManager owns the signed-in user and the stored tokens. It is
built once at application start and handed to whatever needs it:

    with SessionManager(services, on_logout=navigate) as session:
        session.login('jane@example.com', 'secret123')

Concurrent token refreshes share one in-flight attempt; every caller gets
the result of that attempt.
"""
import logging
import threading
from concurrent.futures import Future
from typing import Callable, Optional

from . import routes
from .exceptions import ApiError, AuthenticationError, NetworkError
from .services import StorefrontServices
from .storage import REFRESH_TOKEN_KEY, TOKEN_KEY

logger = logging.getLogger(__name__)

ANONYMOUS = 'anonymous'
LOADING = 'loading'
AUTHENTICATED = 'authenticated'


class SessionManager:
    def __init__(self, services: StorefrontServices, on_logout: Optional[Callable[[str], None]] = None):
        self.services = services
        self.api = services.api
        self.store = services.api.store
        self.on_logout = on_logout

        self.state = ANONYMOUS
        self.user: Optional[dict] = None
        self.error: Optional[str] = None

        self._lock = threading.Lock()
        self._pending_refresh: Optional[Future] = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.stop()
        return False

    @property
    def token(self) -> Optional[str]:
        return self.store.get(TOKEN_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self.state == AUTHENTICATED

    @property
    def is_loading(self) -> bool:
        return self.state == LOADING

    # Lifecycle

    def start(self) -> str:
        """Restore a stored session, refreshing the access token at most once"""
        self.api.set_refresher(self.refresh)

        if not (self.store.get(TOKEN_KEY) and self.store.get_user()):
            self._set_anonymous()
            return self.state

        self.state = LOADING
        try:
            user = self._verify()
            if user is None and self.store.get(REFRESH_TOKEN_KEY) and self.refresh():
                user = self._verify()
        except NetworkError as e:
            logger.warning(f"Could not verify the stored session: {e}")
            user = None

        if user is None:
            self.store.clear_credentials()
            self._set_anonymous()
        else:
            self._set_authenticated(user)
        return self.state

    def stop(self) -> None:
        self.api.set_refresher(None)
        with self._lock:
            pending = self._pending_refresh
        if pending is not None and not pending.done():
            logger.info("Stopping session while a token refresh is still running")

    def _verify(self) -> Optional[dict]:
        response = self.services.auth.get_current_user(retry=False)
        if response.success and response.data and response.data.get('user'):
            return response.data['user']
        return None

    # Sign-in / sign-out

    def login(self, identifier: str, password: str) -> dict:
        return self._authenticate(
            lambda: self.services.auth.login(identifier, password),
            'Login failed',
        )

    def register(self, user_data: dict) -> dict:
        return self._authenticate(
            lambda: self.services.auth.register(user_data),
            'Registration failed',
        )

    def _authenticate(self, call, fallback_message) -> dict:
        self.state = LOADING
        self.error = None
        try:
            response = call()
        except ApiError as e:
            self.error = e.message or fallback_message
            self._set_anonymous(keep_error=True)
            raise

        data = response.data or {}
        access_token = data.get('access_token')
        if not response.success or not access_token:
            message = response.message or fallback_message
            if response.success:
                message = 'No token received from server'
            self.error = message
            self._set_anonymous(keep_error=True)
            raise AuthenticationError(message, status_code=response.status_code, errors=response.errors)

        self.store.set(TOKEN_KEY, access_token)
        if data.get('refresh_token'):
            self.store.set(REFRESH_TOKEN_KEY, data['refresh_token'])
        else:
            self.store.remove(REFRESH_TOKEN_KEY)
        self.store.set_user(data['user'])
        self._set_authenticated(data['user'])
        return data['user']

    def logout(self) -> None:
        refresh_token = self.store.get(REFRESH_TOKEN_KEY)
        if self.store.get(TOKEN_KEY):
            try:
                self.services.auth.logout(refresh_token)
            except NetworkError as e:
                logger.info(f"Server logout skipped: {e}")
        self.store.clear_credentials()
        self._set_anonymous()
        if self.on_logout is not None:
            self.on_logout(routes.LOGIN)

    # Token refresh

    def refresh(self) -> bool:
        """Get a new access token. Callers arriving while a refresh runs share its result."""
        with self._lock:
            pending = self._pending_refresh
            owner = pending is None
            if owner:
                pending = Future()
                self._pending_refresh = pending

        if not owner:
            return pending.result()

        try:
            result = self._refresh_once()
        except Exception as e:
            pending.set_exception(e)
            raise
        else:
            pending.set_result(result)
        finally:
            with self._lock:
                self._pending_refresh = None
        return result

    def _refresh_once(self) -> bool:
        refresh_token = self.store.get(REFRESH_TOKEN_KEY)
        if not refresh_token:
            self._drop_credentials()
            return False

        try:
            response = self.services.auth.refresh_token(refresh_token)
        except NetworkError as e:
            logger.warning(f"Token refresh failed: {e}")
            self._drop_credentials()
            return False

        data = response.data or {}
        if not response.success or not data.get('access_token'):
            logger.info(f"Token refresh rejected: {response.message}")
            self._drop_credentials()
            return False

        self.store.set(TOKEN_KEY, data['access_token'])
        if data.get('refresh_token'):
            self.store.set(REFRESH_TOKEN_KEY, data['refresh_token'])
        return True

    def _drop_credentials(self):
        self.store.clear_credentials()
        if self.state != LOADING:
            self._set_anonymous()

    # State helpers

    def update_user(self, user: dict) -> None:
        self.user = user
        self.store.set_user(user)

    def clear_error(self) -> None:
        self.error = None

    def _set_authenticated(self, user):
        self.user = user
        self.error = None
        self.state = AUTHENTICATED

    def _set_anonymous(self, keep_error=False):
        self.user = None
        if not keep_error:
            self.error = None
        self.state = ANONYMOUS
