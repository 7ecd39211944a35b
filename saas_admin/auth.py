"""
Session handling and the auth gate.

Identity lives in Supabase Auth; the Django session only stores the tokens
Supabase issued. Each request gets an ``AuthGate`` that starts in CHECKING,
resolves once against Supabase, and then makes the single decision whether
the requested page renders or redirects to sign-in.
"""
import logging
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from django.urls import reverse

from .exceptions import AuthenticationError, SupabaseAPIError
from .supabase import SupabaseClient

logger = logging.getLogger(__name__)

ACCESS_TOKEN_SESSION_KEY = 'saas_admin_access_token'
REFRESH_TOKEN_SESSION_KEY = 'saas_admin_refresh_token'
USER_SESSION_KEY = 'saas_admin_user'


class AuthStatus(Enum):
    CHECKING = 'checking'
    AUTHENTICATED = 'authenticated'
    UNAUTHENTICATED = 'unauthenticated'


class AuthEvent:
    SIGNED_IN = 'SIGNED_IN'
    SIGNED_OUT = 'SIGNED_OUT'
    TOKEN_REFRESHED = 'TOKEN_REFRESHED'
    USER_UPDATED = 'USER_UPDATED'


class GateDecision(Enum):
    WAIT = 'wait'
    RENDER = 'render'
    REDIRECT = 'redirect'


class AuthGate:
    """State machine: CHECKING -> AUTHENTICATED(user) | UNAUTHENTICATED"""

    def __init__(self):
        self.status = AuthStatus.CHECKING
        self.user: Optional[Dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return self.status is AuthStatus.AUTHENTICATED

    def _authenticate(self, user: Dict[str, Any]):
        self.status = AuthStatus.AUTHENTICATED
        self.user = user

    def _unauthenticate(self):
        self.status = AuthStatus.UNAUTHENTICATED
        self.user = None

    def check(self, client: SupabaseClient) -> AuthStatus:
        """Resolve CHECKING by asking Supabase who owns the client's access token"""
        if self.status is not AuthStatus.CHECKING:
            return self.status

        if not client.access_token:
            self._unauthenticate()
            return self.status

        try:
            self._authenticate(client.get_user())
        except AuthenticationError:
            self._unauthenticate()
        except SupabaseAPIError as e:
            logger.warning(f"Session check failed, treating request as signed out: {e}")
            self._unauthenticate()
        return self.status

    def handle_event(self, event: str, session: Optional[Dict[str, Any]] = None) -> AuthStatus:
        """Apply an auth-state change without going back through CHECKING"""
        if event in (AuthEvent.SIGNED_IN, AuthEvent.TOKEN_REFRESHED, AuthEvent.USER_UPDATED):
            user = (session or {}).get('user')
            if user:
                self._authenticate(user)
            else:
                self._unauthenticate()
        elif event == AuthEvent.SIGNED_OUT:
            self._unauthenticate()
        else:
            raise ValueError(f"Unknown auth event: {event}")
        return self.status

    def decide(self, public: bool = False) -> GateDecision:
        if self.status is AuthStatus.CHECKING:
            return GateDecision.WAIT
        if public or self.is_authenticated:
            return GateDecision.RENDER
        return GateDecision.REDIRECT


def sign_in_url(next_url: Optional[str] = None) -> str:
    url = reverse('saas_admin:sign_in')
    if next_url:
        url = f"{url}?{urlencode({'next': next_url})}"
    return url


def client_for_request(request) -> SupabaseClient:
    """Supabase client acting as the request's signed-in user, if any"""
    return SupabaseClient(access_token=request.session.get(ACCESS_TOKEN_SESSION_KEY))


def user_id_for_request(request) -> Optional[str]:
    """Auth user id of the request's resolved gate, if signed in"""
    gate = getattr(request, 'auth_gate', None)
    if gate is None or not gate.user:
        return None
    return gate.user.get('id')


def store_session(request, session: Dict[str, Any]):
    request.session[ACCESS_TOKEN_SESSION_KEY] = session.get('access_token')
    request.session[REFRESH_TOKEN_SESSION_KEY] = session.get('refresh_token')
    request.session[USER_SESSION_KEY] = session.get('user')


def clear_session(request):
    for key in (ACCESS_TOKEN_SESSION_KEY, REFRESH_TOKEN_SESSION_KEY, USER_SESSION_KEY):
        request.session.pop(key, None)


def authenticate_request(request) -> AuthGate:
    """
    Build and resolve the gate for ``request``.

    An expired access token is exchanged for a new one with the stored
    refresh token before the request counts as signed out.
    """
    gate = AuthGate()
    gate.check(client_for_request(request))

    refresh_token = request.session.get(REFRESH_TOKEN_SESSION_KEY)
    if not gate.is_authenticated and refresh_token:
        try:
            session = SupabaseClient().refresh_session(refresh_token)
        except SupabaseAPIError as e:
            logger.info(f"Session refresh failed: {e}")
            clear_session(request)
        else:
            store_session(request, session)
            gate.handle_event(AuthEvent.TOKEN_REFRESHED, session)

    if gate.is_authenticated and request.session.get(USER_SESSION_KEY) != gate.user:
        request.session[USER_SESSION_KEY] = gate.user
    return gate
