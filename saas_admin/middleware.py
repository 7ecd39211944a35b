import logging

from django.conf import settings
from django.shortcuts import redirect, render
from django.urls import reverse

from .auth import GateDecision, authenticate_request, sign_in_url
from .supabase import SupabaseClient

logger = logging.getLogger(__name__)


class AuthGateMiddleware:
    """
    Blocks every page except sign-in until Supabase confirms the session.

    Must run after SessionMiddleware and MessageMiddleware. The resolved gate
    is available to views as ``request.auth_gate``; static files pass through
    without a gate.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def is_static(self, request) -> bool:
        static_url = getattr(settings, 'STATIC_URL', None)
        return bool(static_url) and request.path.startswith(static_url)

    def is_public(self, request) -> bool:
        return request.path == reverse('saas_admin:sign_in')

    def __call__(self, request):
        request.auth_gate = None
        if self.is_static(request):
            return self.get_response(request)
        if not SupabaseClient().is_configured():
            # Pages render the configuration error themselves
            return self.get_response(request)

        gate = authenticate_request(request)
        request.auth_gate = gate

        decision = gate.decide(public=self.is_public(request))
        if decision is GateDecision.WAIT:
            return render(request, 'saas_admin/auth_checking.html', status=503)
        if decision is GateDecision.REDIRECT:
            logger.debug(f"Redirecting unauthenticated request for {request.path} to sign-in")
            return redirect(sign_in_url(request.get_full_path()))
        return self.get_response(request)
