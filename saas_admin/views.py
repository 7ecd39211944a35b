import logging
from dataclasses import asdict
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from django.contrib import messages
from django.http import Http404, HttpResponseBadRequest, JsonResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from .auth import (
    AuthEvent,
    clear_session,
    client_for_request,
    sign_in_url,
    store_session,
    user_id_for_request,
)
from .dashboard import get_dashboard_stats
from .entities import EntityConfig, get_entity
from .exceptions import RecordNotFound, RecordValidationError, SupabaseAPIError
from .forms import ProfileForm, SignInForm
from .listing import apply, state_from_query, state_to_query
from .navigation import SidebarState
from .services import EntityRepository, table_is_empty
from .supabase import SupabaseClient

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = 'first_name,middle_name,last_name,age,phone,email'


def _config_error(request):
    return render(request, 'saas_admin/config_error.html', {
        'title': 'SaaS Admin - Configuration Error',
        'error_message': 'SAAS_ADMIN settings are missing or invalid. '
                         'Please configure SUPABASE_URL and ANON_KEY in settings.py',
    })


def _safe_redirect_target(request, target: Optional[str], fallback: str) -> str:
    if target and url_has_allowed_host_and_scheme(
        target, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return target
    return fallback


def _list_url(entity: EntityConfig, query: Dict[str, str]) -> str:
    url = reverse('saas_admin:entity_list', kwargs={'entity': entity.key})
    return f"{url}?{urlencode(query)}" if query else url


def _mutable_entity(key: str) -> EntityConfig:
    entity = get_entity(key)
    if entity.read_only:
        raise Http404(f"{entity.title} is read-only")
    return entity


def dashboard_view(request):
    """
    Display dashboard with platform totals.
    """
    client = client_for_request(request)

    if not client.is_configured():
        return _config_error(request)

    context = {
        'title': 'Dashboard',
    }

    try:
        context['stats'] = get_dashboard_stats(client, user_id_for_request(request))
        context['api_healthy'] = True
    except SupabaseAPIError as e:
        logger.error(f"Supabase API error in dashboard_view: {str(e)}", exc_info=True)
        context['stats'] = None
        context['api_healthy'] = False
        messages.error(
            request,
            'Unable to load dashboard data. The API is not responding. Please try again later.'
        )

    return render(request, 'saas_admin/dashboard.html', context)


def _render_list(request, entity: EntityConfig, repo: EntityRepository,
                 dialog: Optional[Dict[str, Any]] = None):
    """Render the entity table, optionally with a dialog open over it"""
    state = state_from_query(request.GET, entity)
    list_query = state_to_query(state)

    context = {
        'title': entity.title,
        'entity': entity,
        'state': state,
        'list_query': urlencode(list_query),
        'list_url': _list_url(entity, list_query),
        'filter_chips': [
            {
                'label': spec.label,
                'value': state.active_filters[spec.name],
                'remove_url': _list_url(entity, {k: v for k, v in list_query.items() if k != spec.name}),
            }
            for spec in entity.filters if spec.name in state.active_filters
        ],
        'reset_url': _list_url(
            entity,
            {k: v for k, v in list_query.items() if k in ('sort', 'dir')},
        ),
        'dialog': dialog,
    }

    try:
        items = repo.fetch()
        context['records'] = apply(items, state, entity)
        context['total'] = len(items)
        context['api_healthy'] = True
    except (SupabaseAPIError, RecordValidationError) as e:
        logger.error(f"Failed to load {entity.key}: {e}", exc_info=True)
        context['records'] = []
        context['total'] = 0
        context['api_healthy'] = False
        context['load_error'] = str(e)
        messages.error(request, f'Unable to load {entity.nav_label.lower()}: {e}')

    return render(request, 'saas_admin/entity_list.html', context)


def _dialog_from_query(request, entity: EntityConfig, repo: EntityRepository) -> Optional[Dict[str, Any]]:
    """Open the create, edit or delete dialog requested by the query string"""
    if entity.read_only:
        return None

    query = state_to_query(state_from_query(request.GET, entity))

    if request.GET.get('dialog') == 'new':
        return {
            'mode': 'create',
            'form': entity.form_class.for_create(),
            'action': _mutation_url('entity_create', entity, query),
        }

    for mode, param, url_name in (('edit', 'edit', 'entity_edit'), ('delete', 'delete', 'entity_delete')):
        record_id = request.GET.get(param)
        if not record_id:
            continue
        try:
            record = repo.get(record_id)
        except RecordNotFound as e:
            messages.error(request, str(e))
            return None
        except (SupabaseAPIError, RecordValidationError):
            # The table render reports the failure
            return None
        dialog = {
            'mode': mode,
            'record': record,
            'action': _mutation_url(url_name, entity, query, record_id=record.pk),
        }
        if mode == 'edit':
            dialog['form'] = entity.form_class.for_edit(record)
        return dialog

    return None


def _mutation_url(url_name: str, entity: EntityConfig, query: Dict[str, str], **kwargs) -> str:
    url = reverse(f'saas_admin:{url_name}', kwargs={'entity': entity.key, **kwargs})
    return f"{url}?{urlencode(query)}" if query else url


def entity_list_view(request, entity):
    """
    Display the filterable, sortable table for one entity.
    """
    entity = get_entity(entity)
    client = client_for_request(request)

    if not client.is_configured():
        return _config_error(request)

    repo = EntityRepository(entity, client, user_id=user_id_for_request(request))
    try:
        dialog = _dialog_from_query(request, entity, repo)
        return _render_list(request, entity, repo, dialog)
    finally:
        repo.dispose()


@require_POST
def entity_create_view(request, entity):
    entity = _mutable_entity(entity)
    client = client_for_request(request)

    if not client.is_configured():
        return _config_error(request)

    repo = EntityRepository(entity, client, user_id=user_id_for_request(request))
    form = entity.form_class.for_create(data=request.POST)
    try:
        if form.is_valid():
            try:
                repo.create(form.to_payload())
            except SupabaseAPIError as e:
                logger.error(f"Failed to create {entity.key}: {e}")
                messages.error(request, f'Error: {e.message}')
            else:
                messages.success(request, f'{entity.singular} created')
                return redirect(_list_url(entity, state_to_query(state_from_query(request.GET, entity))))

        return _render_list(request, entity, repo, {
            'mode': 'create',
            'form': form,
            'action': request.get_full_path(),
        })
    finally:
        repo.dispose()


@require_POST
def entity_edit_view(request, entity, record_id):
    entity = _mutable_entity(entity)
    client = client_for_request(request)

    if not client.is_configured():
        return _config_error(request)

    repo = EntityRepository(entity, client, user_id=user_id_for_request(request))
    form = entity.form_class(data=request.POST)
    list_url = _list_url(entity, state_to_query(state_from_query(request.GET, entity)))
    try:
        if form.is_valid():
            try:
                repo.update(record_id, form.to_payload())
            except RecordNotFound as e:
                messages.error(request, str(e))
                return redirect(list_url)
            except SupabaseAPIError as e:
                logger.error(f"Failed to update {entity.key} id={record_id}: {e}")
                messages.error(request, f'Error: {e.message}')
            else:
                messages.success(request, f'{entity.singular} updated')
                return redirect(list_url)

        return _render_list(request, entity, repo, {
            'mode': 'edit',
            'form': form,
            'record_id': record_id,
            'action': request.get_full_path(),
        })
    finally:
        repo.dispose()


@require_POST
def entity_delete_view(request, entity, record_id):
    entity = _mutable_entity(entity)
    client = client_for_request(request)

    if not client.is_configured():
        return _config_error(request)

    repo = EntityRepository(entity, client, user_id=user_id_for_request(request))
    try:
        try:
            repo.delete(record_id)
        except SupabaseAPIError as e:
            logger.error(f"Failed to delete {entity.key} id={record_id}: {e}")
            messages.error(request, f'Error: {e.message}')
            return _render_list(request, entity, repo, {
                'mode': 'delete',
                'record_id': record_id,
                'action': request.get_full_path(),
            })

        messages.success(request, f'{entity.singular} deleted')
        return redirect(_list_url(entity, state_to_query(state_from_query(request.GET, entity))))
    finally:
        repo.dispose()


def sign_in_view(request):
    """
    Email/password sign-in, with sign-up offered while there are no users.
    """
    client = SupabaseClient()

    if not client.is_configured():
        return _config_error(request)

    dashboard_url = reverse('saas_admin:dashboard')
    next_url = request.POST.get('next') or request.GET.get('next') or ''
    target = _safe_redirect_target(request, next_url, dashboard_url)
    if target.startswith(reverse('saas_admin:sign_in')):
        target = dashboard_url

    gate = getattr(request, 'auth_gate', None)
    if request.method == 'GET' and gate is not None and gate.is_authenticated:
        return redirect(target)

    form = SignInForm(request.POST or None)
    error = None

    if request.method == 'POST' and form.is_valid():
        email = form.cleaned_data['email']
        password = form.cleaned_data['password']
        signing_up = request.POST.get('action') == 'sign_up'
        try:
            if signing_up:
                client.sign_up(email, password)
                messages.success(request, 'Sign Up Success: check your email to confirm your account.')
            else:
                session = client.sign_in_with_password(email, password)
                store_session(request, session)
                request.session.cycle_key()
                if gate is not None:
                    gate.handle_event(AuthEvent.SIGNED_IN, session)
                logger.info(f"Signed in {email}")
                return redirect(target)
        except SupabaseAPIError as e:
            error = e.message
            label = 'Sign Up Failed' if signing_up else 'Sign In Failed'
            messages.error(request, f'{label}: {e.message}')

    return render(request, 'saas_admin/sign_in.html', {
        'title': 'Sign In',
        'form': form,
        'error': error,
        'next': next_url,
        'show_sign_up': table_is_empty(client, 'users'),
    })


@require_POST
def sign_out_view(request):
    client = client_for_request(request)

    if client.is_configured():
        try:
            client.sign_out()
        except SupabaseAPIError as e:
            logger.warning(f"Remote sign-out failed, clearing local session anyway: {e}")

    clear_session(request)
    gate = getattr(request, 'auth_gate', None)
    if gate is not None:
        gate.handle_event(AuthEvent.SIGNED_OUT)
    messages.info(request, 'Signed out')
    return redirect(sign_in_url())


def _load_profile(client: SupabaseClient, user: Dict[str, Any]) -> Dict[str, Any]:
    """The signed-in user's row in the users table, looked up by id then email"""
    rows = []
    if user.get('id'):
        try:
            rows = client.select('users', filters={'id': f"eq.{user['id']}"}, columns=PROFILE_COLUMNS, limit=1)
        except SupabaseAPIError as e:
            logger.info(f"Profile lookup by id failed, trying email: {e}")
    if not rows and user.get('email'):
        rows = client.select('users', filters={'email': f"eq.{user['email']}"}, columns=PROFILE_COLUMNS, limit=1)

    row = rows[0] if rows else {}
    profile = {name: row.get(name) if row.get(name) is not None else '' for name in ProfileForm.base_fields}
    profile['email'] = row.get('email') or user.get('email') or ''
    return profile


def profile_view(request):
    """
    Display and save the signed-in user's profile.
    """
    client = client_for_request(request)

    if not client.is_configured():
        return _config_error(request)

    gate = getattr(request, 'auth_gate', None)
    if gate is None or not gate.is_authenticated:
        return redirect(sign_in_url(request.get_full_path()))
    user = gate.user

    if request.method == 'POST':
        form = ProfileForm(request.POST)
        if form.is_valid():
            try:
                client.upsert('users', {
                    **form.cleaned_data,
                    'id': user.get('id'),
                    'status': 'active',
                }, on_conflict='email')
            except SupabaseAPIError as e:
                logger.error(f"Failed to save profile: {e}")
                messages.error(request, f'Save failed: {e.message}')
            else:
                EntityRepository(get_entity('users'), client, user_id=user.get('id')).invalidate()
                messages.success(request, 'Profile saved')
                return redirect('saas_admin:profile')
    else:
        try:
            form = ProfileForm(initial=_load_profile(client, user))
        except SupabaseAPIError as e:
            logger.error(f"Failed to load profile: {e}", exc_info=True)
            messages.error(request, 'Unable to load profile. Please try again later.')
            form = ProfileForm(initial={'email': user.get('email', '')})

    return render(request, 'saas_admin/profile.html', {
        'title': 'Profile',
        'form': form,
    })


def _sidebar_response(request, state: SidebarState):
    if request.headers.get('x-requested-with') == 'XMLHttpRequest':
        return JsonResponse(asdict(state))
    fallback = reverse('saas_admin:dashboard')
    return redirect(_safe_redirect_target(
        request, request.POST.get('next') or request.META.get('HTTP_REFERER'), fallback
    ))


@require_POST
def sidebar_toggle_view(request):
    state = SidebarState.from_session(request.session).toggle()
    state.save(request.session)
    return _sidebar_response(request, state)


@require_POST
def viewport_view(request):
    try:
        width = int(request.POST.get('width', ''))
    except ValueError:
        return HttpResponseBadRequest('Invalid width')

    state = SidebarState.from_session(request.session).resize(width)
    state.save(request.session)
    return _sidebar_response(request, state)


def not_found_view(request, exception=None):
    return render(request, 'saas_admin/not_found.html', {'title': 'Not Found'}, status=404)
