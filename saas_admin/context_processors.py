from .navigation import SidebarState, nav_items, title_for_path


def navigation(request):
    """Header and sidebar context for every SaaS Admin page"""
    gate = getattr(request, 'auth_gate', None)
    session = getattr(request, 'session', None)

    return {
        'page_title': title_for_path(request.path),
        'nav_items': nav_items(request.path),
        'sidebar': SidebarState.from_session(session) if session is not None else SidebarState(),
        'auth_user': gate.user if gate is not None else None,
    }
