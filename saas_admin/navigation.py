"""Navigation shell: page titles, sidebar items and sidebar state"""
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List

from django.urls import Resolver404, resolve, reverse

from .conf import get_config
from .entities import ENTITIES, REGISTRY

NOT_FOUND_TITLE = 'Not Found'
SIDEBAR_SESSION_KEY = 'saas_admin_sidebar'

ROUTE_TITLES = {
    'dashboard': 'Dashboard',
    'profile': 'Profile',
    'sign_in': 'Sign In',
}

ENTITY_ROUTES = ('entity_list', 'entity_create', 'entity_edit', 'entity_delete')


def title_for_path(path: str) -> str:
    """Display title for ``path``; anything unmapped is 'Not Found'"""
    try:
        match = resolve(path)
    except Resolver404:
        return NOT_FOUND_TITLE

    if match.namespace != 'saas_admin':
        return NOT_FOUND_TITLE
    if match.url_name in ENTITY_ROUTES:
        entity = REGISTRY.get(match.kwargs.get('entity'))
        return entity.title if entity else NOT_FOUND_TITLE
    return ROUTE_TITLES.get(match.url_name, NOT_FOUND_TITLE)


def nav_items(current_path: str) -> List[Dict[str, Any]]:
    items = [{'label': 'Dashboard', 'url': reverse('saas_admin:dashboard'), 'icon': 'bar-chart'}]
    for entity in ENTITIES:
        items.append({
            'label': entity.nav_label,
            'url': reverse('saas_admin:entity_list', kwargs={'entity': entity.key}),
            'icon': entity.icon,
        })
    for item in items:
        item['active'] = item['url'] == current_path
    return items


@dataclass(frozen=True)
class SidebarState:
    """
    Desktop collapse flag plus the mobile overlay drawer.

    Entering the mobile width forces the sidebar collapsed and closes the
    drawer; leaving it closes the drawer.
    """

    collapsed: bool = False
    mobile_open: bool = False
    is_mobile: bool = False

    def toggle(self) -> 'SidebarState':
        if self.is_mobile:
            return replace(self, mobile_open=not self.mobile_open)
        return replace(self, collapsed=not self.collapsed)

    def resize(self, width: int) -> 'SidebarState':
        is_mobile = width < get_config().get('MOBILE_BREAKPOINT', 768)
        if is_mobile and not self.is_mobile:
            return SidebarState(collapsed=True, mobile_open=False, is_mobile=True)
        if not is_mobile and self.is_mobile:
            return replace(self, mobile_open=False, is_mobile=False)
        return self

    @classmethod
    def from_session(cls, session) -> 'SidebarState':
        stored = session.get(SIDEBAR_SESSION_KEY) or {}
        return cls(**{key: bool(value) for key, value in stored.items() if key in cls.__dataclass_fields__})

    def save(self, session):
        session[SIDEBAR_SESSION_KEY] = asdict(self)
