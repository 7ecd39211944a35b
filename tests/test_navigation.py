"""Tests for page titles, sidebar items and sidebar state"""
import pytest

from saas_admin.entities import ENTITIES
from saas_admin.navigation import NOT_FOUND_TITLE, SidebarState, nav_items, title_for_path


@pytest.mark.parametrize('path, title', [
    ('/', 'Dashboard'),
    ('/profile/', 'Profile'),
    ('/sign-in/', 'Sign In'),
    ('/users/', 'User Management'),
    ('/products/', 'Product Management'),
    ('/subscriptions/', 'Subscription Management'),
    ('/roles/', 'Roles'),
    ('/organizations/', 'Organizations'),
    ('/audit-logs/', 'Audit Logs'),
    ('/sms-notifications/', 'SMS Notifications'),
    ('/roles/5/edit/', 'Roles'),
])
def test_title_for_known_paths(path, title):
    assert title_for_path(path) == title


@pytest.mark.parametrize('path', ['/billing-portal/', '/no/such/page/', '/users/1/2/3/4/'])
def test_unknown_paths_are_not_found(path):
    assert title_for_path(path) == NOT_FOUND_TITLE


def test_nav_items_cover_dashboard_and_every_entity():
    items = nav_items('/')
    assert [item['label'] for item in items] == ['Dashboard'] + [entity.nav_label for entity in ENTITIES]
    assert len(items) == 12


def test_nav_items_mark_current_page():
    items = nav_items('/roles/')
    active = [item['label'] for item in items if item['active']]
    assert active == ['Roles']


class TestSidebarState:
    def test_desktop_toggle_collapses(self):
        state = SidebarState().toggle()
        assert state.collapsed
        assert not state.mobile_open
        assert not state.toggle().collapsed

    def test_mobile_toggle_opens_drawer(self):
        state = SidebarState(collapsed=True, is_mobile=True).toggle()
        assert state.mobile_open
        assert state.collapsed

    def test_entering_mobile_collapses_and_closes(self):
        state = SidebarState(collapsed=False, mobile_open=True).resize(500)
        assert state == SidebarState(collapsed=True, mobile_open=False, is_mobile=True)

    def test_leaving_mobile_closes_drawer(self):
        state = SidebarState(collapsed=True, mobile_open=True, is_mobile=True).resize(1280)
        assert state == SidebarState(collapsed=True, mobile_open=False, is_mobile=False)

    def test_breakpoint_is_exclusive(self):
        assert not SidebarState().resize(768).is_mobile
        assert SidebarState().resize(767).is_mobile

    def test_resize_within_same_mode_changes_nothing(self):
        state = SidebarState(collapsed=True)
        assert state.resize(1024) is state

    def test_breakpoint_is_configurable(self, settings):
        settings.SAAS_ADMIN = {**settings.SAAS_ADMIN, 'MOBILE_BREAKPOINT': 1024}
        assert SidebarState().resize(900).is_mobile

    def test_session_round_trip(self):
        session = {}
        SidebarState(collapsed=True, is_mobile=True).save(session)
        assert SidebarState.from_session(session) == SidebarState(collapsed=True, is_mobile=True)

    def test_from_empty_session(self):
        assert SidebarState.from_session({}) == SidebarState()
