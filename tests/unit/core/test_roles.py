"""Tests for the role hierarchy helpers."""
import pytest

from contractoros.core.roles import (
    can_access_portal,
    can_access_resource,
    can_modify_resource,
    get_default_path,
    get_role_level,
    has_minimum_role,
    has_role,
    impersonation_role,
    is_admin,
    is_same_org,
)
from contractoros.core.security import CurrentUser


class TestRoleLevels:
    @pytest.mark.parametrize(
        "role,level",
        [("OWNER", 100), ("PM", 80), ("EMPLOYEE", 60), ("CONTRACTOR", 40), ("SUB", 30), ("CLIENT", 10)],
    )
    def test_hierarchy(self, role, level):
        assert get_role_level(role) == level

    def test_case_insensitive(self):
        assert get_role_level("owner") == 100
        assert get_role_level(" pm ") == 80

    def test_unknown_role_is_zero(self):
        assert get_role_level("JANITOR") == 0
        assert get_role_level(None) == 0


class TestMinimumRole:
    def test_higher_role_passes(self):
        assert has_minimum_role("OWNER", "PM")
        assert has_minimum_role("PM", "PM")

    def test_lower_role_fails(self):
        assert not has_minimum_role("EMPLOYEE", "PM")

    def test_missing_or_unknown_user_role_never_passes(self):
        assert not has_minimum_role(None, "CLIENT")
        assert not has_minimum_role("JANITOR", "CLIENT")

    def test_unknown_required_role_accepts_any_valid_role(self):
        assert has_minimum_role("CLIENT", "SUPERHERO")


def test_has_role_matches_case_insensitively():
    assert has_role("pm", ["OWNER", "PM"])
    assert not has_role("", ["OWNER"])
    assert not has_role("SUB", ["OWNER", "PM"])


def test_admins_are_owner_and_pm():
    assert is_admin("OWNER")
    assert is_admin("pm")
    assert not is_admin("EMPLOYEE")


def test_same_org_requires_both_ids():
    assert is_same_org("org-1", "org-1")
    assert not is_same_org("org-1", "org-2")
    assert not is_same_org(None, None)


class TestResourceAccess:
    employee = CurrentUser(user_id="u1", org_id="org-1", role="EMPLOYEE")
    manager = CurrentUser(user_id="u2", org_id="org-1", role="PM")

    def test_access_requires_same_org(self):
        assert can_access_resource(self.employee, "org-1")
        assert not can_access_resource(self.employee, "org-2")
        assert not can_access_resource(None, "org-1")

    def test_owner_of_resource_can_modify(self):
        assert can_modify_resource(self.employee, "org-1", "u1")

    def test_non_owner_employee_cannot_modify(self):
        assert not can_modify_resource(self.employee, "org-1", "someone-else")

    def test_admin_can_modify_any_resource_in_org(self):
        assert can_modify_resource(self.manager, "org-1", "someone-else")
        assert not can_modify_resource(self.manager, "org-2", "someone-else")


def test_default_paths():
    assert get_default_path("OWNER") == "/dashboard"
    assert get_default_path("EMPLOYEE") == "/field"
    assert get_default_path("CLIENT") == "/client"
    assert get_default_path("nobody") == "/login"


def test_portal_access():
    assert can_access_portal("SUB", "field")
    assert can_access_portal("SUB", "sub")
    assert not can_access_portal("CLIENT", "dashboard")
    assert not can_access_portal("OWNER", "nonexistent")


def test_impersonation_role_mapping():
    assert impersonation_role("PM") == "project_manager"
    assert impersonation_role("SUB") == "contractor"
    assert impersonation_role(None) == "employee"
