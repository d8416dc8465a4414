"""
Unit tests for the access policy.
"""
import pytest

from mosman.core.errors import AuthorizationError
from mosman.core.permissions import (
    POLICY, Action, Resource, authorize, can_read_user, is_allowed
)
from mosman.models.user_profile import UserProfile, UserRole


def profile(role: UserRole, is_active: bool = True, id: str = "u-1") -> UserProfile:
    return UserProfile(id=id, full_name="Someone", role=role, is_active=is_active)


MUTATIONS = [
    (resource, action)
    for (resource, action) in POLICY
    if action != Action.READ
]


class TestPolicyTable:

    def test_everyone_reads_finance_data(self):
        for resource in (Resource.POCKET, Resource.CATEGORY, Resource.DONATION, Resource.EXPENSE):
            for role in UserRole:
                assert is_allowed(role, True, Action.READ, resource)

    def test_viewer_cannot_mutate_anything(self):
        for resource, action in MUTATIONS:
            assert not is_allowed(UserRole.VIEWER, True, action, resource), (resource, action)

    def test_admin_can_do_everything_listed(self):
        for resource, action in POLICY:
            assert is_allowed(UserRole.ADMIN, True, action, resource)

    @pytest.mark.parametrize("resource", [Resource.DONATION, Resource.EXPENSE])
    def test_treasurer_records_but_does_not_delete(self, resource):
        assert is_allowed(UserRole.TREASURER, True, Action.CREATE, resource)
        assert is_allowed(UserRole.TREASURER, True, Action.UPDATE, resource)
        assert not is_allowed(UserRole.TREASURER, True, Action.DELETE, resource)

    def test_only_admin_approves(self):
        assert is_allowed(UserRole.ADMIN, True, Action.APPROVE, Resource.EXPENSE)
        assert not is_allowed(UserRole.TREASURER, True, Action.APPROVE, Resource.EXPENSE)

    def test_treasurer_cannot_manage_pockets_or_categories(self):
        for resource in (Resource.POCKET, Resource.CATEGORY):
            for action in (Action.CREATE, Action.UPDATE, Action.DELETE):
                assert not is_allowed(UserRole.TREASURER, True, action, resource)

    def test_inactive_denied(self):
        assert not is_allowed(UserRole.ADMIN, False, Action.READ, Resource.POCKET)

    def test_unlisted_pair_denied(self):
        assert not is_allowed(UserRole.ADMIN, True, Action.APPROVE, Resource.DONATION)


class TestAuthorize:

    def test_returns_actor_when_allowed(self):
        actor = profile(UserRole.TREASURER)
        assert authorize(actor, Action.CREATE, Resource.DONATION) is actor

    def test_message_names_required_roles(self):
        with pytest.raises(AuthorizationError) as exc:
            authorize(profile(UserRole.VIEWER), Action.CREATE, Resource.DONATION)
        assert exc.value.message == "Insufficient permissions. Required role(s): admin, treasurer"
        assert exc.value.status_code == 403

    def test_disabled_account(self):
        with pytest.raises(AuthorizationError) as exc:
            authorize(profile(UserRole.ADMIN, is_active=False), Action.READ, Resource.POCKET)
        assert exc.value.message == "User account is disabled"

    def test_unlisted_action(self):
        with pytest.raises(AuthorizationError) as exc:
            authorize(profile(UserRole.ADMIN), Action.APPROVE, Resource.DONATION)
        assert exc.value.message == "Action 'approve' is not permitted on donation"


class TestCanReadUser:

    def test_own_profile(self):
        assert can_read_user(profile(UserRole.VIEWER, id="me"), "me")

    def test_other_profile(self):
        assert not can_read_user(profile(UserRole.TREASURER, id="me"), "you")
        assert can_read_user(profile(UserRole.ADMIN, id="me"), "you")

    def test_inactive(self):
        assert not can_read_user(profile(UserRole.VIEWER, is_active=False, id="me"), "me")
