import pytest

from modules.accounts.entities import Account
from shared.models import UserRole

from tests.fakes import complete_profile, make_account


class TestProfileCompletion:
    def test_empty_profile(self):
        account = Account(first_name="", last_name="", email="", role=UserRole.PARENT)
        assert account.calculate_profile_completion() == 0

    def test_blank_strings_do_not_count(self):
        account = make_account("uid-1", "parent@example.com", accepted_terms=False, country=None)
        account.city = "   "
        # first name, last name, email
        assert account.calculate_profile_completion() == 20

    def test_complete_except_phone_verification(self):
        account = complete_profile(make_account("uid-1", "parent@example.com"))
        assert account.profile_completion_percentage == 93

    def test_fully_complete(self):
        account = complete_profile(make_account("uid-1", "parent@example.com"))
        account.phone_verified = True
        assert account.refresh_profile_completion() == 100


class TestCanEnroll:
    @pytest.fixture
    def parent(self):
        return complete_profile(make_account("uid-1", "parent@example.com"))

    def test_eligible_parent(self, parent):
        assert parent.can_enroll(80) is True

    def test_threshold(self, parent):
        assert parent.can_enroll(94) is False

    def test_inactive(self, parent):
        parent.is_active = False
        assert parent.can_enroll(80) is False

    def test_unverified(self, parent):
        parent.email_verified = False
        parent.refresh_profile_completion()
        assert parent.can_enroll(80) is False

    @pytest.mark.parametrize("role", [UserRole.STAFF, UserRole.ADMIN, UserRole.TEACHER])
    def test_non_parents(self, parent, role):
        parent.role = role
        assert parent.can_enroll(80) is False


class TestAccount:
    def test_full_name(self):
        assert make_account("uid-1", "a@example.com", first_name="Pat", last_name="Lee").full_name == "Pat Lee"

    def test_record_login(self):
        account = make_account("uid-1", "a@example.com")
        account.record_login()
        assert account.last_login_at is not None
