"""AccountService tests — user sync, dashboards, child profile and contacts."""

from datetime import date

import pytest

from umoja_assessment.accounts import AccountService
from umoja_assessment.errors import InvalidInputError, NotFoundError
from umoja_assessment.models.accounts import (
    ChildDashboard,
    ChildProfileData,
    EmergencyContactData,
    GuardianDashboard,
)


@pytest.fixture
def accounts(user_repo, profile_repo):
    return AccountService(user_repo, profile_repo)


def profile_data(**overrides) -> ChildProfileData:
    fields = {
        "first_name": " Amara ",
        "last_name": "Okafor",
        "date_of_birth": date(2013, 4, 2),
        "school_name": "Hillside",
        "grade": "7",
        "consent_given": True,
    }
    fields.update(overrides)
    return ChildProfileData(**fields)


# =====================================================================
# Sync
# =====================================================================


class TestSyncUser:

    @pytest.mark.asyncio
    async def test_creates_user(self, accounts, user_repo, mock_db):
        result = await accounts.sync_user(
            mock_db, external_id="ext-1", email="a@example.org", role="guardian",
        )
        assert result.created is True
        assert result.redirect_url == "/guardian-dashboard"
        assert user_repo.users["ext-1"].email == "a@example.org"

    @pytest.mark.asyncio
    async def test_updates_changed_role(self, accounts, user_repo, mock_db):
        user_repo.add("ext-1", role="guardian")
        result = await accounts.sync_user(mock_db, external_id="ext-1", email="", role="child")
        assert result.created is False
        assert result.user.role == "child"
        assert result.redirect_url == "/child-dashboard"

    @pytest.mark.asyncio
    async def test_same_role_is_noop(self, accounts, user_repo, mock_db):
        row = user_repo.add("ext-1", role="child")
        before = row.updated_at
        await accounts.sync_user(mock_db, external_id="ext-1", email="", role="child")
        assert row.updated_at == before, "An unchanged role should not touch the row"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [None, "", "admin", "Child"])
    async def test_invalid_role(self, accounts, user_repo, mock_db, role):
        with pytest.raises(InvalidInputError, match="Invalid user type"):
            await accounts.sync_user(mock_db, external_id="ext-1", email="", role=role)
        assert user_repo.users == {}


class TestUserLookup:

    @pytest.mark.asyncio
    async def test_get_or_create_defaults_to_child(self, accounts, mock_db):
        user = await accounts.get_or_create_user(mock_db, "ext-9")
        assert user.role == "child"
        again = await accounts.get_or_create_user(mock_db, "ext-9")
        assert again.id == user.id

    @pytest.mark.asyncio
    async def test_require_user_missing(self, accounts, mock_db):
        with pytest.raises(NotFoundError):
            await accounts.require_user(mock_db, "nobody")


# =====================================================================
# Dashboard
# =====================================================================


class TestDashboard:

    @pytest.mark.asyncio
    async def test_guardian_dashboard_lists_children(
        self, accounts, user_repo, profile_repo, mock_db,
    ):
        guardian = user_repo.add("g-1", role="guardian")
        gp = await profile_repo.create_guardian_profile(
            mock_db, user_id=guardian.id, first_name="Ngozi", last_name="Okafor",
        )
        child = profile_repo.add_child(
            first_name="Amara", last_name="Okafor", date_of_birth=date(2013, 4, 2),
        )
        await profile_repo.create_relationship(
            mock_db, child_profile_id=child.id, guardian_profile_id=gp.id,
            relationship_type="parent", is_primary_guardian=True,
        )

        dashboard = await accounts.get_dashboard(mock_db, "g-1")

        assert isinstance(dashboard, GuardianDashboard)
        assert dashboard.guardian.first_name == "Ngozi"
        assert len(dashboard.children) == 1
        entry = dashboard.children[0]
        assert entry.is_primary_guardian is True
        assert entry.child_profile.first_name == "Amara"

    @pytest.mark.asyncio
    async def test_guardian_without_profile(self, accounts, user_repo, mock_db):
        user_repo.add("g-1", role="guardian")
        dashboard = await accounts.get_dashboard(mock_db, "g-1")
        assert dashboard.guardian is None
        assert dashboard.children == []

    @pytest.mark.asyncio
    async def test_child_dashboard(self, accounts, user_repo, profile_repo, mock_db):
        user = user_repo.add("c-1", role="child")
        profile_repo.add_child(
            user_id=user.id, first_name="Amara", last_name="Okafor",
            date_of_birth=date(2013, 4, 2),
        )
        dashboard = await accounts.get_dashboard(mock_db, "c-1")
        assert isinstance(dashboard, ChildDashboard)
        assert dashboard.child.first_name == "Amara"

    @pytest.mark.asyncio
    async def test_unknown_role(self, accounts, user_repo, mock_db):
        user_repo.add("x-1", role="teacher")
        with pytest.raises(InvalidInputError, match="Invalid user role"):
            await accounts.get_dashboard(mock_db, "x-1")

    @pytest.mark.asyncio
    async def test_unknown_user(self, accounts, mock_db):
        with pytest.raises(NotFoundError):
            await accounts.get_dashboard(mock_db, "nobody")


# =====================================================================
# Child profile and emergency contacts
# =====================================================================


class TestChildProfile:

    @pytest.mark.asyncio
    async def test_save_marks_completed_and_trims(self, accounts, user_repo, mock_db):
        user_repo.add("c-1")
        info = await accounts.save_child_profile(mock_db, "c-1", profile_data())
        assert info.profile_completed is True
        assert info.first_name == "Amara"

    @pytest.mark.asyncio
    async def test_save_twice_updates_same_row(
        self, accounts, user_repo, profile_repo, mock_db,
    ):
        user_repo.add("c-1")
        first = await accounts.save_child_profile(mock_db, "c-1", profile_data())
        second = await accounts.save_child_profile(mock_db, "c-1", profile_data(grade="8"))
        assert first.id == second.id
        assert second.grade == "8"
        assert len(profile_repo.children) == 1

    @pytest.mark.asyncio
    async def test_get_before_save(self, accounts, user_repo, mock_db):
        user_repo.add("c-1")
        assert await accounts.get_child_profile(mock_db, "c-1") is None

    @pytest.mark.asyncio
    async def test_contacts_replace_whole_list(self, accounts, user_repo, mock_db):
        user_repo.add("c-1")
        await accounts.save_child_profile(mock_db, "c-1", profile_data())

        await accounts.save_emergency_contacts(mock_db, "c-1", [
            EmergencyContactData(full_name="Ngozi", phone_number="555-0100", is_primary=True),
            EmergencyContactData(full_name="Chidi", phone_number="555-0101"),
        ])
        await accounts.save_emergency_contacts(mock_db, "c-1", [
            EmergencyContactData(full_name="Ada", phone_number="555-0102", can_pick_up=True),
        ])

        contacts = await accounts.list_emergency_contacts(mock_db, "c-1")
        assert [c.full_name for c in contacts] == ["Ada"]
        assert contacts[0].can_pick_up is True

    @pytest.mark.asyncio
    async def test_contacts_need_profile(self, accounts, user_repo, mock_db):
        user_repo.add("c-1")
        with pytest.raises(NotFoundError, match="Child profile not found"):
            await accounts.list_emergency_contacts(mock_db, "c-1")
