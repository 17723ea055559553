"""Account models — users, child/guardian profiles, links, and dashboards."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class UserInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    external_id: str
    email: str
    role: str
    created_at: datetime | None = None


class SyncResult(BaseModel):
    """Outcome of ``sync_user``: the row plus where to send the user next."""

    user: UserInfo
    redirect_url: str
    created: bool = False


# ------------------------------------------------------------------
# Child profile
# ------------------------------------------------------------------

class ChildProfileData(BaseModel):
    """Editable child profile fields (input to ``save_child_profile``)."""

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    date_of_birth: date
    gender: str | None = None
    grade: str | None = None
    school_name: str | None = None
    physician_name: str | None = None
    physician_phone: str | None = None
    health_notes: str | None = None
    consent_given: bool = False


class ChildProfileInfo(ChildProfileData):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    profile_completed: bool = False


class EmergencyContactData(BaseModel):
    full_name: str = Field(min_length=1)
    relationship: str | None = None
    phone_number: str = Field(min_length=1)
    can_pick_up: bool = False
    is_primary: bool = False


class EmergencyContactInfo(EmergencyContactData):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    child_profile_id: uuid.UUID


# ------------------------------------------------------------------
# Guardian side
# ------------------------------------------------------------------

class GuardianProfileInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    first_name: str
    last_name: str
    relationship_to_child: str | None = None


class ChildMatch(BaseModel):
    """A child profile as shown in search results (no medical fields)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    first_name: str
    last_name: str
    date_of_birth: date
    gender: str | None = None
    school_name: str | None = None
    grade: str | None = None
    profile_completed: bool = False


class RelationshipInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    relationship_type: str
    is_primary_guardian: bool


class LinkedChild(RelationshipInfo):
    """Dashboard entry: a link row with the child profile attached."""

    child_profile: ChildMatch


class LinkResult(BaseModel):
    child: ChildMatch
    relationship: RelationshipInfo


class ChildSearch(BaseModel):
    """Exact-match criteria for locating a child profile."""

    first_name: str
    last_name: str
    date_of_birth: date
    school_name: str | None = None
    grade: str | None = None


class GuardianDashboard(BaseModel):
    user_role: str = "guardian"
    guardian: GuardianProfileInfo | None = None
    children: list[LinkedChild] = Field(default_factory=list)


class ChildDashboard(BaseModel):
    user_role: str = "child"
    child: ChildProfileInfo | None = None
