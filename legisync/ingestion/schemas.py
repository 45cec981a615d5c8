"""
Congress.gov API v3 response schemas.

Every response is validated against these models at the edge of the
client; the rest of the pipeline only sees the parsed objects. Field names
are snake_case and populated from the API's camelCase keys. Unknown keys
are ignored.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from legisync.models import BillType


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ============================================================================
# Pagination
# ============================================================================

class Pagination(ApiModel):
    count: Optional[int] = None
    next: Optional[str] = None
    prev: Optional[str] = None


# ============================================================================
# Bills
# ============================================================================

class LatestAction(ApiModel):
    action_date: str
    text: str


def _lowercase(value):
    # The API returns "HR", "S", ... while paths use lowercase
    return value.lower() if isinstance(value, str) else value


class BillListItem(ApiModel):
    congress: int
    type: BillType
    number: int
    origin_chamber: Optional[str] = None
    origin_chamber_code: Optional[str] = None
    title: str
    latest_action: Optional[LatestAction] = None
    update_date: str
    update_date_including_text: Optional[str] = None
    url: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def lowercase_type(cls, value):
        return _lowercase(value)


class SourceSystem(ApiModel):
    code: Optional[int] = None
    name: Optional[str] = None


class CommitteeRef(ApiModel):
    system_code: str
    name: str


class BillActionItem(ApiModel):
    action_code: Optional[str] = None
    action_date: str
    text: str
    type: Optional[str] = None
    source_system: Optional[SourceSystem] = None
    committees: Optional[List[CommitteeRef]] = None


class BillSponsor(ApiModel):
    bioguide_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    party: Optional[str] = None
    state: Optional[str] = None
    district: Optional[int] = None


class BillCosponsorItem(BillSponsor):
    sponsorship_date: Optional[str] = None
    is_original_cosponsor: Optional[bool] = None


class TextFormatLink(ApiModel):
    type: str
    url: str


class BillTextVersionItem(ApiModel):
    date: Optional[str] = None
    type: str
    formats: Optional[List[TextFormatLink]] = None


class BillSummaryItem(ApiModel):
    action_date: Optional[str] = None
    action_desc: Optional[str] = None
    text: str
    update_date: Optional[str] = None
    version_code: Optional[str] = None


class NamedItem(ApiModel):
    name: str


class BillSubjects(ApiModel):
    legislative_subjects: Optional[List[NamedItem]] = None


class BillSummaries(ApiModel):
    summary: Optional[List[BillSummaryItem]] = None


class BillDetail(ApiModel):
    congress: int
    type: BillType
    number: int
    origin_chamber: Optional[str] = None
    title: str
    introduced_date: Optional[str] = None
    policy_area: Optional[NamedItem] = None
    subjects: Optional[BillSubjects] = None
    summaries: Optional[BillSummaries] = None
    sponsors: Optional[List[BillSponsor]] = None
    latest_action: Optional[LatestAction] = None
    update_date: str

    @field_validator("type", mode="before")
    @classmethod
    def lowercase_type(cls, value):
        return _lowercase(value)


# ============================================================================
# Members
# ============================================================================

class MemberTerm(ApiModel):
    chamber: str
    congress: Optional[int] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    member_type: Optional[str] = None
    state_code: Optional[str] = None
    state_name: Optional[str] = None
    district: Optional[int] = None


class MemberTerms(ApiModel):
    item: Optional[List[MemberTerm]] = None


class Depiction(ApiModel):
    image_url: Optional[str] = None
    attribution: Optional[str] = None


class MemberListItem(ApiModel):
    bioguide_id: str
    name: str
    party_name: Optional[str] = None
    state: Optional[str] = None
    district: Optional[int] = None
    terms: Optional[MemberTerms] = None
    depiction: Optional[Depiction] = None
    url: Optional[str] = None
    update_date: Optional[str] = None


class PartyHistoryItem(ApiModel):
    party_abbreviation: str
    party_name: str
    start_year: Optional[int] = None
    end_year: Optional[int] = None


class MemberDetail(ApiModel):
    bioguide_id: str
    current_member: Optional[bool] = None
    direct_order_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    nick_name: Optional[str] = None
    official_website_url: Optional[str] = None
    party_history: Optional[List[PartyHistoryItem]] = None
    state: Optional[str] = None
    terms: Optional[List[MemberTerm]] = None
    depiction: Optional[Depiction] = None
    update_date: Optional[str] = None


# ============================================================================
# Committees
# ============================================================================

class CommitteeListItem(ApiModel):
    system_code: str
    name: str
    chamber: str
    committee_type_code: Optional[str] = None
    parent: Optional[CommitteeRef] = None
    url: Optional[str] = None
    update_date: Optional[str] = None


# ============================================================================
# Response envelopes
# ============================================================================

class BillListResponse(ApiModel):
    bills: List[BillListItem]
    pagination: Optional[Pagination] = None


class BillDetailResponse(ApiModel):
    bill: BillDetail


class BillActionsResponse(ApiModel):
    actions: List[BillActionItem]
    pagination: Optional[Pagination] = None


class BillCosponsorsResponse(ApiModel):
    cosponsors: List[BillCosponsorItem]
    pagination: Optional[Pagination] = None


class BillTextVersionsResponse(ApiModel):
    text_versions: List[BillTextVersionItem]
    pagination: Optional[Pagination] = None


class MemberListResponse(ApiModel):
    members: List[MemberListItem]
    pagination: Optional[Pagination] = None


class MemberDetailResponse(ApiModel):
    member: MemberDetail


class CommitteeListResponse(ApiModel):
    committees: List[CommitteeListItem]
    pagination: Optional[Pagination] = None
