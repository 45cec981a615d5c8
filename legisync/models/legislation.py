"""
Legislation data models.

Defines the normalized records for bills and their sub-resources
(actions, cosponsors, text versions).
"""
from datetime import datetime
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, Field


class BillType(str, Enum):
    """Type of legislation."""
    HR = "hr"           # House Bill
    S = "s"             # Senate Bill
    HRES = "hres"       # House Resolution
    SRES = "sres"       # Senate Resolution
    HJRES = "hjres"     # House Joint Resolution
    SJRES = "sjres"     # Senate Joint Resolution
    HCONRES = "hconres" # House Concurrent Resolution
    SCONRES = "sconres" # Senate Concurrent Resolution


class BillStatus(str, Enum):
    """Current status of a bill."""
    INTRODUCED = "introduced"
    IN_COMMITTEE = "in_committee"
    REPORTED_BY_COMMITTEE = "reported_by_committee"
    PASSED_HOUSE = "passed_house"
    PASSED_SENATE = "passed_senate"
    RESOLVING_DIFFERENCES = "resolving_differences"
    TO_PRESIDENT = "to_president"
    SIGNED_INTO_LAW = "signed_into_law"
    ENACTED = "enacted"
    VETOED = "vetoed"
    POCKET_VETOED = "pocket_vetoed"
    VETO_OVERRIDDEN = "veto_overridden"
    FAILED = "failed"
    WITHDRAWN = "withdrawn"


class DataSource(str, Enum):
    CONGRESS_GOV = "congress_gov"


class DataQuality(str, Enum):
    """List items are unverified until the detail endpoint confirms them."""
    UNVERIFIED = "unverified"
    VERIFIED = "verified"


class TextFormat(str, Enum):
    XML = "xml"
    HTML = "html"
    PDF = "pdf"
    TXT = "txt"


class Bill(BaseModel):
    """
    A piece of federal legislation, as built from a bill list item.

    The id is deterministic (see generate_bill_id) so repeated syncs
    update the same record.
    """

    # Unique identifier (e.g., "hr-1234-119")
    id: str = Field(..., description="Unique ID: {type}-{number}-{congress}")

    congress: int
    bill_type: BillType
    number: int

    title: str
    status: BillStatus = BillStatus.INTRODUCED
    introduced_date: datetime
    latest_action_date: Optional[datetime] = None
    latest_action_text: Optional[str] = None

    data_source: DataSource = DataSource.CONGRESS_GOV
    data_quality: DataQuality = DataQuality.UNVERIFIED
    last_synced_at: datetime = Field(default_factory=datetime.utcnow)

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"{self.bill_type.value.upper()}. {self.number} ({self.congress}th Congress): {self.title[:60]}..."


class BillUpdate(BaseModel):
    """Fields enriched from the bill detail endpoint."""
    title: str
    summary: Optional[str] = None
    status: BillStatus
    introduced_date: datetime
    latest_action_date: Optional[datetime] = None
    data_quality: DataQuality = DataQuality.VERIFIED
    last_synced_at: datetime = Field(default_factory=datetime.utcnow)
    policy_area: Optional[str] = None
    sponsor_bioguide_id: Optional[str] = None
    subjects: List[str] = Field(default_factory=list)


class BillAction(BaseModel):
    """A single step in a bill's legislative history."""
    id: str
    bill_id: str
    action_date: datetime
    action_code: Optional[str] = None
    action_text: str
    chamber: Optional[str] = None


class Cosponsor(BaseModel):
    """Links a legislator to a bill they cosponsored."""
    id: str
    bill_id: str
    legislator_id: str
    is_primary: bool = False
    cosponsor_date: Optional[datetime] = None


class TextVersion(BaseModel):
    """A published text version of a bill."""
    id: str
    bill_id: str
    version_code: str
    version_name: str
    text_url: str
    text_format: TextFormat
    published_date: datetime
