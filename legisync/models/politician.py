"""
Legislator data models.

Defines the structure for members of Congress.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from legisync.models.legislation import DataSource


class Chamber(str, Enum):
    """Legislative chamber."""
    SENATE = "senate"
    HOUSE = "house"


class Party(str, Enum):
    """Political party affiliation."""
    DEMOCRAT = "D"
    REPUBLICAN = "R"
    INDEPENDENT = "I"
    LIBERTARIAN = "L"
    GREEN = "G"
    OTHER = "O"


class Legislator(BaseModel):
    """
    A federal legislator (Senator or Representative).

    Built from the member list endpoint; detail fields arrive later
    through LegislatorUpdate.
    """

    # Unique identifier (bioguide_id from Congress.gov)
    id: str = Field(..., description="Bioguide ID from Congress.gov")

    # Basic info
    first_name: str
    last_name: str
    middle_name: Optional[str] = None
    full_name: str

    # Political info
    party: Party
    chamber: Chamber
    state: str = Field(..., min_length=2, max_length=2, description="Two-letter state code")
    district: Optional[int] = Field(None, description="House district number (None for Senators)")

    in_office: bool = True

    data_source: DataSource = DataSource.CONGRESS_GOV
    last_synced_at: datetime = Field(default_factory=datetime.utcnow)

    def __str__(self) -> str:
        """Human-readable representation."""
        chamber_title = "Sen." if self.chamber == Chamber.SENATE else "Rep."
        district_str = f" (District {self.district})" if self.district else ""
        return f"{chamber_title} {self.full_name} ({self.party.value}-{self.state}){district_str}"


class LegislatorUpdate(BaseModel):
    """
    Partial update from the member detail endpoint.

    Unset fields are left alone on the stored record.
    """
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    nick_name: Optional[str] = None
    full_name: Optional[str] = None
    party: Optional[Party] = None
    chamber: Optional[Chamber] = None
    state: Optional[str] = None
    district: Optional[int] = None
    in_office: Optional[bool] = None
    website: Optional[str] = None
    term_start: Optional[datetime] = None
    term_end: Optional[datetime] = None
    last_synced_at: datetime = Field(default_factory=datetime.utcnow)
