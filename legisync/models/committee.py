"""Committee data models."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from legisync.models.politician import Chamber


class CommitteeType(str, Enum):
    STANDING = "standing"
    SELECT = "select"
    JOINT = "joint"
    SUBCOMMITTEE = "subcommittee"
    SPECIAL = "special"


class Committee(BaseModel):
    """
    A congressional committee or subcommittee.

    Keyed by its Congress.gov system code (e.g. "hsag00").
    """
    id: str
    name: str
    chamber: Chamber
    type: CommitteeType = CommitteeType.STANDING
    parent_id: Optional[str] = None
