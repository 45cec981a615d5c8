"""
Data Normalization Module

Centralized functions to transform raw Congress.gov values into our
standardized database format. Every mapper is total: unknown input maps
to a documented default instead of raising.

Usage:
    from legisync.database.normalization import map_party, map_state_to_code

    party = map_party(raw.get("partyName"))    # "Democratic" -> Party.DEMOCRAT
    state = map_state_to_code("Utah")          # "UT"
"""
import logging
import re
from datetime import datetime, timezone
from typing import NamedTuple, Optional

from legisync.config.constants import US_STATES
from legisync.models import BillType, Chamber, CommitteeType, Party

logger = logging.getLogger(__name__)


# ============================================================================
# State Normalization
# ============================================================================

STATE_NAME_TO_CODE = {name: code for code, name in US_STATES.items()}

UNKNOWN_STATE = "XX"


def map_state_to_code(state: Optional[str]) -> str:
    """
    Normalize state to 2-letter code.

    Args:
        state: State name or code (e.g., "Utah", "UT", "ut")

    Returns:
        2-letter uppercase state code, or "XX" if unknown

    Examples:
        >>> map_state_to_code("Utah")
        'UT'
        >>> map_state_to_code("ut")
        'UT'
        >>> map_state_to_code(None)
        'XX'
    """
    if not isinstance(state, str) or not state.strip():
        return UNKNOWN_STATE

    state_clean = state.strip()

    # Already a 2-letter code?
    if len(state_clean) == 2:
        code = state_clean.upper()
        return code if code in US_STATES else UNKNOWN_STATE

    if state_clean in STATE_NAME_TO_CODE:
        return STATE_NAME_TO_CODE[state_clean]

    # Try case-insensitive match
    for full_name, code in STATE_NAME_TO_CODE.items():
        if full_name.lower() == state_clean.lower():
            return code

    return UNKNOWN_STATE


# ============================================================================
# Enum Mapping Tables
# ============================================================================

PARTY_MAPPINGS = {
    "Democratic": Party.DEMOCRAT,
    "Democrat": Party.DEMOCRAT,
    "Republican": Party.REPUBLICAN,
    "Independent": Party.INDEPENDENT,
    "Independent Democrat": Party.INDEPENDENT,
    "Libertarian": Party.LIBERTARIAN,
    "Green": Party.GREEN,
    "D": Party.DEMOCRAT,
    "R": Party.REPUBLICAN,
    "I": Party.INDEPENDENT,
    "ID": Party.INDEPENDENT,
    "L": Party.LIBERTARIAN,
    "G": Party.GREEN,
}

CHAMBER_MAPPINGS = {
    "Senate": Chamber.SENATE,
    "House": Chamber.HOUSE,
    "House of Representatives": Chamber.HOUSE,
    "S": Chamber.SENATE,
    "H": Chamber.HOUSE,
}

BILL_TYPE_MAPPINGS = {bill_type.value: bill_type for bill_type in BillType}

COMMITTEE_TYPE_MAPPINGS = {
    "Standing": CommitteeType.STANDING,
    "Select": CommitteeType.SELECT,
    "Joint": CommitteeType.JOINT,
    "Subcommittee": CommitteeType.SUBCOMMITTEE,
    "Special": CommitteeType.SPECIAL,
    "Other": CommitteeType.SPECIAL,
    "Task Force": CommitteeType.SPECIAL,
    "Commission or Caucus": CommitteeType.SPECIAL,
}


def _lookup(table: dict, value: str):
    """Exact lookup, then case-insensitive."""
    if value in table:
        return table[value]
    lowered = value.lower()
    for key, mapped in table.items():
        if key.lower() == lowered:
            return mapped
    return None


def map_party(party: Optional[str]) -> Party:
    """
    Normalize party affiliation to single-letter code.

    Returns Party.OTHER for missing or unrecognized values.

    Examples:
        >>> map_party("Democratic")
        <Party.DEMOCRAT: 'D'>
        >>> map_party(None)
        <Party.OTHER: 'O'>
    """
    if not isinstance(party, str) or not party.strip():
        return Party.OTHER

    mapped = _lookup(PARTY_MAPPINGS, party.strip())
    if mapped is None:
        logger.debug(f"Unexpected party value '{party}', using '{Party.OTHER.value}'")
        return Party.OTHER
    return mapped


def map_chamber(chamber: Optional[str]) -> Optional[Chamber]:
    """
    Normalize chamber to Chamber enum.

    Returns None for missing or unrecognized values; callers pick their own default.
    """
    if not isinstance(chamber, str) or not chamber.strip():
        return None
    return _lookup(CHAMBER_MAPPINGS, chamber.strip())


def map_bill_type(bill_type: Optional[str]) -> BillType:
    """Normalize a Congress.gov bill type code. Defaults to BillType.HR."""
    if not isinstance(bill_type, str):
        return BillType.HR
    return BILL_TYPE_MAPPINGS.get(bill_type.strip().lower(), BillType.HR)


def map_committee_type(committee_type: Optional[str]) -> CommitteeType:
    """Normalize committee type. Defaults to CommitteeType.STANDING."""
    if not isinstance(committee_type, str) or not committee_type.strip():
        return CommitteeType.STANDING
    return _lookup(COMMITTEE_TYPE_MAPPINGS, committee_type.strip()) or CommitteeType.STANDING


# ============================================================================
# Date Parsing
# ============================================================================

_YEAR_ONLY = re.compile(r"^\d{4}$")
_FALLBACK_FORMATS = ("%m/%d/%Y", "%B %d, %Y", "%b %d, %Y")


def parse_date(date_str: Optional[str]) -> Optional[datetime]:
    """
    Parse a date string to a naive UTC datetime.

    Handles ISO 8601 dates and datetimes (including a trailing "Z"),
    bare years ("2023" -> Jan 1) and a few US formats.

    Returns:
        datetime, or None when the input is empty or unparseable
    """
    if not date_str:
        return None

    value = str(date_str).strip()
    if not value:
        return None

    if _YEAR_ONLY.match(value):
        try:
            return datetime(int(value), 1, 1)
        except ValueError:
            return None

    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _FALLBACK_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date_required(
    date_str: Optional[str],
    fallback: Optional[datetime] = None
) -> datetime:
    """
    Parse a date string where a value is mandatory.

    Args:
        date_str: Date string to parse
        fallback: Returned when parsing fails (defaults to the current time)
    """
    parsed = parse_date(date_str)
    if parsed is not None:
        return parsed
    return fallback if fallback is not None else datetime.utcnow()


# ============================================================================
# Name Parsing
# ============================================================================

class NameParts(NamedTuple):
    first_name: str
    last_name: str
    middle_name: Optional[str]


def parse_full_name(full_name: Optional[str]) -> NameParts:
    """
    Split a legislator name into first, middle and last parts.

    Handles both "Last, First Middle" (Congress.gov list format) and
    "First Middle Last".

    Examples:
        >>> parse_full_name("Smith, John A.")
        NameParts(first_name='John', last_name='Smith', middle_name='A.')
        >>> parse_full_name("John A. Smith")
        NameParts(first_name='John', last_name='Smith', middle_name='A.')
    """
    if not full_name or not full_name.strip():
        return NameParts("", "", None)

    if "," in full_name:
        last, rest = full_name.split(",", 1)
        rest_parts = rest.split()
        return NameParts(
            first_name=rest_parts[0] if rest_parts else "",
            last_name=last.strip(),
            middle_name=" ".join(rest_parts[1:]) or None,
        )

    parts = full_name.split()
    if len(parts) == 1:
        return NameParts("", parts[0], None)

    return NameParts(
        first_name=parts[0],
        last_name=parts[-1],
        middle_name=" ".join(parts[1:-1]) or None,
    )
