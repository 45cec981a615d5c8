"""
Transform validated Congress.gov responses into our records.

All functions here are pure and synchronous. Ids are deterministic so a
record synced twice lands on the same key.
"""
import hashlib
import re
from datetime import datetime
from typing import Iterable, List, NamedTuple, Optional, Tuple

from legisync.database.normalization import (
    map_bill_type,
    map_chamber,
    map_committee_type,
    map_party,
    map_state_to_code,
    parse_date,
    parse_date_required,
    parse_full_name,
)
from legisync.ingestion.schemas import (
    BillActionItem,
    BillCosponsorItem,
    BillDetail,
    BillListItem,
    BillTextVersionItem,
    CommitteeListItem,
    LatestAction,
    MemberDetail,
    MemberListItem,
    TextFormatLink,
)
from legisync.models import (
    Bill,
    BillAction,
    BillStatus,
    BillUpdate,
    Chamber,
    Committee,
    Cosponsor,
    DataQuality,
    DataSource,
    Legislator,
    LegislatorUpdate,
    TextFormat,
    TextVersion,
)


# ============================================================================
# IDs
# ============================================================================

class BillKey(NamedTuple):
    bill_type: str
    number: int
    congress: int


_BILL_ID_PATTERN = re.compile(r"^([a-z]+)-(\d+)-(\d+)$")


def generate_bill_id(bill_type: str, number: int, congress: int) -> str:
    """
    Build a bill id from its natural key.

    Example:
        >>> generate_bill_id("hr", 1234, 118)
        'hr-1234-118'
    """
    return f"{bill_type}-{number}-{congress}"


def parse_bill_id(bill_id: str) -> Optional[BillKey]:
    """Inverse of generate_bill_id. Returns None for malformed ids."""
    match = _BILL_ID_PATTERN.match(bill_id or "")
    if not match:
        return None
    return BillKey(match.group(1), int(match.group(2)), int(match.group(3)))


def generate_action_id(bill_id: str, action: BillActionItem) -> str:
    """Actions have no upstream id; key them by date, code and text."""
    digest = hashlib.sha1(action.text.encode("utf-8")).hexdigest()[:12]
    return f"{bill_id}:{action.action_date}:{action.action_code or '-'}:{digest}"


# ============================================================================
# Status inference
# ============================================================================

# Evaluated top to bottom against the lowercased latest action text.
# Terminal outcomes come before progression states.
STATUS_RULES: List[Tuple[Tuple[str, ...], BillStatus]] = [
    (("became public law", "became law"), BillStatus.ENACTED),
    (("signed by president", "signed by the president"), BillStatus.SIGNED_INTO_LAW),
    # "pocket vetoed" also contains "vetoed"
    (("pocket vetoed", "pocket veto"), BillStatus.POCKET_VETOED),
    (("vetoed by president", "vetoed by the president"), BillStatus.VETOED),
    (("veto overridden",), BillStatus.VETO_OVERRIDDEN),
    (("failed", "rejected"), BillStatus.FAILED),
    (("withdrawn", "withdrew"), BillStatus.WITHDRAWN),
    (("presented to president", "sent to president"), BillStatus.TO_PRESIDENT),
    (("resolving differences", "conference"), BillStatus.RESOLVING_DIFFERENCES),
    (("passed senate", "agreed to in senate"), BillStatus.PASSED_SENATE),
    (("passed house", "agreed to in house"), BillStatus.PASSED_HOUSE),
    (("reported by", "ordered to be reported"), BillStatus.REPORTED_BY_COMMITTEE),
    (("referred to", "committee"), BillStatus.IN_COMMITTEE),
    (("introduced",), BillStatus.INTRODUCED),
]


def infer_bill_status(action_text: Optional[str]) -> BillStatus:
    """Infer a bill's status from its latest action text."""
    if not action_text:
        return BillStatus.INTRODUCED

    text = action_text.lower()
    for needles, status in STATUS_RULES:
        if any(needle in text for needle in needles):
            return status
    return BillStatus.INTRODUCED


def _latest_text(latest_action: Optional[LatestAction]) -> Optional[str]:
    return latest_action.text if latest_action else None


def _latest_date(latest_action: Optional[LatestAction]) -> Optional[datetime]:
    return parse_date(latest_action.action_date) if latest_action else None


# ============================================================================
# Bills
# ============================================================================

def transform_bill_list_item(item: BillListItem) -> Bill:
    bill_type = map_bill_type(item.type.value)
    return Bill(
        id=generate_bill_id(bill_type.value, item.number, item.congress),
        congress=item.congress,
        bill_type=bill_type,
        number=item.number,
        title=item.title,
        status=infer_bill_status(_latest_text(item.latest_action)),
        # List items carry no introduced date; the detail pass corrects it
        introduced_date=parse_date_required(item.update_date),
        latest_action_date=_latest_date(item.latest_action),
        latest_action_text=_latest_text(item.latest_action),
        data_source=DataSource.CONGRESS_GOV,
        data_quality=DataQuality.UNVERIFIED,
    )


def transform_bill_detail(detail: BillDetail) -> BillUpdate:
    summaries = detail.summaries.summary if detail.summaries and detail.summaries.summary else []
    subjects = []
    if detail.subjects and detail.subjects.legislative_subjects:
        subjects = [subject.name for subject in detail.subjects.legislative_subjects]

    return BillUpdate(
        title=detail.title,
        summary=summaries[0].text if summaries else None,
        status=infer_bill_status(_latest_text(detail.latest_action)),
        introduced_date=parse_date_required(detail.introduced_date or detail.update_date),
        latest_action_date=_latest_date(detail.latest_action),
        policy_area=detail.policy_area.name if detail.policy_area else None,
        sponsor_bioguide_id=detail.sponsors[0].bioguide_id if detail.sponsors else None,
        subjects=subjects,
    )


def _chamber_from_source(name: Optional[str]) -> Optional[Chamber]:
    """Source system names look like "House floor actions" or "Senate"."""
    chamber = map_chamber(name)
    if chamber or not name:
        return chamber
    lowered = name.lower()
    if "senate" in lowered:
        return Chamber.SENATE
    if "house" in lowered:
        return Chamber.HOUSE
    return None


def transform_bill_action(action: BillActionItem, bill_id: str) -> BillAction:
    chamber = _chamber_from_source(action.source_system.name if action.source_system else None)
    return BillAction(
        id=generate_action_id(bill_id, action),
        bill_id=bill_id,
        action_date=parse_date_required(action.action_date),
        action_code=action.action_code,
        action_text=action.text,
        chamber=chamber.value if chamber else None,
    )


def transform_cosponsor(cosponsor: BillCosponsorItem, bill_id: str) -> Cosponsor:
    return Cosponsor(
        id=f"{bill_id}:{cosponsor.bioguide_id}",
        bill_id=bill_id,
        legislator_id=cosponsor.bioguide_id,
        is_primary=False,
        cosponsor_date=parse_date(cosponsor.sponsorship_date),
    )


# Preferred first. Congress.gov labels formats loosely ("Formatted Text",
# "Formatted XML", "PDF"), so the link extension is checked too.
TEXT_FORMAT_PRIORITY = (
    ("xml", TextFormat.XML),
    ("htm", TextFormat.HTML),
    ("pdf", TextFormat.PDF),
    ("txt", TextFormat.TXT),
)

VERSION_NAMES = {
    "ih": "Introduced in House",
    "is": "Introduced in Senate",
    "rh": "Reported in House",
    "rs": "Reported in Senate",
    "rfh": "Referred in House",
    "rfs": "Referred in Senate",
    "rch": "Reference Change House",
    "rcs": "Reference Change Senate",
    "eh": "Engrossed in House",
    "es": "Engrossed in Senate",
    "eah": "Engrossed Amendment House",
    "eas": "Engrossed Amendment Senate",
    "enr": "Enrolled Bill",
    "pp": "Public Print",
    "pcs": "Placed on Calendar Senate",
    "pch": "Placed on Calendar House",
}


def _format_matches(link: TextFormatLink, marker: str) -> bool:
    if marker in link.type.lower():
        return True
    extension = link.url.lower().rsplit(".", 1)[-1]
    return extension.startswith(marker)


def get_version_name(version_code: str) -> str:
    return VERSION_NAMES.get(version_code.lower(), version_code.upper())


def transform_text_version(version: BillTextVersionItem, bill_id: str) -> Optional[TextVersion]:
    """
    Pick the best available format for a text version.

    Returns:
        TextVersion, or None when the version has no downloadable format
    """
    formats = version.formats or []
    for marker, text_format in TEXT_FORMAT_PRIORITY:
        found = next((f for f in formats if _format_matches(f, marker)), None)
        if found:
            return TextVersion(
                id=f"{bill_id}:{version.type}",
                bill_id=bill_id,
                version_code=version.type,
                version_name=get_version_name(version.type),
                text_url=found.url,
                text_format=text_format,
                published_date=parse_date_required(version.date),
            )
    return None


# ============================================================================
# Legislators
# ============================================================================

def transform_member_list_item(item: MemberListItem) -> Legislator:
    name = parse_full_name(item.name)
    terms = item.terms.item if item.terms and item.terms.item else []
    # Congress.gov lists the most recent term first
    latest_term = terms[0] if terms else None

    state = latest_term.state_code if latest_term and latest_term.state_code else None
    district = item.district
    if district is None and latest_term is not None:
        district = latest_term.district

    return Legislator(
        id=item.bioguide_id,
        first_name=name.first_name,
        last_name=name.last_name,
        middle_name=name.middle_name,
        full_name=item.name,
        party=map_party(item.party_name),
        chamber=(map_chamber(latest_term.chamber) if latest_term else None) or Chamber.HOUSE,
        state=state.upper() if state else map_state_to_code(item.state),
        district=district,
        in_office=True,
        data_source=DataSource.CONGRESS_GOV,
    )


def transform_member_detail(detail: MemberDetail) -> LegislatorUpdate:
    """Build a partial update; empty fields are dropped when it is applied."""
    latest_term = detail.terms[0] if detail.terms else None
    party_name = detail.party_history[0].party_name if detail.party_history else None

    # Missing values stay None so the stored record keeps what it has
    state = None
    if latest_term and latest_term.state_code:
        state = latest_term.state_code.upper()
    elif detail.state:
        state = map_state_to_code(detail.state)

    full_name = detail.direct_order_name or f"{detail.first_name or ''} {detail.last_name or ''}".strip()

    return LegislatorUpdate(
        first_name=detail.first_name or None,
        last_name=detail.last_name or None,
        middle_name=detail.middle_name,
        nick_name=detail.nick_name,
        full_name=full_name or None,
        party=map_party(party_name) if party_name else None,
        chamber=map_chamber(latest_term.chamber) if latest_term else None,
        state=state,
        district=latest_term.district if latest_term else None,
        in_office=bool(detail.current_member),
        website=detail.official_website_url,
        term_start=parse_date(str(latest_term.start_year)) if latest_term and latest_term.start_year else None,
        term_end=parse_date(str(latest_term.end_year)) if latest_term and latest_term.end_year else None,
    )


# ============================================================================
# Committees
# ============================================================================

def transform_committee(item: CommitteeListItem) -> Committee:
    return Committee(
        id=item.system_code,
        name=item.name,
        chamber=map_chamber(item.chamber) or Chamber.HOUSE,
        type=map_committee_type(item.committee_type_code),
        parent_id=item.parent.system_code if item.parent else None,
    )


def sort_committees_parents_first(committees: Iterable[Committee]) -> List[Committee]:
    """Stable sort putting top-level committees before subcommittees."""
    return sorted(committees, key=lambda committee: committee.parent_id is not None)
