"""
Application-wide constants.

State codes, collection names and other fixed values live here.
"""
from datetime import datetime

# US State and Territory Codes -> names
US_STATES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington", "WV": "West Virginia",
    "WI": "Wisconsin", "WY": "Wyoming",
    # Territories with delegates
    "DC": "District of Columbia",
    "PR": "Puerto Rico",
    "VI": "Virgin Islands",
    "GU": "Guam",
    "AS": "American Samoa",
    "MP": "Northern Mariana Islands",
}

# Congress numbers - calculated dynamically
# Formula: Each Congress is 2 years, starting from 1st Congress in 1789
# Congress number = ((current_year - 1789) // 2) + 1
def _calculate_current_congress() -> int:
    """Calculate the current Congress number based on today's date."""
    current_year = datetime.now().year
    return ((current_year - 1789) // 2) + 1

CURRENT_CONGRESS = _calculate_current_congress()  # Auto-calculates (119 in 2025)

# MongoDB Collection Names
COLLECTION_CONGRESSES = "congresses"
COLLECTION_LEGISLATORS = "legislators"
COLLECTION_COMMITTEES = "committees"
COLLECTION_BILLS = "bills"
COLLECTION_BILL_ACTIONS = "bill_actions"
COLLECTION_BILL_COSPONSORS = "bill_cosponsors"
COLLECTION_BILL_TEXT_VERSIONS = "bill_text_versions"

# Sync entity types in dependency order: bills reference committees and sponsors
SYNC_ENTITY_ORDER = ["committees", "legislators", "bills"]

# Congress.gov caps page size at 250
MAX_PAGE_SIZE = 250

# HTTP statuses worth retrying
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})
