"""Config module - settings and constants."""

from legisync.config.settings import settings, Settings
from legisync.config.constants import (
    CURRENT_CONGRESS,
    SYNC_ENTITY_ORDER,
)

__all__ = [
    "settings",
    "Settings",
    "CURRENT_CONGRESS",
    "SYNC_ENTITY_ORDER",
]
