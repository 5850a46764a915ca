"""
Scorekinole Services

Application services for events, persistence, settings, logging, and export.
"""

from services.event_bus import EventBus
from services.export import ScoresheetExporter
from services.log_config import setup_logging
from services.settings import SettingsStore
from services.storage import MatchStorage

__all__ = ["EventBus", "ScoresheetExporter", "setup_logging", "SettingsStore", "MatchStorage"]
