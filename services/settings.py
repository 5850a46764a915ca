"""
Settings Store - loads and saves the match configuration.

The settings file is a JSON SettingsDocument. Documents written under a
different schema version are thrown away; fields missing from a current
document are filled in from the model defaults.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from config import PATHS, SETTINGS_SCHEMA_VERSION
from models.schemas import MatchConfiguration, SettingsDocument

logger = logging.getLogger(__name__)


class SettingsStore:
    """Reads and writes the settings document at `path`."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else PATHS.settings

    def load(self) -> MatchConfiguration:
        """
        Load the stored configuration.

        Falls back to defaults (and rewrites the file) when the file is
        missing, malformed, or from another schema version.
        """
        if not self.path.exists():
            logger.debug("No settings file at %s, using defaults", self.path)
            return self._reset()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read settings file %s: %s", self.path, e)
            return self._reset()

        if not isinstance(data, dict):
            logger.warning("Settings file %s is not a JSON object, using defaults", self.path)
            return self._reset()

        version = data.get("schema_version")
        if version != SETTINGS_SCHEMA_VERSION:
            logger.warning(
                "Discarding settings with schema version %s (expected %s)",
                version, SETTINGS_SCHEMA_VERSION,
            )
            return self._reset()

        try:
            document = SettingsDocument.model_validate(data)
        except ValidationError as e:
            logger.warning("Invalid settings in %s, using defaults: %s", self.path, e)
            return self._reset()

        return document.configuration

    def save(self, configuration: MatchConfiguration) -> None:
        """Write `configuration` under the current schema version."""
        document = SettingsDocument(configuration=configuration)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(document.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("Settings saved to %s", self.path)

    def _reset(self) -> MatchConfiguration:
        configuration = MatchConfiguration()
        self.save(configuration)
        return configuration
