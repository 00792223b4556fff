from typing import Any, List, Optional
import json
import os
from pydantic import BaseModel, Field, ValidationError
from loguru import logger
from .events import Signal

# --- Settings Models ---
DEFAULT_IMPORT_EXCLUSIONS = [
    "**/node_modules/**",
    "**/.metadata/**",
    "**/archetype-resources/**",
    "**/META-INF/maven/**",
]

class GeneralSettings(BaseModel):
    debug_mode: bool = False
    log_dir: str = "logs"
    workspace_root: Optional[str] = None

class ImportSettings(BaseModel):
    enabled: bool = True
    exclusions: List[str] = Field(default_factory=lambda: list(DEFAULT_IMPORT_EXCLUSIONS))
    download_sources: bool = False
    collect_dependents: bool = True  # Re-evaluate parent/sibling modules on single-unit change
    offline: bool = False
    sources_mirror: Optional[str] = None  # Directory holding "-sources" archives to fetch from

class StorageSettings(BaseModel):
    state_dir: str = ".unitsync"
    digest_file: str = "digests.json"
    workspace_state_file: str = "workspace.json"

class WatchSettings(BaseModel):
    enabled: bool = False

class AppConfig(BaseModel):
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    importer: ImportSettings = Field(default_factory=ImportSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    watch: WatchSettings = Field(default_factory=WatchSettings)

# --- Manager ---
class ConfigManager:
    """
    Manages application configuration with persistence and reactivity.
    """
    def __init__(self, filepath: str = "unitsync.json"):
        self.filepath = filepath
        self._data = AppConfig()
        self.on_changed = Signal("ConfigChanged")
        self._load()

    @property
    def data(self) -> AppConfig:
        return self._data

    def update(self, section: str, key: str, value: Any):
        """Update a setting, validate via Pydantic, autosave, and emit change event."""
        if not hasattr(self._data, section):
            raise ValueError(f"Invalid section: {section}")

        section_obj = getattr(self._data, section)
        if not hasattr(section_obj, key):
            raise ValueError(f"Invalid key: {key} in section {section}")

        payload = section_obj.model_dump()
        payload[key] = value
        validated = type(section_obj).model_validate(payload)
        setattr(self._data, section, validated)
        self._save()
        self.on_changed.emit(section, key, getattr(validated, key))

    def get(self, section: str, key: str) -> Any:
        section_obj = getattr(self._data, section)
        return getattr(section_obj, key)

    def _load(self):
        """Load settings from JSON or TOML file if present; otherwise keep defaults."""
        if os.path.isfile(self.filepath):
            try:
                if self.filepath.endswith('.toml'):
                    import tomllib
                    with open(self.filepath, "rb") as f:
                        raw = tomllib.load(f)
                else:
                    with open(self.filepath, "r", encoding="utf-8") as f:
                        raw = json.load(f)
                self._data = AppConfig.model_validate(raw)
            except (OSError, ValueError, ValidationError) as e:
                logger.error(f"Failed to load config from {self.filepath}: {e}")
                self._save()
        else:
            self._save()

    def _save(self):
        """Persist current config to JSON file (TOML files are treated as read-only)."""
        if self.filepath.endswith('.toml'):
            return
        try:
            dirname = os.path.dirname(self.filepath)
            if dirname:
                os.makedirs(dirname, exist_ok=True)
            with open(self.filepath, "w", encoding="utf-8") as f:
                json.dump(self._data.model_dump(), f, indent=4)
        except OSError as e:
            logger.error(f"Failed to save config to {self.filepath}: {e}")
