# ==============================================================================
# ASSET EXPORTER - CONFIGURATION MODULE
# ==============================================================================
# Centralized configuration management for the application.
#
# This module handles:
#   - Loading/saving configuration from a JSON file
#   - Default values for all settings
#   - Validation of mode names, suffixes and worker counts
#
# Configuration is stored in: <user data dir>/config.json (see Paths)
#
# Usage:
#   from asset_exporter.core.config import Config
#   config = Config()
#   config.load()
#   print(config.structured_suffix)
#   config.export_workers = 4
#   config.save()
# ==============================================================================

import os
import json
from typing import Optional, Dict, Any, List

from .paths import Paths


# ==============================================================================
# DEFAULT CONFIGURATION VALUES
# ==============================================================================
# These are used when no config file exists or when values are missing.

DEFAULT_CONFIG = {
    # -------------------------------------------------------------------------
    # PATHS
    # -------------------------------------------------------------------------
    # Default output folder for exports (CLI --output overrides)
    "output_path": "",

    # -------------------------------------------------------------------------
    # EXPORT SCRIPT
    # -------------------------------------------------------------------------
    # Modes active before the first [header] line of a script
    "default_modes": ["json"],

    # Suffixes that wildcard resolution folds into one logical stem
    # (a sprite's .spr image and .act animation belong together)
    "grouped_suffixes": ["spr", "act"],

    # -------------------------------------------------------------------------
    # OUTPUT NAMING
    # -------------------------------------------------------------------------
    "structured_suffix": ".json",
    "text_suffix": ".txt",
    "texture_suffix": ".png",

    # Indentation of structured JSON output
    "json_indent": 2,

    # Encoding used to read pass-through text entries
    "text_encoding": "utf-8",

    # -------------------------------------------------------------------------
    # PERFORMANCE
    # -------------------------------------------------------------------------
    # Threads used to export the entries of one pattern (1 = sequential)
    "export_workers": 1,

    # GRF virtual file system byte cache
    "grf_cache_size_mb": 64,

    # -------------------------------------------------------------------------
    # LEDGER
    # -------------------------------------------------------------------------
    # Record each run in the SQLite export ledger
    "ledger_enabled": False,

    # Ledger database path (empty = user data directory)
    "ledger_path": "",

    # -------------------------------------------------------------------------
    # OUTPUT / DIAGNOSTICS
    # -------------------------------------------------------------------------
    "use_colors": True,

    # Mirror console diagnostics to this file (empty = disabled)
    "log_file": "",

    # Print tracebacks for per-entry failures
    "debug_mode": False,
}

# Mode names accepted in default_modes and in script headers
KNOWN_MODES = ("raw", "json", "text", "texture")

# Keys whose loaded values go through their property setter
VALIDATED_KEYS = ("default_modes",)


# ==============================================================================
# CONFIGURATION CLASS
# ==============================================================================
class Config:
    """
    Configuration manager for Asset Exporter.

    Handles loading, saving, and accessing application settings.
    Settings are stored in a JSON file and can be accessed as
    properties on this object.

    Attributes:
        config_path: Path to the configuration file
        data: Dictionary containing all settings

    Example:
        >>> config = Config("exporter.json")
        >>> config.load()
        >>> config.grouped_suffixes
        ['spr', 'act']
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to config file. If None, uses the user data
                         directory (Paths.get_config_path()).
        """
        self.config_path = config_path or Paths.get_config_path()

        # Initialize with defaults (lists copied so edits never leak back)
        self.data: Dict[str, Any] = json.loads(json.dumps(DEFAULT_CONFIG))

        self._modified = False

    # -------------------------------------------------------------------------
    # LOADING AND SAVING
    # -------------------------------------------------------------------------

    def load(self) -> bool:
        """
        Load configuration from file.

        If the file doesn't exist, defaults are used.
        Missing keys keep their defaults; unknown keys are ignored.

        Returns:
            True if file was loaded, False if using defaults
        """
        if not os.path.isfile(self.config_path):
            return False

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            print(f"[ERROR] Invalid config file {self.config_path}: {e}")
            return False
        except OSError as e:
            print(f"[ERROR] Failed to load config: {e}")
            return False

        if not isinstance(loaded, dict):
            print(f"[ERROR] Invalid config file {self.config_path}: expected an object")
            return False

        for key, value in loaded.items():
            if key not in self.data:
                print(f"[WARN] Unknown config key ignored: {key}")
            elif key in VALIDATED_KEYS:
                try:
                    setattr(self, key, value)
                except (TypeError, ValueError) as e:
                    print(f"[WARN] Invalid config value for {key}, using default: {e}")
            else:
                self.data[key] = value

        self._modified = False
        return True

    def save(self) -> bool:
        """
        Save configuration to file.

        Creates the directory if it doesn't exist.

        Returns:
            True if saved successfully
        """
        try:
            directory = os.path.dirname(self.config_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self.data, f, indent=4, sort_keys=True)

            self._modified = False
            return True

        except OSError as e:
            print(f"[ERROR] Failed to save config: {e}")
            return False

    def reset_to_defaults(self):
        """Reset all settings to their default values."""
        self.data = json.loads(json.dumps(DEFAULT_CONFIG))
        self._modified = True

    @property
    def is_modified(self) -> bool:
        return self._modified

    # -------------------------------------------------------------------------
    # PROPERTY ACCESS
    # -------------------------------------------------------------------------

    @property
    def output_path(self) -> str:
        return self.data.get('output_path', '')

    @output_path.setter
    def output_path(self, value: str):
        self.data['output_path'] = value
        self._modified = True

    @property
    def default_modes(self) -> List[str]:
        """Mode names active before the first script header."""
        return list(self.data.get('default_modes', ['json']))

    @default_modes.setter
    def default_modes(self, value: List[str]):
        names = [str(v).strip().lower() for v in value]
        unknown = [n for n in names if n not in KNOWN_MODES]
        if unknown or not names:
            raise ValueError(f"default_modes must be a non-empty subset of {KNOWN_MODES}")
        self.data['default_modes'] = names
        self._modified = True

    @property
    def grouped_suffixes(self) -> List[str]:
        """Lower-cased suffixes (no leading dot) folded into one stem."""
        return [s.lower().lstrip('.') for s in self.data.get('grouped_suffixes', [])]

    @grouped_suffixes.setter
    def grouped_suffixes(self, value: List[str]):
        self.data['grouped_suffixes'] = [str(s).lower().lstrip('.') for s in value]
        self._modified = True

    @property
    def structured_suffix(self) -> str:
        return self.data.get('structured_suffix', '.json')

    @property
    def text_suffix(self) -> str:
        return self.data.get('text_suffix', '.txt')

    @property
    def texture_suffix(self) -> str:
        return self.data.get('texture_suffix', '.png')

    @property
    def json_indent(self) -> int:
        return int(self.data.get('json_indent', 2))

    @property
    def text_encoding(self) -> str:
        return self.data.get('text_encoding', 'utf-8')

    @property
    def export_workers(self) -> int:
        """Get the number of export threads."""
        return max(1, int(self.data.get('export_workers', 1)))

    @export_workers.setter
    def export_workers(self, value: int):
        """Set the number of export threads (clamped to 1-16)."""
        self.data['export_workers'] = max(1, min(16, int(value)))
        self._modified = True

    @property
    def grf_cache_size_mb(self) -> int:
        return int(self.data.get('grf_cache_size_mb', 64))

    @property
    def ledger_enabled(self) -> bool:
        return bool(self.data.get('ledger_enabled', False))

    @ledger_enabled.setter
    def ledger_enabled(self, value: bool):
        self.data['ledger_enabled'] = bool(value)
        self._modified = True

    @property
    def ledger_path(self) -> str:
        """Ledger database path, falling back to the user data directory."""
        return self.data.get('ledger_path') or Paths.get_ledger_path()

    @property
    def use_colors(self) -> bool:
        return bool(self.data.get('use_colors', True))

    @property
    def log_file(self) -> str:
        return self.data.get('log_file', '')

    @property
    def debug_mode(self) -> bool:
        """Check if debug mode is enabled."""
        return bool(self.data.get('debug_mode', False))

    @debug_mode.setter
    def debug_mode(self, value: bool):
        self.data['debug_mode'] = bool(value)
        self._modified = True

    # -------------------------------------------------------------------------
    # GENERIC ACCESS
    # -------------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any):
        self.data[key] = value
        self._modified = True

    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access: config['key']"""
        return self.data[key]

    def __setitem__(self, key: str, value: Any):
        """Allow dictionary-style setting: config['key'] = value"""
        self.data[key] = value
        self._modified = True


# ==============================================================================
# GLOBAL CONFIG INSTANCE
# ==============================================================================
# This provides a singleton-like access to configuration

_global_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Creates and loads config on first call.

    Returns:
        The global Config instance
    """
    global _global_config

    if _global_config is None:
        _global_config = Config()
        _global_config.load()

    return _global_config
