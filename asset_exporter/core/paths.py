# ==============================================================================
# ASSET EXPORTER - PATH UTILITIES
# ==============================================================================
# Centralized handling of the per-user locations the exporter reads and writes.
#
# User data (config and ledger) goes in the platform's application data
# directory. Exports default to a folder in the user's home or Documents.
#
# Usage:
#   from asset_exporter.core.paths import Paths
#   ledger_path = Paths.get_ledger_path()
#   config_path = Paths.get_config_path()
# ==============================================================================

import os
import sys
from typing import Optional


class Paths:
    """
    Centralized path management for Asset Exporter.

    User data (config, ledger) is stored in:
    - Windows: %APPDATA%/AssetExporter/
    - Linux: $XDG_CONFIG_HOME/AssetExporter/ (default ~/.config)
    - macOS: ~/Library/Application Support/AssetExporter/
    """

    APP_NAME = "AssetExporter"

    # Cache for the computed user data directory
    _user_data_dir: Optional[str] = None

    @classmethod
    def get_user_data_dir(cls, create: bool = True) -> str:
        """
        Get the user data directory.

        Args:
            create: Create the directory if it does not exist yet

        Returns:
            Absolute path to user data directory
        """
        if cls._user_data_dir is None:
            if sys.platform == 'win32':
                base = os.environ.get('APPDATA', os.path.expanduser('~'))
                cls._user_data_dir = os.path.join(base, cls.APP_NAME)
            elif sys.platform == 'darwin':
                cls._user_data_dir = os.path.join(
                    os.path.expanduser('~'),
                    'Library', 'Application Support', cls.APP_NAME
                )
            else:
                base = os.environ.get('XDG_CONFIG_HOME',
                                      os.path.join(os.path.expanduser('~'), '.config'))
                cls._user_data_dir = os.path.join(base, cls.APP_NAME)

        if create:
            os.makedirs(cls._user_data_dir, exist_ok=True)

        return cls._user_data_dir

    @classmethod
    def get_config_path(cls) -> str:
        """Absolute path to config.json (directory is not created)."""
        return os.path.join(cls.get_user_data_dir(create=False), 'config.json')

    @classmethod
    def get_ledger_path(cls) -> str:
        """Absolute path to the export ledger database."""
        return os.path.join(cls.get_user_data_dir(create=False), 'ledger.db')

    @classmethod
    def get_default_output_dir(cls) -> str:
        """
        Get a sensible default output directory.

        Returns:
            Path to Documents/AssetExporter (Windows) or ~/AssetExporter
        """
        if sys.platform == 'win32':
            docs = os.path.join(os.path.expanduser('~'), 'Documents')
        else:
            docs = os.path.expanduser('~')

        return os.path.join(docs, cls.APP_NAME)
