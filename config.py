"""
config.py – Application configuration and constants.

This module defines AppConfig, a central container for:
  - All application-wide constants (application name, CPN length, default
    device status, default accounts, file names).
  - The user preferences (Excel column widths, startup loading, window
    geometry) stored as a JSON file on disk and exposed through a simple
    dict-like interface.
  - Helper utilities shared across modules: OS-appropriate data-directory
    resolution and logger setup.

No other application module is imported here, so config.py sits at the bottom
of the dependency graph and can be safely imported by any other module.
"""

import copy
import json
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

import appdirs

# ---------------------------------------------------------------------------
# Application-level constants – these never change at runtime.
# ---------------------------------------------------------------------------

APP_NAME = "ARemiPro"

# Human-readable application version shown in the About dialog.
APP_VERSION = "1.0.0"

# A saved CPN must have exactly this many characters when a device is created.
CPN_LENGTH = 8

# Status given to every newly created device.
DEFAULT_STATUS = "Active"

# Accounts seeded on first run, when no accounts file exists yet.
DEFAULT_ACCOUNTS: dict = {
    "admin": "admin123",
    "user":  "password",
    "test":  "test123",
}

ACCOUNTS_FILENAME = "accounts.json"
DEVICES_FILENAME  = "devices.json"
CONFIG_FILENAME   = "config.json"
LOG_FILENAME      = "app.log"

# ---------------------------------------------------------------------------
# Default values written to config.json on first run.
# ---------------------------------------------------------------------------
DEFAULT_CONFIG: dict = {
    # Column widths (in characters) for the exported Excel device table.
    "excel_column_widths": {"A": 12, "B": 30, "C": 16, "D": 12},
    # Read devices.json back into the table when the main window opens.
    "load_devices_on_start": True,
    # Initial size of the main window.
    "window_geometry": "800x500",
}


class AppConfig:
    """
    Manages application configuration, file paths and logging.

    On instantiation the class:
      1. Resolves the OS-appropriate user-data directory (or uses the one
         passed in).
      2. Derives all relevant file paths from that directory.
      3. Sets up a rotating log handler.
      4. Loads (or creates) the JSON configuration file.

    Attributes
    ----------
    user_data_dir : str
        Absolute path of the directory that stores all persistent data.
    accounts_path : str
        JSON object mapping username to password.
    devices_path : str
        Default JSON array of device records, rewritten after every change.
    config_path : str
        JSON configuration file.
    log_path : str
        Rotating application log.
    data : dict
        The currently loaded configuration values (mutable at runtime).
    logger : logging.Logger
        Shared Python logger for the whole application.
    """

    def __init__(self, user_data_dir: Optional[str] = None) -> None:
        # --- Resolve (and create) the persistent data directory ---
        self.user_data_dir: str = self._get_user_data_dir(user_data_dir)

        # --- Derive all file paths from the data directory ---
        self.accounts_path: str = os.path.join(self.user_data_dir, ACCOUNTS_FILENAME)
        self.devices_path:  str = os.path.join(self.user_data_dir, DEVICES_FILENAME)
        self.config_path:   str = os.path.join(self.user_data_dir, CONFIG_FILENAME)
        self.log_path:      str = os.path.join(self.user_data_dir, LOG_FILENAME)

        # --- Configure the rotating log handler ---
        self.logger: logging.Logger = self._setup_logger()

        # --- Load or create the JSON configuration ---
        self.data: dict = self._load()

        self.logger.info("AppConfig initialised; data dir: %s", self.user_data_dir)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _get_user_data_dir(override: Optional[str] = None) -> str:
        """
        Return (and create if necessary) the directory holding every data
        file of the application.

        *override* wins when given; otherwise appdirs picks the OS standard
        location (e.g. %LOCALAPPDATA%\\ARemiPro on Windows,
        ~/.local/share/ARemiPro on Linux).
        """
        path = override or appdirs.user_data_dir(APP_NAME)
        os.makedirs(path, exist_ok=True)
        return path

    def _setup_logger(self) -> logging.Logger:
        """
        Create and configure a rotating file logger for the whole application.

        The log rotates at 2 MB and keeps up to 3 backup files.
        Duplicate handlers are avoided if the logger already exists
        (e.g. on module reload during development).
        """
        logger = logging.getLogger(APP_NAME)
        logger.setLevel(logging.DEBUG)

        if not logger.handlers:
            handler = RotatingFileHandler(
                self.log_path,
                maxBytes=2_000_000,
                backupCount=3,
                encoding="utf-8",
            )
            handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s: %(message)s")
            )
            logger.addHandler(handler)

        return logger

    def _load(self) -> dict:
        """
        Read config.json from disk.

        Missing keys are back-filled from DEFAULT_CONFIG so that new
        settings introduced in later versions are always present.

        Returns the loaded (or default) configuration dictionary.
        """
        try:
            if os.path.exists(self.config_path):
                with open(self.config_path, "r", encoding="utf-8") as fh:
                    cfg = json.load(fh)
                if not isinstance(cfg, dict):
                    raise ValueError("config.json does not contain a JSON object")
                for key, value in DEFAULT_CONFIG.items():
                    cfg.setdefault(key, copy.deepcopy(value))
                return cfg
        except Exception:
            self.logger.exception("Failed to load config; using defaults")

        # Fallback: return a fresh copy of the defaults
        return copy.deepcopy(DEFAULT_CONFIG)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def save(self) -> None:
        """Persist the current configuration dictionary to disk as JSON."""
        try:
            with open(self.config_path, "w", encoding="utf-8") as fh:
                json.dump(self.data, fh, indent=2)
            self.logger.info("Config saved")
        except Exception:
            self.logger.exception("Failed to save config")

    def get(self, key: str, default=None):
        """Return a configuration value by key, or *default* if not found."""
        return self.data.get(key, default)

    def set(self, key: str, value) -> None:
        """
        Update a configuration value in memory.

        Call save() afterwards to persist the change to disk.
        """
        self.data[key] = value
