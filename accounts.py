"""
accounts.py – Login accounts.

AccountStore keeps the username -> password map used by the login dialog
and writes the whole map back to accounts.json after every change.
Passwords are stored and compared in plaintext.
"""

import json
import logging
import os
from typing import Dict, List

from config import DEFAULT_ACCOUNTS
from models import ErrorCode, StoreResult

logger = logging.getLogger("ARemiPro")


class AccountStore:
    """
    In-memory account map backed by a JSON file.

    Parameters
    ----------
    path : str
        Location of the accounts file (AppConfig.accounts_path).
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._accounts: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, username) -> bool:
        return username in self._accounts

    def usernames(self) -> List[str]:
        return sorted(self._accounts)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> StoreResult:
        """
        Read the accounts file.

        A missing file is a first run: the default accounts are seeded and
        written to disk.  An unreadable or malformed file leaves the store
        empty and returns an IO_FAILURE so the UI can warn about it.
        Entries whose password is not a string are skipped with a warning.
        """
        if not os.path.exists(self.path):
            self._accounts = dict(DEFAULT_ACCOUNTS)
            logger.info("No accounts file found; seeded %d default accounts", len(self._accounts))
            return self._persist(self.usernames())

        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            logger.exception("Failed to read accounts file %s", self.path)
            self._accounts = {}
            return StoreResult.failure(
                ErrorCode.IO_FAILURE,
                f"Could not read the accounts file:\n{self.path}",
            )

        if data is None:
            data = {}
        if not isinstance(data, dict):
            logger.error("Accounts file %s does not contain a JSON object", self.path)
            self._accounts = {}
            return StoreResult.failure(
                ErrorCode.IO_FAILURE,
                f"The accounts file is not in the expected format:\n{self.path}",
            )

        self._accounts = {}
        for user, pwd in data.items():
            if not isinstance(pwd, str):
                logger.warning("Skipping account %r: password is not a string", user)
                continue
            self._accounts[user] = pwd
        logger.info("Loaded %d accounts", len(self._accounts))
        return StoreResult.success()

    def save(self) -> StoreResult:
        """Overwrite the accounts file with the full map."""
        return self._persist(None)

    def _persist(self, value) -> StoreResult:
        """
        Write the map and wrap *value* in the result.  On a write error the
        in-memory change is kept and *value* travels with the IO_FAILURE.
        """
        try:
            with open(self.path, "w", encoding="utf-8") as fh:
                json.dump(self._accounts, fh, indent=2)
        except OSError:
            logger.exception("Failed to write accounts file %s", self.path)
            return StoreResult.failure(
                ErrorCode.IO_FAILURE,
                f"Accounts could not be saved to:\n{self.path}",
                value=value,
            )
        return StoreResult.success(value)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def authenticate(self, username: str, password: str) -> bool:
        stored = self._accounts.get(username)
        return stored is not None and stored == password

    def create(self, username: str, password: str) -> StoreResult:
        """Add a new account; the username must not exist yet."""
        if not username:
            return StoreResult.failure(
                ErrorCode.INVALID_INPUT, "Username cannot be empty.", field="username"
            )
        if not password:
            return StoreResult.failure(
                ErrorCode.INVALID_INPUT, "Password cannot be empty.", field="password"
            )
        if username in self._accounts:
            return StoreResult.failure(
                ErrorCode.DUPLICATE_USERNAME, "Username already exists.", field="username"
            )

        self._accounts[username] = password
        logger.info("Account created: %s", username)
        return self._persist(username)

    def change_password(self, username: str, old_password: str, new_password: str) -> StoreResult:
        """Replace the password of *username* after checking the current one."""
        if not self.authenticate(username, old_password):
            return StoreResult.failure(
                ErrorCode.WRONG_PASSWORD, "Old password is incorrect.", field="old_password"
            )
        if not new_password:
            return StoreResult.failure(
                ErrorCode.INVALID_INPUT, "New password cannot be empty.", field="new_password"
            )

        self._accounts[username] = new_password
        logger.info("Password changed for account: %s", username)
        return self._persist(username)
