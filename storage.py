"""
storage.py – Device records and their files.

This module contains DeviceStore, the single class responsible for the
device list and all file I/O related to it:

  - Creating and editing devices, with the saved-CPN and secret checks.
  - Rewriting the default devices file after every change.
  - Importing device arrays from, and exporting them to, user-chosen files.
  - Exporting the public device table to Excel.
  - Sorting the in-memory list and producing the public table rows.

It also offers read_fifo_player_file(), the loader behind the
"Import FIFO Player File" menu item.

Every public operation returns a StoreResult; nothing raises past this
module for bad input or file errors.
"""

import json
import logging
import os
from typing import Iterable, List, Optional

from openpyxl import Workbook

from config import CPN_LENGTH, DEFAULT_STATUS
from models import Device, DevicePublicView, ErrorCode, StoreResult

logger = logging.getLogger("ARemiPro")

EXCEL_HEADER = ["Device ID", "Name", "AppID", "Status"]


class DeviceStore:
    """
    Ordered, in-memory list of devices backed by a JSON file.

    Device IDs come from a counter that lives as long as the store does.
    It is never read back from a file, so every imported record gets a
    fresh ID.

    Parameters
    ----------
    path : str
        Default devices file (AppConfig.devices_path), rewritten after
        every create, edit and import.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._devices: List[Device] = []
        self._counter = 0

    def __len__(self) -> int:
        return len(self._devices)

    def _next_id(self) -> int:
        self._counter += 1
        return self._counter

    def _find(self, device_id: int) -> Optional[Device]:
        for device in self._devices:
            if device.id == device_id:
                return device
        return None

    # ------------------------------------------------------------------
    # Reading data
    # ------------------------------------------------------------------

    def list(self) -> List[DevicePublicView]:
        """Return the table rows: public columns only, in list order."""
        return [device.public_view() for device in self._devices]

    def load(self) -> StoreResult:
        """
        Read the default devices file into the store at startup.

        Records go through the import path, so they receive fresh IDs; the
        file is not rewritten.  A missing file leaves the store empty.
        """
        if not os.path.exists(self.path):
            return StoreResult.success(value=[])
        records = _read_device_array(self.path)
        if not records.ok:
            return records
        added = self._append_records(records.value)
        logger.info("Loaded %d devices from %s", len(added), self.path)
        return StoreResult.success(value=added)

    # ------------------------------------------------------------------
    # Writing data
    # ------------------------------------------------------------------

    def create(self, name: str, app_id: str, saved_cpn: str, security_key: str) -> StoreResult:
        """
        Validate the saved CPN and append a new device.

        The new device is given the next ID and the default status, and the
        devices file is rewritten immediately afterwards.
        """
        if saved_cpn is None or len(saved_cpn) != CPN_LENGTH:
            return StoreResult.failure(
                ErrorCode.INVALID_CPN,
                f"Invalid Saved CPN. It must be exactly {CPN_LENGTH} characters.",
                field="saved_cpn",
            )

        device = Device(
            id=self._next_id(),
            name=name,
            app_id=app_id,
            saved_cpn=saved_cpn,
            security_key=security_key,
            status=DEFAULT_STATUS,
        )
        self._devices.append(device)
        logger.info("Device created: %r", device)
        return self._persist(device)

    def verify_secret(self, device_id: int, secret: str) -> StoreResult:
        """
        Check *secret* against the saved CPN and security key of a device
        without changing anything.  Returns the public view on success.
        """
        device = self._find(device_id)
        if device is None:
            return StoreResult.failure(ErrorCode.NOT_FOUND, "Selected device not found.")
        if not device.matches_secret(secret):
            logger.warning("Wrong secret entered for device %d", device_id)
            return StoreResult.failure(
                ErrorCode.ACCESS_DENIED, "Incorrect secret. Access denied.", field="secret"
            )
        return StoreResult.success(value=device.public_view())

    def edit(self, device_id: int, secret: str, new_name: str, new_app_id: str) -> StoreResult:
        """
        Rename a device and change its AppID.

        The saved CPN, security key and status cannot be changed here.
        """
        checked = self.verify_secret(device_id, secret)
        if not checked.ok:
            return checked

        device = self._find(device_id)
        device.name = new_name
        device.app_id = new_app_id
        logger.info("Device updated: %r", device)
        return self._persist(device)

    def import_from(self, records: Iterable) -> StoreResult:
        """
        Append every record in *records* with a freshly assigned ID.

        The ID carried by each record is ignored and the saved CPN is not
        re-validated.  The devices file is written once, after the whole
        batch, and left alone when nothing was added.
        """
        added = self._append_records(records)
        logger.info("Imported %d devices", len(added))
        if not added:
            return StoreResult.success(added, "No devices to import.")
        return self._persist(added)

    def import_file(self, path: str) -> StoreResult:
        """Read a device array from *path* and import it."""
        records = _read_device_array(path)
        if not records.ok:
            return records
        return self.import_from(records.value)

    def _append_records(self, records: Iterable) -> List[Device]:
        added: List[Device] = []
        for item in records:
            if not isinstance(item, dict):
                logger.warning("Skipping device entry that is not an object: %r", item)
                continue
            device = Device(
                id=self._next_id(),
                name=_text(item, "name"),
                app_id=_text(item, "appId"),
                saved_cpn=_secret(item, "savedCPN"),
                security_key=_secret(item, "securityKey"),
                status=_text(item, "status"),
            )
            if device.saved_cpn is None:
                logger.warning("Imported device %d has no saved CPN", device.id)
            elif len(device.saved_cpn) != CPN_LENGTH:
                logger.warning(
                    "Imported device %d has a saved CPN of %d characters",
                    device.id, len(device.saved_cpn),
                )
            self._devices.append(device)
            added.append(device)
        return added

    def _persist(self, value) -> StoreResult:
        """
        Rewrite the default devices file and wrap *value* in the result.

        On a write error the in-memory change is kept and *value* travels
        with the IO_FAILURE so the caller can warn that it was not saved.
        """
        try:
            _write_device_array(self._devices, self.path)
        except OSError:
            logger.exception("Failed to write devices file %s", self.path)
            return StoreResult.failure(
                ErrorCode.IO_FAILURE,
                f"The change was applied but could not be saved to:\n{self.path}",
                value=value,
            )
        return StoreResult.success(value=value)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_all(self, destination: str) -> StoreResult:
        """Write every device, secrets included, to *destination*."""
        return self._export(list(self._devices), destination)

    def export_subset(self, ids: Iterable[int], destination: str) -> StoreResult:
        """Write the devices whose ID is in *ids*, keeping list order."""
        wanted = set(ids)
        return self._export([d for d in self._devices if d.id in wanted], destination)

    def _export(self, devices: List[Device], destination: str) -> StoreResult:
        try:
            _write_device_array(devices, destination)
        except OSError:
            logger.exception("Failed to export devices to %s", destination)
            return StoreResult.failure(
                ErrorCode.IO_FAILURE, f"Error writing file:\n{destination}"
            )
        logger.info("Exported %d devices to %s", len(devices), destination)
        return StoreResult.success(value=len(devices))

    def export_excel(self, destination: str, column_widths: Optional[dict] = None) -> StoreResult:
        """
        Build (or overwrite) an Excel workbook with the public device table.

        Only the Device ID, Name, AppID and Status columns are written.
        *column_widths* maps column letters to widths in characters
        (the 'excel_column_widths' config entry).
        """
        wb = Workbook()
        ws = wb.active
        ws.title = "Devices"
        ws.append(EXCEL_HEADER)
        for row in self.list():
            ws.append(list(row))

        for col, width in (column_widths or {}).items():
            if col in ("A", "B", "C", "D"):
                try:
                    ws.column_dimensions[col].width = int(width)
                except (TypeError, ValueError):
                    logger.warning("Ignoring Excel width %r for column %s", width, col)

        try:
            wb.save(destination)
        except OSError:
            logger.exception("Failed to write Excel file %s", destination)
            return StoreResult.failure(
                ErrorCode.IO_FAILURE, f"Error writing file:\n{destination}"
            )
        logger.info("Exported device table to Excel: %s", destination)
        return StoreResult.success(value=len(self._devices))

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def sort_by_name(self) -> None:
        self._devices.sort(key=lambda d: d.name)

    def sort_by_app_id(self) -> None:
        self._devices.sort(key=lambda d: d.app_id)


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------

def _text(item: dict, key: str) -> str:
    value = item.get(key)
    return "" if value is None else str(value)


def _secret(item: dict, key: str) -> Optional[str]:
    # A missing secret stays None so that it can never be matched.
    value = item.get(key)
    return None if value is None else str(value)


def _write_device_array(devices: List[Device], path: str) -> None:
    with open(path, "w", encoding="utf-8") as fh:
        json.dump([d.to_dict() for d in devices], fh, indent=2)


def _read_device_array(path: str) -> StoreResult:
    """
    Parse *path* as a JSON array of device objects.

    JSON null counts as an empty array.  Returns the raw list on success.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError):
        logger.exception("Failed to read devices file %s", path)
        return StoreResult.failure(ErrorCode.IO_FAILURE, f"Error reading file:\n{path}")

    if data is None:
        return StoreResult.success(value=[])
    if not isinstance(data, list):
        logger.error("Devices file %s does not contain a JSON array", path)
        return StoreResult.failure(
            ErrorCode.IO_FAILURE, f"The file does not contain a device list:\n{path}"
        )
    return StoreResult.success(value=data)


def read_fifo_player_file(path: str) -> StoreResult:
    """
    Read a FIFO Player file (a JavaScript SRC file).

    Only names ending in .js are accepted.  The text is returned as-is.
    """
    if not path.lower().endswith(".js"):
        return StoreResult.failure(
            ErrorCode.INVALID_INPUT,
            "Please select a valid JavaScript SRC file (.js).",
            field="path",
        )
    try:
        with open(path, "r", encoding="utf-8") as fh:
            content = fh.read()
    except (OSError, ValueError):
        logger.exception("Failed to read FIFO Player file %s", path)
        return StoreResult.failure(ErrorCode.IO_FAILURE, f"Error reading file:\n{path}")
    logger.info("FIFO Player file imported: %s", path)
    return StoreResult.success(value=content)
