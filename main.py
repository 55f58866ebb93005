"""
main.py – Application entry point.

This file is intentionally minimal.  All logic lives in specialised modules:

  config.py   – AppConfig      : constants, file paths, config I/O, logging
  models.py   – Device, DevicePublicView, StoreResult, ErrorCode
  accounts.py – AccountStore   : username/password map and accounts.json
  storage.py  – DeviceStore    : device list, devices.json, import/export,
                                  Excel export, FIFO Player file loading
  auth.py     – AuthManager    : login, account creation, password change
  ui.py       – AppWindow      : complete Tkinter UI, all event handlers

To run the application:
    python main.py

To build a standalone executable (requires PyInstaller):
    pyinstaller --onefile --windowed main.py
"""

from ui import AppWindow


def main() -> None:
    """Create the application window and start the event loop."""
    app = AppWindow()
    app.run()


if __name__ == "__main__":
    main()
