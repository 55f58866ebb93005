"""
ui.py – Main application window.

This module contains AppWindow, which is the top-level class that owns
the Tkinter root window and wires all subsystems together.

Responsibilities:
  - Create AppConfig, AccountStore, DeviceStore and AuthManager in the
    correct dependency order.
  - Create the Tk root window and apply visual styling.
  - Delegate login to AuthManager before the main window is shown.
  - Build the menu bar, the device table and the control buttons.
  - Implement all event handlers (create, edit, import, export, sort, …),
    turning every StoreResult into a dialog.

The table only ever shows DeviceStore.list() rows; saved CPNs and security
keys never reach a widget except the entry the user types them into.

Widget hierarchy
----------------
root (Tk)
 ├─ menu bar  File · View · Tools · Settings · Exit
 ├─ row 0: main (ttk.Frame)
 │   ├─ tree (ttk.Treeview) + v_scroll   Device ID · Name · AppID · Status
 │   └─ status label (logged-in user, device count)
 └─ row 1: control frame  [Create New Device | Edit Device]
"""

import logging
import sys
from tkinter import (
    Menu, Tk, filedialog, messagebox, simpledialog, ttk,
)
from typing import List, Optional

# Local application modules.
from accounts import AccountStore
from auth import AuthManager, ask_form
from config import AppConfig, APP_VERSION
from models import StoreResult
from storage import DeviceStore, read_fifo_player_file

logger = logging.getLogger("ARemiPro")

# ---------------------------------------------------------------------------
# Visual constants (fonts, colours)
# ---------------------------------------------------------------------------
APP_FONT    = ("Segoe UI", 10)
SMALL_FONT  = ("Segoe UI", 9)

BG = "#f0f2f5"   # main window / frame background

JSON_FILETYPES = [("JSON", "*.json"), ("All files", "*.*")]

COLUMNS = (
    ("id",     "Device ID", 90),
    ("name",   "Name",      260),
    ("app_id", "AppID",     160),
    ("status", "Status",    120),
)


class AppWindow:
    """
    The main application window and entry point for all UI logic.

    Instantiation:
      1. Creates AppConfig and loads both stores.
      2. Creates the Tk root window (hidden) and applies visual styling.
      3. Calls AuthManager.login() so the user must log in before the
         window is displayed.
      4. Builds the menu bar, table and buttons.

    Call run() to enter the Tkinter event loop.
    """

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        # ----------------------------------------------------------------
        # 1. Create subsystems in dependency order.
        # ----------------------------------------------------------------
        self.config   = config or AppConfig()
        self.accounts = AccountStore(self.config.accounts_path)
        self.devices  = DeviceStore(self.config.devices_path)
        accounts_loaded = self.accounts.load()

        # ----------------------------------------------------------------
        # 2. Create the Tk root window, hidden until login succeeds.
        # ----------------------------------------------------------------
        self.root = Tk()
        self.root.title("ARemi Pro")
        self.root.geometry(self.config.get("window_geometry", "800x500"))
        self.root.withdraw()

        self.root.rowconfigure(0, weight=1)
        self.root.columnconfigure(0, weight=1)

        self._setup_styles()

        if not accounts_loaded.ok:
            messagebox.showwarning("Accounts", accounts_loaded.message, parent=self.root)

        # ----------------------------------------------------------------
        # 3. Log in before building the UI.
        # ----------------------------------------------------------------
        self.auth = AuthManager(self.root, self.accounts)
        self.username: Optional[str] = self.auth.login()
        if self.username is None:
            logger.info("No user logged in; exiting.")
            self.root.destroy()
            sys.exit(0)

        # ----------------------------------------------------------------
        # 4. Widget references assigned during UI construction.
        # ----------------------------------------------------------------
        self.tree:         Optional[ttk.Treeview] = None
        self.status_label: Optional[ttk.Label]    = None

        # ----------------------------------------------------------------
        # 5. Build the complete UI and fill the table.
        # ----------------------------------------------------------------
        self._build_menu()
        self._build_table()
        self._build_control_buttons()

        if self.config.get("load_devices_on_start", True):
            loaded = self.devices.load()
            if not loaded.ok:
                messagebox.showwarning("Devices", loaded.message, parent=self.root)
        self._refresh_table()

        self.root.protocol("WM_DELETE_WINDOW", self._on_closing)
        self.root.deiconify()

    # ------------------------------------------------------------------
    # Visual theme and ttk styles
    # ------------------------------------------------------------------

    def _setup_styles(self) -> None:
        """
        Apply the 'clam' ttk theme and configure custom named styles.

        Styles defined:
          TFrame         – background colour.
          App.TLabel     – standard label font.
          Small.TLabel   – smaller grey label (status line).
          App.TButton    – standard button with hover/press states.
          Treeview       – row height and font of the device table.
        """
        style = ttk.Style()
        try:
            style.theme_use("clam")
        except Exception:
            pass  # Fall back to whatever theme is available.

        style.configure("TFrame",       background=BG)
        style.configure("App.TLabel",   font=APP_FONT,   background=BG, foreground="#222222")
        style.configure("Small.TLabel", font=SMALL_FONT, background=BG, foreground="#666666")
        style.configure("App.TButton",  font=APP_FONT,   padding=(8, 5))
        style.configure("Treeview", rowheight=24, font=APP_FONT)
        style.configure("Treeview.Heading", font=("Segoe UI", 10, "bold"))
        try:
            style.map(
                "App.TButton",
                background=[("pressed", "#c5cfe0"), ("active", "#dce6f5"), ("!active", "#e2e8f0")],
                foreground=[("pressed", "#111"),    ("active", "#003a80")],
            )
        except Exception:
            pass

        self.root.configure(bg=BG)
        self.root.minsize(560, 320)

    # ------------------------------------------------------------------
    # Menu bar
    # ------------------------------------------------------------------

    def _build_menu(self) -> None:
        """
        Build the menu bar:
          File     – New Device, Open Devices File, Save Devices File,
                     Export to Excel
          View     – Refresh, Sort Devices by Name, Sort Devices by AppID
          Tools    – Import FIFO Player File
          Settings – Change Password, About, Logout, Import Devices,
                     Export All Devices, Export Selected Devices
          Exit
        """
        menubar = Menu(self.root)

        file_menu = Menu(menubar, tearoff=0)
        file_menu.add_command(label="New Device",        command=self._create_device)
        file_menu.add_command(label="Open Devices File", command=self._import_devices)
        file_menu.add_command(label="Save Devices File", command=self._export_all)
        file_menu.add_separator()
        file_menu.add_command(label="Export to Excel",   command=self._export_excel)
        menubar.add_cascade(label="File", menu=file_menu)

        view_menu = Menu(menubar, tearoff=0)
        view_menu.add_command(label="Refresh",               command=self._refresh_table)
        view_menu.add_command(label="Sort Devices by Name",  command=self._sort_by_name)
        view_menu.add_command(label="Sort Devices by AppID", command=self._sort_by_app_id)
        menubar.add_cascade(label="View", menu=view_menu)

        tools_menu = Menu(menubar, tearoff=0)
        tools_menu.add_command(
            label="Import FIFO Player File (JavaScript SRC file)",
            command=self._import_fifo_player_file,
        )
        menubar.add_cascade(label="Tools", menu=tools_menu)

        settings_menu = Menu(menubar, tearoff=0)
        settings_menu.add_command(label="Change Password", command=self._change_password)
        settings_menu.add_command(label="About",           command=self._show_about)
        settings_menu.add_separator()
        settings_menu.add_command(label="Logout",                  command=self._logout)
        settings_menu.add_command(label="Import Devices",          command=self._import_devices)
        settings_menu.add_command(label="Export All Devices",      command=self._export_all)
        settings_menu.add_command(label="Export Selected Devices", command=self._export_selected)
        menubar.add_cascade(label="Settings", menu=settings_menu)

        menubar.add_command(label="Exit", command=self._on_closing)

        self.root.config(menu=menubar)

    # ------------------------------------------------------------------
    # Device table and status line (row 0)
    # ------------------------------------------------------------------

    def _build_table(self) -> None:
        main = ttk.Frame(self.root, padding=(10, 10, 10, 0))
        main.grid(row=0, column=0, sticky="nsew")
        main.rowconfigure(0, weight=1)
        main.columnconfigure(0, weight=1)

        self.tree = ttk.Treeview(
            main, columns=[c[0] for c in COLUMNS], show="headings", selectmode="extended"
        )
        for key, heading, width in COLUMNS:
            self.tree.heading(key, text=heading)
            self.tree.column(key, width=width, anchor="w")
        self.tree.grid(row=0, column=0, sticky="nsew")

        v_scroll = ttk.Scrollbar(main, orient="vertical", command=self.tree.yview)
        v_scroll.grid(row=0, column=1, sticky="ns")
        self.tree.configure(yscrollcommand=v_scroll.set)

        self.tree.bind("<Double-1>", lambda _: self._edit_device())

        self.status_label = ttk.Label(main, text="", style="Small.TLabel")
        self.status_label.grid(row=1, column=0, columnspan=2, sticky="w", pady=(4, 0))

    # ------------------------------------------------------------------
    # Control buttons (row 1)
    # ------------------------------------------------------------------

    def _build_control_buttons(self) -> None:
        cf = ttk.Frame(self.root, padding=(10, 6, 10, 10))
        cf.grid(row=1, column=0, sticky="we")
        cf.columnconfigure(0, weight=1)
        cf.columnconfigure(1, weight=1)

        ttk.Button(
            cf, text="Create New Device",
            style="App.TButton", command=self._create_device,
        ).grid(row=0, column=0, padx=(0, 5), sticky="we")

        ttk.Button(
            cf, text="Edit Device",
            style="App.TButton", command=self._edit_device,
        ).grid(row=0, column=1, padx=(5, 0), sticky="we")

    # ------------------------------------------------------------------
    # Table helpers
    # ------------------------------------------------------------------

    def _refresh_table(self) -> None:
        """Redraw the table from DeviceStore.list()."""
        self.tree.delete(*self.tree.get_children())
        for row in self.devices.list():
            self.tree.insert("", "end", iid=str(row.id), values=tuple(row))
        self.status_label.config(
            text=f"Logged in as {self.username}  ·  {len(self.devices)} device(s)"
        )

    def _selected_ids(self) -> List[int]:
        return [int(iid) for iid in self.tree.selection()]

    def _report(self, result: StoreResult, title: str, success_message: str) -> bool:
        """
        Show the outcome of a store operation.

        Failures show their message.  A change that was applied but could
        not be written to disk is reported as a warning and still counts as
        done, so the caller refreshes the table.
        """
        if result.ok:
            messagebox.showinfo(title, success_message, parent=self.root)
            return True
        if result.unsaved:
            messagebox.showwarning("Not saved", result.message, parent=self.root)
            return True
        messagebox.showerror("Error", result.message, parent=self.root)
        return False

    # ------------------------------------------------------------------
    # Event handlers – devices
    # ------------------------------------------------------------------

    def _create_device(self) -> None:
        """
        Ask for the four device fields and create the device.

        Whitespace around every value is stripped before the store checks
        the saved CPN length.
        """
        values = ask_form(
            self.root,
            "Enter Device Details",
            [("Name:", ""), ("AppID:", ""), ("Saved CPN:", ""), ("Security Key:", "")],
        )
        if values is None:
            return

        name, app_id, saved_cpn, security_key = (v.strip() for v in values)
        try:
            result = self.devices.create(name, app_id, saved_cpn, security_key)
        except Exception:
            logger.exception("Unexpected error while creating device")
            messagebox.showerror(
                "Error", "An unexpected error occurred while saving.", parent=self.root
            )
            return

        if self._report(result, "Success", "Device created successfully!"):
            self._refresh_table()

    def _edit_device(self) -> None:
        """
        Edit the selected device.

        The user must first enter the device's saved CPN or security key;
        only then is the Name/AppID form shown.
        """
        ids = self._selected_ids()
        if not ids:
            messagebox.showerror("Error", "Please select a device to edit.", parent=self.root)
            return
        device_id = ids[0]

        secret = simpledialog.askstring(
            "Edit Device",
            "Enter the CPN or Security Key to access this device:",
            show="*",
            parent=self.root,
        )
        if secret is None:
            return

        checked = self.devices.verify_secret(device_id, secret)
        if not checked.ok:
            messagebox.showerror("Error", checked.message, parent=self.root)
            return

        view = checked.value
        values = ask_form(
            self.root, "Edit Device",
            [("Name:", ""), ("AppID:", "")],
            initial=[view.name, view.app_id],
        )
        if values is None:
            return

        new_name, new_app_id = (v.strip() for v in values)
        result = self.devices.edit(device_id, secret, new_name, new_app_id)
        if self._report(result, "Success", "Device updated successfully!"):
            self._refresh_table()

    def _import_devices(self) -> None:
        path = filedialog.askopenfilename(
            title="Import devices", filetypes=JSON_FILETYPES, parent=self.root
        )
        if not path:
            return
        result = self.devices.import_file(path)
        if result.ok and not result.value:
            messagebox.showinfo("Import Devices", result.message, parent=self.root)
            return
        if self._report(result, "Import Devices", "Devices imported successfully."):
            self._refresh_table()

    def _export_all(self) -> None:
        path = filedialog.asksaveasfilename(
            title="Export all devices", defaultextension=".json",
            filetypes=JSON_FILETYPES, parent=self.root,
        )
        if not path:
            return
        result = self.devices.export_all(path)
        self._report(result, "Export All Devices", "All devices exported successfully.")

    def _export_selected(self) -> None:
        ids = self._selected_ids()
        if not ids:
            messagebox.showerror("Export Devices", "No devices selected.", parent=self.root)
            return
        path = filedialog.asksaveasfilename(
            title="Export selected devices", defaultextension=".json",
            filetypes=JSON_FILETYPES, parent=self.root,
        )
        if not path:
            return
        result = self.devices.export_subset(ids, path)
        self._report(result, "Export Devices", "Selected devices exported successfully.")

    def _export_excel(self) -> None:
        path = filedialog.asksaveasfilename(
            title="Export device table to Excel", defaultextension=".xlsx",
            filetypes=[("Excel workbook", "*.xlsx"), ("All files", "*.*")],
            parent=self.root,
        )
        if not path:
            return
        result = self.devices.export_excel(path, self.config.get("excel_column_widths"))
        self._report(result, "Export to Excel", f"Device table exported to:\n{path}")

    def _sort_by_name(self) -> None:
        self.devices.sort_by_name()
        self._refresh_table()

    def _sort_by_app_id(self) -> None:
        self.devices.sort_by_app_id()
        self._refresh_table()

    def _import_fifo_player_file(self) -> None:
        path = filedialog.askopenfilename(
            title="Import FIFO Player File",
            filetypes=[("JavaScript SRC file", "*.js"), ("All files", "*.*")],
            parent=self.root,
        )
        if not path:
            return
        result = read_fifo_player_file(path)
        self._report(
            result, "Import FIFO Player File",
            f"FIFO Player File imported successfully.\nFile path: {path}",
        )

    # ------------------------------------------------------------------
    # Event handlers – account and application
    # ------------------------------------------------------------------

    def _change_password(self) -> None:
        self.auth.prompt_change_password(self.username)

    def _logout(self) -> None:
        """Hide the window and ask for a new login; exit if none is given."""
        if not self.auth.confirm_logout():
            return
        logger.info("User logged out: %s", self.username)
        self.root.withdraw()
        username = self.auth.login()
        if username is None:
            self._on_closing()
            return
        self.username = username
        self._refresh_table()
        self.root.deiconify()

    def _show_about(self) -> None:
        messagebox.showinfo(
            "About",
            f"ARemi Pro v{APP_VERSION}\n"
            "For monitoring and managing Wii homebrew devices.\n\n"
            f"Data folder:\n{self.config.user_data_dir}",
            parent=self.root,
        )

    def _on_closing(self) -> None:
        """
        Called when the user clicks Exit or the window close button (X).

        Remembers the window size, saves the configuration, logs the close
        event and destroys the root window.
        """
        try:
            self.config.set("window_geometry", f"{self.root.winfo_width()}x{self.root.winfo_height()}")
        except Exception:
            logger.debug("Could not read window size on close")
        self.config.save()
        logger.info("Application closed")
        self.root.destroy()

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    def run(self) -> None:
        """
        Start the Tkinter event loop.

        This call blocks until the window is closed by the user.
        """
        self.root.mainloop()
