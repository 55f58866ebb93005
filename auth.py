"""
auth.py – Login and account management dialogs.

This module contains AuthManager, which drives every user-facing
authentication flow in the application:

  - Login: a modal dialog with Login, Create Account and Exit buttons,
    repeated until valid credentials are given or the user exits.
  - Account creation: username, password and confirmation.
  - Password change for the logged-in user.
  - Logout confirmation.

AuthManager depends on AccountStore for every check and change, but never
touches the main window layout itself – all visual logic of the main window
is in ui.py.  Dialog calls (messagebox, simpledialog, Toplevel) for these
flows are confined to this module.
"""

import logging
from tkinter import (
    Entry, Label, StringVar, Toplevel, messagebox, simpledialog, ttk
)
from typing import Optional, Tuple

from models import StoreResult

logger = logging.getLogger("ARemiPro")


class AuthManager:
    """
    Manages all authentication-related user-interface flows.

    Parameters
    ----------
    root : tk.Tk
        The main application window; used as the parent for every modal
        dialog so they stay centred and grab focus correctly.
    accounts : AccountStore
        Username/password store, already loaded.
    """

    def __init__(self, root, accounts) -> None:
        self.root     = root
        self.accounts = accounts

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self) -> Optional[str]:
        """
        Show the login dialog until the user logs in or exits.

        Returns the username of the logged-in account, or None when the
        user chose to exit.
        """
        while True:
            action, username, password = self._prompt_login_with_options()

            if action == "exit":
                if messagebox.askyesno("Exit", "Exit without logging in?", parent=self.root):
                    logger.info("Login cancelled by user")
                    return None
                continue

            if action == "create":
                self.prompt_create_account()
                continue

            if action == "login":
                if self.accounts.authenticate(username, password):
                    logger.info("User logged in: %s", username)
                    return username
                logger.warning("Failed login attempt for user: %s", username)
                messagebox.showerror(
                    "Error", "Invalid login credentials", parent=self.root
                )

    def _prompt_login_with_options(self) -> Tuple[str, str, str]:
        """
        Display a modal dialog with username and password fields and three
        buttons: 'Login', 'Create Account' and 'Exit'.

        Returns an (action, username, password) tuple where *action* is one
        of 'login', 'create' or 'exit'.  The username is stripped of
        surrounding whitespace.
        """
        result: dict = {"action": "exit", "user": "", "pwd": ""}

        dlg = Toplevel(self.root)
        dlg.title("ARemi Pro - Login")
        dlg.resizable(False, False)
        dlg.grab_set()

        Label(dlg, text="Username:").grid(row=0, column=0, padx=(12, 6), pady=(12, 6), sticky="w")
        user_var = StringVar()
        user_entry = Entry(dlg, textvariable=user_var, width=30)
        user_entry.grid(row=0, column=1, columnspan=2, padx=(0, 12), pady=(12, 6), sticky="we")

        Label(dlg, text="Password:").grid(row=1, column=0, padx=(12, 6), pady=(0, 12), sticky="w")
        pwd_var = StringVar()
        pwd_entry = Entry(dlg, textvariable=pwd_var, show="*", width=30)
        pwd_entry.grid(row=1, column=1, columnspan=2, padx=(0, 12), pady=(0, 12), sticky="we")

        user_entry.focus_set()

        def finish(action: str) -> None:
            result["action"] = action
            result["user"]   = user_var.get().strip()
            result["pwd"]    = pwd_var.get()
            dlg.destroy()

        ttk.Button(dlg, text="Login",
                   command=lambda: finish("login")).grid(row=2, column=0, padx=6, pady=(0, 12), sticky="we")
        ttk.Button(dlg, text="Create Account",
                   command=lambda: finish("create")).grid(row=2, column=1, padx=6, pady=(0, 12), sticky="we")
        ttk.Button(dlg, text="Exit",
                   command=lambda: finish("exit")).grid(row=2, column=2, padx=6, pady=(0, 12), sticky="we")

        user_entry.bind("<Return>",   lambda _: pwd_entry.focus_set())
        pwd_entry.bind("<Return>",    lambda _: finish("login"))
        pwd_entry.bind("<KP_Enter>",  lambda _: finish("login"))

        # Treat window-close (X button) as "Exit".
        dlg.protocol("WM_DELETE_WINDOW", lambda: finish("exit"))
        dlg.wait_window()

        return result["action"], result["user"], result["pwd"]

    # ------------------------------------------------------------------
    # Account creation
    # ------------------------------------------------------------------

    def prompt_create_account(self) -> bool:
        """
        Ask for a username, a password and its confirmation, then create
        the account.

        Returns True when the account was created.
        """
        fields = ask_form(
            self.root,
            "Create New Account",
            [("Username:", ""), ("Password:", "*"), ("Confirm Password:", "*")],
            transient=False,
        )
        if fields is None:
            return False

        username, password, confirm = fields
        username = username.strip()
        if not username or not password:
            messagebox.showerror(
                "Error", "Username and password cannot be empty.", parent=self.root
            )
            return False
        if password != confirm:
            messagebox.showerror("Error", "Passwords do not match.", parent=self.root)
            return False

        result = self.accounts.create(username, password)
        return self._report(result, "Account created successfully!")

    # ------------------------------------------------------------------
    # Password change (called from the Settings menu)
    # ------------------------------------------------------------------

    def prompt_change_password(self, username: str) -> bool:
        """
        Ask for the current password and a new one (with confirmation),
        then update the account of *username*.

        Returns True when the password was changed.
        """
        old_pwd = simpledialog.askstring(
            "Change Password", "Old Password:", show="*", parent=self.root
        )
        if old_pwd is None:
            return False
        if not self.accounts.authenticate(username, old_pwd):
            messagebox.showerror("Error", "Old password is incorrect.", parent=self.root)
            return False

        new_pwd = simpledialog.askstring(
            "Change Password", "New Password:", show="*", parent=self.root
        )
        if new_pwd is None:
            return False
        confirm = simpledialog.askstring(
            "Change Password", "Confirm New Password:", show="*", parent=self.root
        )
        if confirm is None:
            return False
        if not new_pwd or new_pwd != confirm:
            messagebox.showerror(
                "Error", "New passwords do not match or are empty.", parent=self.root
            )
            return False

        result = self.accounts.change_password(username, old_pwd, new_pwd)
        return self._report(result, "Password changed successfully!")

    # ------------------------------------------------------------------
    # Logout
    # ------------------------------------------------------------------

    def confirm_logout(self) -> bool:
        return messagebox.askyesno(
            "Logout", "Are you sure you want to logout?", parent=self.root
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _report(self, result: StoreResult, success_message: str) -> bool:
        """Show the outcome of an account operation; True on success."""
        if result.ok:
            messagebox.showinfo("Success", success_message, parent=self.root)
            return True
        if result.unsaved:
            messagebox.showwarning(
                "Not saved",
                f"The change is active for this session, but:\n{result.message}",
                parent=self.root,
            )
            return True
        messagebox.showerror("Error", result.message, parent=self.root)
        return False


# ---------------------------------------------------------------------------
# Shared form dialog (also used by ui.py for the device dialogs)
# ---------------------------------------------------------------------------

def ask_form(parent, title: str, rows, initial=None, transient: bool = True) -> Optional[list]:
    """
    Show a modal OK/Cancel form with one Entry per (label, show) row.

    *initial* optionally pre-fills the entries in row order.  Pass
    transient=False when *parent* may be withdrawn (e.g. during login),
    otherwise the dialog would be hidden together with it.

    Returns the entered values in row order, or None on Cancel.
    """
    result: dict = {"values": None}
    initial = list(initial or [])

    dlg = Toplevel(parent)
    dlg.title(title)
    dlg.resizable(False, False)
    if transient:
        dlg.transient(parent)
    dlg.grab_set()

    variables = []
    for r, (label, show) in enumerate(rows):
        Label(dlg, text=label).grid(row=r, column=0, padx=(12, 6), pady=6, sticky="w")
        var = StringVar(value=initial[r] if r < len(initial) else "")
        entry = Entry(dlg, textvariable=var, show=show, width=30)
        entry.grid(row=r, column=1, columnspan=2, padx=(0, 12), pady=6, sticky="we")
        if r == 0:
            entry.focus_set()
        variables.append(var)

    def do_ok():
        result["values"] = [v.get() for v in variables]
        dlg.destroy()

    ttk.Button(dlg, text="OK", command=do_ok).grid(
        row=len(rows), column=1, padx=6, pady=(6, 12), sticky="we"
    )
    ttk.Button(dlg, text="Cancel", command=dlg.destroy).grid(
        row=len(rows), column=2, padx=(0, 12), pady=(6, 12), sticky="we"
    )
    dlg.bind("<Return>", lambda _: do_ok())
    dlg.bind("<Escape>", lambda _: dlg.destroy())
    dlg.wait_window()

    return result["values"]
