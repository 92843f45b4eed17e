#!/usr/bin/env python3
# ascii_fixer.py
#
# Rewrite files in place so they only contain printable ASCII, newlines and
# tabs. Every other byte becomes a space. Folders are processed recursively.
# Requires: Python 3.8+ (Tkinter for the GUI).
#
# Usage:
#   GUI (default when started without arguments):
#     python3 ascii_fixer.py
#   CLI examples:
#     python3 ascii_fixer.py --no-gui notes.txt
#     python3 ascii_fixer.py --no-gui --keep-going --atomic docs/ README.md
#
import argparse
import sys
import threading
import webbrowser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from sanitize import Outcome, process_all

# Lazy import tkinter only if GUI is needed (some environments lack Tk)
try:
    import tkinter as tk
    from tkinter import filedialog, messagebox
except Exception:  # pragma: no cover
    tk = None
    filedialog = None
    messagebox = None

__version__ = "1.0.0"
RELEASES_URL = "https://github.com/TheBlckbird/ascii-fixer/releases/latest"

EXIT_FAILED = 1
EXIT_NO_TK = 7
EXIT_NO_INPUTS = 8


def path_to_human_readable(path: Path, home: Optional[Path] = None) -> str:
    """Show paths below the home directory as ~/..."""
    path = Path(path)
    if home is None:
        try:
            home = Path.home()
        except RuntimeError:
            return str(path)
    try:
        rel = path.relative_to(home)
    except ValueError:
        return str(path)
    if rel == Path("."):
        return "~"
    return f"~/{rel.as_posix()}"


# Messages understood by FixerState.update()

@dataclass(frozen=True)
class PickFiles:
    paths: Sequence[Path]


@dataclass(frozen=True)
class RemoveFile:
    path: Path


@dataclass(frozen=True)
class ClearFiles:
    pass


@dataclass(frozen=True)
class ShowFixFilesDialog:
    pass


@dataclass(frozen=True)
class HideFixFilesDialog:
    pass


@dataclass(frozen=True)
class FixFiles:
    on_file: Optional[Callable[[Path], None]] = None


@dataclass(frozen=True)
class HideErrorModal:
    pass


@dataclass(frozen=True)
class SetKeepGoing:
    value: bool


@dataclass(frozen=True)
class SetAtomic:
    value: bool


@dataclass
class FixerState:
    files: List[Path] = field(default_factory=list)
    show_dialog: bool = False
    error_messages: List[str] = field(default_factory=list)
    is_finished: bool = False
    keep_going: bool = False
    atomic: bool = False

    def update(self, message) -> None:
        if isinstance(message, PickFiles):
            # An empty pick means the dialog was cancelled
            if message.paths:
                self.files = []
                for p in message.paths:
                    p = Path(p)
                    if p not in self.files:
                        self.files.append(p)
            self.is_finished = False
        elif isinstance(message, RemoveFile):
            if message.path in self.files:
                self.files.remove(message.path)
        elif isinstance(message, ClearFiles):
            self.files.clear()
            self.is_finished = False
        elif isinstance(message, ShowFixFilesDialog):
            self.show_dialog = True
        elif isinstance(message, HideFixFilesDialog):
            self.show_dialog = False
        elif isinstance(message, FixFiles):
            outcomes = process_all(self.files, keep_going=self.keep_going,
                                   atomic=self.atomic, on_file=message.on_file)
            for outcome in outcomes:
                self.error_messages.extend(outcome.messages())
            self.files.clear()
            self.show_dialog = False
            self.is_finished = True
        elif isinstance(message, HideErrorModal):
            self.error_messages.clear()
        elif isinstance(message, SetKeepGoing):
            self.keep_going = bool(message.value)
        elif isinstance(message, SetAtomic):
            self.atomic = bool(message.value)
        else:
            raise TypeError(f"Unknown message: {message!r}")

    def dialog_kind(self) -> Optional[str]:
        """'confirm', 'empty' (nothing selected), 'errors' or None."""
        if self.show_dialog:
            return "confirm" if self.files else "empty"
        if self.error_messages:
            return "errors"
        return None

    def status_text(self) -> str:
        if self.files:
            return f"{len(self.files)} selected"
        return "Done!" if self.is_finished else "No files selected"


def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(
        description="Replace every byte outside printable ASCII, newline and tab with a space, in place."
    )
    p.add_argument("inputs", nargs="*", help="Files or folders (folders are processed recursively)")
    p.add_argument("--no-gui", action="store_true", help="Run in CLI mode (do not launch GUI)")
    p.add_argument("--keep-going", action="store_true",
                   help="Continue past failing entries inside a folder instead of stopping at the first one")
    p.add_argument("--atomic", action="store_true",
                   help="Write to a temporary file and rename it over the original")
    p.add_argument("-v", "--verbose", action="store_true", help="Print every rewritten file")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def report(outcomes: List[Outcome], verbose: bool = False) -> bool:
    """Print one line per top-level path. Returns True if all succeeded."""
    all_ok = True
    for outcome in outcomes:
        if verbose:
            for clean in outcome.clean:
                print(f"Clean: {clean} (already ASCII)")
        for skipped in outcome.skipped:
            print(f"Skip: {skipped} (not a regular file)")
        if outcome.ok:
            print(f"OK: {outcome.path}")
            continue
        all_ok = False
        for msg in outcome.messages():
            print(msg, file=sys.stderr)
    return all_ok


def open_releases_page() -> bool:
    return webbrowser.open(RELEASES_URL)


def launch_gui():
    if tk is None:
        print("Tkinter not available. Use --no-gui for CLI mode.", file=sys.stderr)
        sys.exit(EXIT_NO_TK)

    root = tk.Tk()
    root.title("ASCII Fixer")
    root.geometry("800x500")

    state = FixerState()
    last_dir: Path = Path.cwd()

    def append_log(msg: str) -> None:
        def _do():
            log.configure(state="normal")
            log.insert(tk.END, msg + "\n")
            log.see(tk.END)
            log.configure(state="disabled")
        root.after(0, _do)

    def refresh_files_view():
        files_list.delete(0, tk.END)
        for p in state.files:
            files_list.insert(tk.END, path_to_human_readable(p))
        status_label.configure(text=state.status_text())

    def set_controls(enabled: bool):
        st = "normal" if enabled else "disabled"
        for w in (fix_btn, add_btn, add_dir_btn, remove_btn, clear_btn, keep_going_cb, atomic_cb):
            w.configure(state=st)

    def add_files():
        nonlocal last_dir
        paths = filedialog.askopenfilenames(title="Select files", initialdir=str(last_dir))
        if not paths:
            return
        last_dir = Path(paths[0]).parent
        state.update(PickFiles(list(state.files) + [Path(p) for p in paths]))
        refresh_files_view()

    def add_folder():
        nonlocal last_dir
        folder = filedialog.askdirectory(title="Select folder", initialdir=str(last_dir))
        if not folder:
            return
        last_dir = Path(folder)
        state.update(PickFiles(list(state.files) + [Path(folder)]))
        refresh_files_view()

    def remove_selected():
        for idx in reversed(files_list.curselection()):
            state.update(RemoveFile(state.files[idx]))
        refresh_files_view()

    def clear_files():
        state.update(ClearFiles())
        refresh_files_view()

    def show_errors():
        if state.dialog_kind() == "errors":
            messagebox.showerror("Errors", "\n".join(state.error_messages))
            state.update(HideErrorModal())

    def run_work():
        state.update(SetKeepGoing(keep_going_var.get()))
        state.update(SetAtomic(atomic_var.get()))
        state.update(ShowFixFilesDialog())
        if state.dialog_kind() == "empty":
            messagebox.showinfo("No files", "You have not selected any files.")
            state.update(HideFixFilesDialog())
            return
        if not messagebox.askyesno(
            "Fix files",
            "Do you really want to continue?\n"
            "This will overwrite all selected files!",
        ):
            state.update(HideFixFilesDialog())
            return

        set_controls(False)

        def worker():
            try:
                state.update(FixFiles(on_file=lambda p: append_log(f"Fixed: {p}")))
                for msg in state.error_messages:
                    append_log(f"Error: {msg}")
                append_log("Done.")
            finally:
                def _done():
                    set_controls(True)
                    refresh_files_view()
                    show_errors()
                root.after(0, _done)

        threading.Thread(target=worker, daemon=True).start()

    # Layout
    frm_files = tk.LabelFrame(root, text="Files and folders")
    frm_files.pack(fill="both", expand=True, padx=8, pady=6)

    files_list = tk.Listbox(frm_files, width=80, height=10, selectmode=tk.EXTENDED)
    files_list.pack(side=tk.LEFT, fill="both", expand=True, padx=(8, 4), pady=8)
    btns = tk.Frame(frm_files)
    btns.pack(side=tk.RIGHT, padx=(4, 8), pady=8)
    add_btn = tk.Button(btns, text="Add Files...", command=add_files)
    add_btn.pack(fill="x")
    add_dir_btn = tk.Button(btns, text="Add Folder...", command=add_folder)
    add_dir_btn.pack(fill="x", pady=(6, 0))
    remove_btn = tk.Button(btns, text="Remove", command=remove_selected)
    remove_btn.pack(fill="x", pady=(6, 0))
    clear_btn = tk.Button(btns, text="Clear", command=clear_files)
    clear_btn.pack(fill="x", pady=(6, 0))

    frm_actions = tk.Frame(root)
    frm_actions.pack(fill="x", padx=8, pady=6)
    fix_btn = tk.Button(frm_actions, text="Fix Files", command=run_work)
    fix_btn.pack(side=tk.LEFT, padx=(8, 4))
    keep_going_var = tk.BooleanVar(value=False)
    keep_going_cb = tk.Checkbutton(frm_actions, text="Continue past errors", variable=keep_going_var)
    keep_going_cb.pack(side=tk.LEFT, padx=4)
    atomic_var = tk.BooleanVar(value=False)
    atomic_cb = tk.Checkbutton(frm_actions, text="Atomic write", variable=atomic_var)
    atomic_cb.pack(side=tk.LEFT, padx=4)
    quit_btn = tk.Button(frm_actions, text="Quit", command=root.destroy)
    quit_btn.pack(side=tk.RIGHT, padx=(4, 8))
    status_label = tk.Label(frm_actions, text="")
    status_label.pack(side=tk.LEFT, padx=8)

    frm_log = tk.LabelFrame(root, text="Log")
    frm_log.pack(fill="both", expand=True, padx=8, pady=(0, 4))
    log = tk.Text(frm_log, width=80, height=8, state="disabled")
    log.pack(fill="both", expand=True, padx=8, pady=8)

    version_label = tk.Label(root, text=f"v{__version__}", fg="blue", cursor="hand2")
    version_label.pack(anchor="w", padx=8, pady=(0, 4))
    version_label.bind("<Button-1>", lambda _e: open_releases_page())

    refresh_files_view()
    root.mainloop()


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)

    if not args.no_gui and not args.inputs:
        launch_gui()
        return

    # CLI mode
    inputs = [Path(x) for x in args.inputs]
    if not inputs:
        print("No inputs provided. Run without arguments to use the GUI.", file=sys.stderr)
        sys.exit(EXIT_NO_INPUTS)

    on_file = (lambda p: print(f"Fixed: {p}")) if args.verbose else None
    outcomes = process_all(inputs, keep_going=args.keep_going, atomic=args.atomic, on_file=on_file)
    if not report(outcomes, verbose=args.verbose):
        sys.exit(EXIT_FAILED)


if __name__ == "__main__":
    main()
