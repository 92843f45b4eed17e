# sanitize.py
#
# Replace every byte outside printable ASCII, newline and tab with a space,
# in place, for files and (recursively) folders.
# Used by ascii_fixer.py (GUI and CLI).
#
import os
import stat
import tempfile
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set, Tuple

PRINTABLE_RANGE = (0x20, 0x7E)          # space through tilde, inclusive
ALLOWED_CONTROL_BYTES = (0x09, 0x0A)    # tab, newline
REPLACEMENT_BYTE = 0x20

# 256-entry lookup table for bytes.translate()
_TABLE = bytes(
    b if (PRINTABLE_RANGE[0] <= b <= PRINTABLE_RANGE[1] or b in ALLOWED_CONTROL_BYTES)
    else REPLACEMENT_BYTE
    for b in range(256)
)
_BAD_BYTES = bytes(b for b in range(256) if _TABLE[b] != b)


def sanitize(data: bytes) -> bytes:
    """Return `data` with every disallowed byte replaced by a space.

    The result has the same length as the input and decodes under any
    ASCII-compatible encoding.
    """
    return bytes(data).translate(_TABLE)


def is_clean(data: bytes) -> bool:
    data = bytes(data)
    return len(data.translate(None, _BAD_BYTES)) == len(data)


class FixFileError(Exception):
    def __init__(self, path: Path):
        super().__init__(str(path))
        self.path = Path(path)

    def message(self) -> str:
        return f"Could not process '{self.path}'"


class PathNotFound(FixFileError):
    def message(self) -> str:
        return f"Path '{self.path}' does not exist"


class IoFailure(FixFileError):
    def __init__(self, path: Path, cause: OSError):
        super().__init__(path)
        self.cause = cause

    def message(self) -> str:
        return f"Error while reading or writing '{self.path}':\n{self.cause}"


class Outcome:
    """Result of processing one top-level path."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.errors: List[FixFileError] = []
        self.fixed: List[Path] = []
        self.skipped: List[Path] = []
        # Rewritten files whose content was already clean
        self.clean: List[Path] = []

    @property
    def ok(self) -> bool:
        return not self.errors

    def messages(self) -> List[str]:
        return [e.message() for e in self.errors]

    def __repr__(self) -> str:
        state = "ok" if self.ok else f"{len(self.errors)} error(s)"
        return f"Outcome({str(self.path)!r}, {state}, fixed={len(self.fixed)})"


def _write_direct(path: Path, data: bytes) -> None:
    path.write_bytes(data)


def _write_atomic(path: Path, data: bytes) -> None:
    # Rename over the link target, not the link itself
    path = Path(os.path.realpath(path))
    # Temp file must live in the same directory for os.replace to be atomic.
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, stat.S_IMODE(os.stat(path).st_mode))
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        raise


def fix_file(path: Path, atomic: bool = False) -> bool:
    """Sanitize one regular file in place. Raises IoFailure.

    Returns False if the file was already clean.
    """
    path = Path(path)
    try:
        content = path.read_bytes()
    except OSError as e:
        raise IoFailure(path, e) from e
    fixed = sanitize(content)
    try:
        if atomic:
            _write_atomic(path, fixed)
        else:
            _write_direct(path, fixed)
    except OSError as e:
        raise IoFailure(path, e) from e
    return not is_clean(content)


def fix_path(path: Path,
             keep_going: bool = False,
             atomic: bool = False,
             on_file: Optional[Callable[[Path], None]] = None,
             outcome: Optional[Outcome] = None) -> Outcome:
    """Sanitize `path`, descending into folders depth-first.

    Without `keep_going` the first failure is raised and nothing after it
    is attempted. With `keep_going` failures are collected on the
    returned Outcome and the walk continues.
    """
    path = Path(path)
    if outcome is None:
        outcome = Outcome(path)
    if not path.exists():
        raise PathNotFound(path)

    seen_dirs: Set[Tuple[int, int]] = set()
    stack: List[Path] = [path]
    while stack:
        current = stack.pop()
        try:
            _visit(current, stack, seen_dirs, outcome, atomic, on_file)
        except FixFileError as e:
            if not keep_going:
                raise
            outcome.errors.append(e)
    return outcome


def _visit(current: Path, stack: List[Path], seen_dirs: Set[Tuple[int, int]],
           outcome: Outcome, atomic: bool,
           on_file: Optional[Callable[[Path], None]]) -> None:
    try:
        st = current.stat()
    except FileNotFoundError as e:
        # Vanished since listing, or a dangling symlink
        raise PathNotFound(current) from e
    except OSError as e:
        raise IoFailure(current, e) from e

    if stat.S_ISDIR(st.st_mode):
        key = (st.st_dev, st.st_ino)
        if key in seen_dirs:
            return
        seen_dirs.add(key)
        try:
            children = sorted(current.iterdir())
        except OSError as e:
            raise IoFailure(current, e) from e
        # Reversed so the stack pops them in sorted order
        stack.extend(reversed(children))
    elif stat.S_ISREG(st.st_mode):
        if not fix_file(current, atomic=atomic):
            outcome.clean.append(current)
        outcome.fixed.append(current)
        if on_file:
            on_file(current)
    else:
        outcome.skipped.append(current)


def process(path: Path,
            keep_going: bool = False,
            atomic: bool = False,
            on_file: Optional[Callable[[Path], None]] = None) -> Outcome:
    """Process one top-level path and return its Outcome. Never raises FixFileError."""
    outcome = Outcome(path)
    try:
        fix_path(path, keep_going=keep_going, atomic=atomic, on_file=on_file, outcome=outcome)
    except FixFileError as e:
        outcome.errors.append(e)
    return outcome


def process_all(paths: Iterable[Path],
                keep_going: bool = False,
                atomic: bool = False,
                on_file: Optional[Callable[[Path], None]] = None) -> List[Outcome]:
    return [
        process(Path(p), keep_going=keep_going, atomic=atomic, on_file=on_file)
        for p in paths
    ]
