from pathlib import Path

import pytest

import ascii_fixer
from ascii_fixer import (
    ClearFiles,
    FixerState,
    FixFiles,
    HideErrorModal,
    HideFixFilesDialog,
    PickFiles,
    RemoveFile,
    SetAtomic,
    SetKeepGoing,
    ShowFixFilesDialog,
    path_to_human_readable,
)


def test_path_to_human_readable_strips_home():
    home = Path("/home/louis")
    assert path_to_human_readable(Path("/home/louis/docs/a.txt"), home) == "~/docs/a.txt"
    assert path_to_human_readable(Path("/home/louis"), home) == "~"
    assert path_to_human_readable(Path("/etc/hosts"), home) == str(Path("/etc/hosts"))


def test_path_to_human_readable_uses_real_home():
    p = Path.home() / "notes.txt"
    assert path_to_human_readable(p) == "~/notes.txt"


def test_pick_files_replaces_selection_and_drops_duplicates():
    state = FixerState(is_finished=True)
    state.update(PickFiles([Path("a"), Path("b"), Path("a")]))
    assert state.files == [Path("a"), Path("b")]
    assert not state.is_finished

    state.update(PickFiles([Path("c")]))
    assert state.files == [Path("c")]


def test_cancelled_pick_keeps_selection():
    state = FixerState(files=[Path("a")])
    state.update(PickFiles([]))
    assert state.files == [Path("a")]


def test_remove_and_clear():
    state = FixerState(files=[Path("a"), Path("b")])
    state.update(RemoveFile(Path("a")))
    assert state.files == [Path("b")]
    state.update(RemoveFile(Path("zzz")))
    assert state.files == [Path("b")]
    state.update(ClearFiles())
    assert state.files == []
    assert state.status_text() == "No files selected"


def test_dialog_with_empty_selection():
    state = FixerState()
    state.update(ShowFixFilesDialog())
    assert state.dialog_kind() == "empty"
    state.update(HideFixFilesDialog())
    assert state.dialog_kind() is None


def test_fix_files_runs_batch_and_collects_errors(tmp_path: Path):
    good = tmp_path / "good.txt"
    good.write_bytes(b"\xc3\xa9t\xc3\xa9\n")
    missing = tmp_path / "missing.txt"

    state = FixerState()
    state.update(PickFiles([missing, good]))
    state.update(ShowFixFilesDialog())
    assert state.dialog_kind() == "confirm"

    fixed = []
    state.update(FixFiles(on_file=fixed.append))

    assert good.read_bytes() == b"  t  \n"
    assert fixed == [good]
    assert state.files == []
    assert not state.show_dialog
    assert state.is_finished
    assert state.status_text() == "Done!"
    assert state.error_messages == [f"Path '{missing}' does not exist"]
    assert state.dialog_kind() == "errors"

    state.update(HideErrorModal())
    assert state.error_messages == []
    assert state.dialog_kind() is None


def test_keep_going_flag_reaches_walker(tmp_path: Path, monkeypatch):
    calls = []

    def fake_process_all(paths, keep_going=False, atomic=False, on_file=None):
        calls.append((list(paths), keep_going))
        return []

    monkeypatch.setattr(ascii_fixer, "process_all", fake_process_all)
    state = FixerState(files=[tmp_path])
    state.update(SetKeepGoing(True))
    state.update(FixFiles())
    assert calls == [([tmp_path], True)]


def test_unknown_message_is_rejected():
    with pytest.raises(TypeError):
        FixerState().update("PickFiles")


def test_cli_fixes_files(tmp_path: Path, capsys):
    f = tmp_path / "a.txt"
    f.write_bytes(b"\x00hi\r\n")

    ascii_fixer.main(["--no-gui", "-v", str(f)])

    assert f.read_bytes() == b" hi \n"
    out = capsys.readouterr().out
    assert f"Fixed: {f}" in out
    assert f"OK: {f}" in out


def test_cli_reports_failures_and_continues(tmp_path: Path, capsys):
    good = tmp_path / "good.txt"
    good.write_bytes(b"\xff")
    missing = tmp_path / "missing"

    with pytest.raises(SystemExit) as exc:
        ascii_fixer.main(["--no-gui", str(missing), str(good)])

    assert exc.value.code == ascii_fixer.EXIT_FAILED
    assert good.read_bytes() == b" "
    captured = capsys.readouterr()
    assert "does not exist" in captured.err
    assert f"OK: {good}" in captured.out


def test_cli_without_inputs(capsys):
    with pytest.raises(SystemExit) as exc:
        ascii_fixer.main(["--no-gui"])
    assert exc.value.code == ascii_fixer.EXIT_NO_INPUTS
    assert "No inputs provided" in capsys.readouterr().err


def test_no_arguments_launches_gui(monkeypatch):
    launched = []
    monkeypatch.setattr(ascii_fixer, "launch_gui", lambda: launched.append(True))
    ascii_fixer.main([])
    assert launched == [True]


def test_gui_without_tk(monkeypatch, capsys):
    monkeypatch.setattr(ascii_fixer, "tk", None)
    with pytest.raises(SystemExit) as exc:
        ascii_fixer.launch_gui()
    assert exc.value.code == ascii_fixer.EXIT_NO_TK
    assert "Tkinter not available" in capsys.readouterr().err


def test_atomic_flag_reaches_walker(tmp_path: Path, monkeypatch):
    calls = []

    def fake_process_all(paths, keep_going=False, atomic=False, on_file=None):
        calls.append(atomic)
        return []

    monkeypatch.setattr(ascii_fixer, "process_all", fake_process_all)
    state = FixerState(files=[tmp_path])
    state.update(SetAtomic(True))
    assert state.atomic
    state.update(FixFiles())
    assert calls == [True]


def test_cli_verbose_reports_clean_files(tmp_path: Path, capsys):
    clean = tmp_path / "clean.txt"
    clean.write_bytes(b"already fine\n")
    dirty = tmp_path / "dirty.txt"
    dirty.write_bytes(b"\x80")

    ascii_fixer.main(["--no-gui", "-v", str(clean), str(dirty)])

    out = capsys.readouterr().out
    assert f"Clean: {clean} (already ASCII)" in out
    assert f"Clean: {dirty}" not in out
    assert f"Fixed: {dirty}" in out


def test_open_releases_page(monkeypatch):
    opened = []
    monkeypatch.setattr(ascii_fixer.webbrowser, "open", lambda url: opened.append(url) or True)
    assert ascii_fixer.open_releases_page()
    assert opened == [ascii_fixer.RELEASES_URL]
