import os
import subprocess
import sys
import threading
from unittest import mock

import pytest

from wizperiph.app import (
    PickError,
    SpansWatcher,
    join_path,
    parse_arguments,
    pick_directory,
    run_pick_command,
)


def _python(code):
    return f'"{sys.executable}" -c "{code}"'


def test_parse_arguments_first_value_wins():
    options, from_cli = parse_arguments(["models/a", "ram=r.bin", "model=models/b"])
    assert options == {"model": "models/a", "ram": "r.bin"}
    assert from_cli is True


def test_parse_arguments_without_model():
    options, from_cli = parse_arguments(["strict_memory=", "a=b=c"])
    assert options == {"strict_memory": "", "a": "b=c"}
    assert from_cli is False


@pytest.mark.parametrize(
    "base,name,expected",
    [
        ("", "model.lua", "model.lua"),
        ("models/x/", "model.lua", "models/x/model.lua"),
        ("models/x", "rom.bin", "models/x/rom.bin"),
    ],
)
def test_join_path(base, name, expected):
    assert join_path(base, name) == expected


def test_run_pick_command_trims_output():
    assert run_pick_command(_python("print('  /picked/dir  ')")) == "/picked/dir"


def test_run_pick_command_failure_code():
    with pytest.raises(PickError, match="code 3"):
        run_pick_command(_python("raise SystemExit(3)"))


def test_run_pick_command_empty_selection():
    with pytest.raises(PickError, match="empty selection"):
        run_pick_command(_python("pass"))


def test_pick_directory_needs_display(monkeypatch):
    monkeypatch.delenv("DISPLAY", raising=False)
    monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
    with pytest.raises(PickError, match="No GUI display available"):
        pick_directory("Pick")


def test_pick_directory_falls_back_to_kdialog(monkeypatch):
    monkeypatch.setenv("DISPLAY", ":0")
    results = [
        subprocess.CompletedProcess("zenity", 1, stdout=""),
        subprocess.CompletedProcess("kdialog", 0, stdout="/chosen\n"),
    ]
    with mock.patch("subprocess.run", side_effect=results) as run:
        assert pick_directory("Pick") == "/chosen"
    assert run.call_count == 2
    assert run.call_args_list[1].args[0].startswith("kdialog")


def test_pick_directory_reports_last_error(monkeypatch):
    monkeypatch.setenv("DISPLAY", ":0")
    results = [
        subprocess.CompletedProcess("zenity", 0, stdout=""),
        subprocess.CompletedProcess("kdialog", 0, stdout="  "),
    ]
    with mock.patch("subprocess.run", side_effect=results):
        with pytest.raises(PickError, match="empty selection"):
            pick_directory("Pick")


def test_watcher_poll_reports_changes(tmp_path):
    path = tmp_path / "mem-spans.txt"
    updates = []
    watcher = SpansWatcher(path, updates.append)

    watcher.poll()
    assert updates == [[]]

    path.write_text("D000,4,00ff00\n")
    os.utime(path, ns=(1_000_000_000, 2_000_000_000))
    watcher.poll()
    assert len(updates) == 2
    assert updates[1][0].start == 0xD000

    watcher.poll()
    assert len(updates) == 2


def test_watcher_thread_start_stop(tmp_path):
    seen = threading.Event()
    watcher = SpansWatcher(tmp_path / "absent.txt", lambda spans: seen.set(), interval=0.01)
    with watcher:
        assert seen.wait(5)
        assert watcher.running is True
    assert watcher.running is False