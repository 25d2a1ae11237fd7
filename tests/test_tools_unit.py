import subprocess
from pathlib import Path

from tui import tools


class _Proc:
    def __init__(self, stdout: str = "", returncode: int = 0, stderr: str = ""):
        self.stdout = stdout
        self.returncode = returncode
        self.stderr = stderr


def _no_local_programs(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(tools, "PROGRAM_DIR", tmp_path)


def test_qalc_success(monkeypatch, tmp_path: Path) -> None:
    _no_local_programs(monkeypatch, tmp_path)
    calls = []
    monkeypatch.setattr(tools.shutil, "which", lambda name: f"/usr/bin/{name}")

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return _Proc(stdout="  4\n")

    monkeypatch.setattr(tools.subprocess, "run", fake_run)
    assert tools.run_qalc("2+2") == (True, "4")
    assert calls == [["/usr/bin/qalc", "-t", "2+2"]]


def test_qalc_missing(monkeypatch, tmp_path: Path) -> None:
    _no_local_programs(monkeypatch, tmp_path)
    monkeypatch.setattr(tools.shutil, "which", lambda name: None)
    assert tools.run_qalc("2+2") == (False, tools.QALC_FAILED)


def test_qalc_nonzero_exit(monkeypatch, tmp_path: Path) -> None:
    _no_local_programs(monkeypatch, tmp_path)
    monkeypatch.setattr(tools.shutil, "which", lambda name: "/usr/bin/qalc")
    monkeypatch.setattr(tools.subprocess, "run",
                        lambda cmd, **kw: _Proc(returncode=1, stderr="bad"))
    assert tools.run_qalc("2+") == (False, tools.QALC_FAILED)


def test_rate_prefers_program_directory(monkeypatch, tmp_path: Path) -> None:
    _no_local_programs(monkeypatch, tmp_path)
    local = tmp_path / "rate"
    local.write_text("", encoding="utf-8")
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return _Proc(stdout="6.5432 # BOC\n")

    monkeypatch.setattr(tools.subprocess, "run", fake_run)
    assert tools.run_rate() == (True, "6.5432 # BOC")
    assert calls == [[str(local)]]


def test_rate_not_found(monkeypatch, tmp_path: Path) -> None:
    _no_local_programs(monkeypatch, tmp_path)
    monkeypatch.setattr(tools.shutil, "which", lambda name: None)
    assert tools.run_rate() == (False, tools.RATE_MISSING)


def test_rate_timeout(monkeypatch, tmp_path: Path) -> None:
    _no_local_programs(monkeypatch, tmp_path)
    monkeypatch.setattr(tools.shutil, "which", lambda name: "/usr/bin/rate")

    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

    monkeypatch.setattr(tools.subprocess, "run", fake_run)
    assert tools.run_rate() == (False, tools.RATE_MISSING)
