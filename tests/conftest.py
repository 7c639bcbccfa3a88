# tests/conftest.py - v2
"""Shared test fixtures for all unit and integration tests.

Provides harness settings rooted in tmp_path and a fake report tool: a
POSIX shell script that records its arguments and stdin, copies a
prepared tar archive into place and announces it the way sosreport does.
Its behavior is steered through environment variables:

    FAKE_SOS_WORKDIR    directory holding calls.log, stdin.txt, out/
    FAKE_SOS_EXIT       exit status (default 0)
    FAKE_SOS_NO_MARKER  when set, do not announce the report
    FAKE_SOS_PROBE      file whose content is echoed into the output
    FAKE_SOS_ONE_LINE   when set, announce marker and path on one line
    FAKE_SOS_ANNOUNCE   path announced instead of the generated report
"""

from __future__ import annotations

import io
import stat
import tarfile
from pathlib import Path

import pytest

from sosharness.api.facade import Harness
from sosharness.config.settings import Settings
from sosharness.logging.context import clear_context

REPORT_MEMBERS = {
    "sosreport-testhost/sos_commands/block/lsblk": b"sda 8:0 0 20G 0 disk\n",
    "sosreport-testhost/etc/hosts": b"127.0.0.1 localhost\n",
    "sosreport-testhost/sos_logs/sos.log": b"done\n",
}

FAKE_TOOL = """#!/bin/sh
work="$FAKE_SOS_WORKDIR"
echo "$*" >> "$work/calls.log"
cat > "$work/stdin.txt"
n=$(( $(wc -l < "$work/calls.log") ))
echo "sosreport (version 4.0)"
echo "collecting data" >&2
if [ -n "$FAKE_SOS_PROBE" ]; then
  cat "$FAKE_SOS_PROBE"
fi
mkdir -p "$work/out"
report="$work/out/sosreport-testhost-$n.tar.xz"
cp "$work/template.tar.xz" "$report"
echo "0123456789abcdef" > "$report.md5"
shown="${FAKE_SOS_ANNOUNCE:-$report}"
if [ -n "$FAKE_SOS_ONE_LINE" ]; then
  echo "Your sosreport has been generated and saved in: $shown"
elif [ -z "$FAKE_SOS_NO_MARKER" ]; then
  echo ""
  echo "Your sosreport has been generated and saved in:"
  echo "  $shown"
  echo ""
fi
exit "${FAKE_SOS_EXIT:-0}"
"""


def _build_template(path: Path) -> None:
    with tarfile.open(path, "w:xz") as tar:
        for name, payload in REPORT_MEMBERS.items():
            info = tarfile.TarInfo(name)
            info.size = len(payload)
            tar.addfile(info, io.BytesIO(payload))


# === FIXTURES: Fake report tool ===


@pytest.fixture
def tool_workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Working directory of the fake report tool, exported via FAKE_SOS_WORKDIR."""
    work = tmp_path / "tool"
    work.mkdir()
    _build_template(work / "template.tar.xz")
    monkeypatch.setenv("FAKE_SOS_WORKDIR", str(work))
    for var in (
        "FAKE_SOS_EXIT",
        "FAKE_SOS_NO_MARKER",
        "FAKE_SOS_PROBE",
        "FAKE_SOS_ONE_LINE",
        "FAKE_SOS_ANNOUNCE",
    ):
        monkeypatch.delenv(var, raising=False)
    return work


@pytest.fixture
def fake_tool(tool_workdir: Path) -> Path:
    """Executable fake report tool."""
    script = tool_workdir / "fake-sosreport"
    script.write_text(FAKE_TOOL)
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return script


@pytest.fixture
def tool_calls(tool_workdir: Path):
    """Callable returning the argument lines recorded by the fake tool so far."""

    def _calls() -> list[str]:
        log = tool_workdir / "calls.log"
        if not log.exists():
            return []
        return log.read_text().splitlines()

    return _calls


# === FIXTURES: Harness ===


@pytest.fixture
def harness_root(tmp_path: Path) -> Path:
    """Harness storage root."""
    return tmp_path / "harness"


@pytest.fixture
def harness_settings(harness_root: Path, fake_tool: Path) -> Settings:
    """Settings pointing at tmp storage and the fake tool."""
    return Settings(
        _env_file=None,
        storage_root=harness_root,
        report_command=str(fake_tool),
        stream_output=False,
    )


@pytest.fixture
def harness(harness_settings: Settings) -> Harness:
    """Freshly initialized harness."""
    return Harness(settings=harness_settings)


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()


# === FIXTURES: Fake payloads ===


@pytest.fixture
def fake_payload(tmp_path: Path) -> Path:
    """Replacement file used as a fake command or file."""
    payload = tmp_path / "payloads" / "fakecmd"
    payload.parent.mkdir()
    payload.write_text("#!/bin/sh\necho fake\n")
    return payload


@pytest.fixture
def real_target(tmp_path: Path) -> Path:
    """Existing file that fakes are installed over."""
    target = tmp_path / "sysroot" / "usr" / "bin" / "realcmd"
    target.parent.mkdir(parents=True)
    target.write_text("#!/bin/sh\necho real\n")
    return target
