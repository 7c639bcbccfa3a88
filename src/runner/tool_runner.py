# src/runner/tool_runner.py - v1
"""Report tool invocation and output recognition.

The tool runs as a blocking subprocess with stdout and stderr merged. Its
output is streamed live to our stdout while being captured for the store.
There is no timeout: a hanging tool hangs the harness.
"""

from __future__ import annotations

import logging
import re
import shlex
import subprocess
import sys
import time

from sosharness.core.errors import ExternalToolFailure
from sosharness.runner.exit_status import ExitStatusSpec
from sosharness.runner.models import ToolRunResult

logger = logging.getLogger(__name__)

BATCH_FLAG = "--batch"
BUILD_FLAG = "--build"


def has_flag(params: str, flag: str) -> bool:
    """True if ``flag`` appears as a token (``--flag`` or ``--flag=value``)."""
    return any(tok == flag or tok.startswith(f"{flag}=") for tok in params.split())


def build_command(report_command: str, params: str) -> list[str]:
    """Split the tool command and its parameter string into argv."""
    return [*shlex.split(report_command), *shlex.split(params)]


def run_report_tool(
    report_command: str,
    params: str,
    expected: ExitStatusSpec,
    interactive_input: str = "",
    stream: bool = True,
) -> ToolRunResult:
    """Run the report tool and check its exit status.

    In batch mode stdin is closed; otherwise ``interactive_input`` answers
    the tool's prompts.

    Args:
        report_command: Tool executable (may include fixed arguments).
        params: Caller's parameter string.
        expected: Accepted exit statuses.
        interactive_input: Text fed to stdin when not in batch mode.
        stream: Echo tool output to stdout while it runs.

    Returns:
        ToolRunResult with captured combined output.

    Raises:
        ExternalToolFailure: If the tool cannot start or exits outside ``expected``.
    """
    command = build_command(report_command, params)
    batch = has_flag(params, BATCH_FLAG)
    logger.info("Executing %s (batch=%s)", shlex.join(command), batch)

    t0 = time.perf_counter()
    captured: list[str] = []
    try:
        proc = subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL if batch else subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
        )
    except OSError as exc:
        logger.error("Cannot execute %s: %s", command[0], exc)
        raise ExternalToolFailure(f"cannot execute {command[0]}: {exc}") from exc

    with proc:
        if proc.stdin is not None:
            try:
                proc.stdin.write(interactive_input)
                proc.stdin.close()
            except BrokenPipeError:
                logger.debug("Report tool closed stdin before reading answers")

        assert proc.stdout is not None
        for line in proc.stdout:
            captured.append(line)
            if stream:
                sys.stdout.write(line)
                sys.stdout.flush()
        returncode = proc.wait()

    duration = time.perf_counter() - t0
    result = ToolRunResult(
        command=command,
        returncode=returncode,
        output="".join(captured),
        batch=batch,
        duration_seconds=round(duration, 2),
    )

    if not expected.accepts(returncode):
        logger.error(
            "Report tool exited with %d, expected %s", returncode, expected,
        )
        raise ExternalToolFailure(
            f"report tool exited with {returncode}, expected {expected}",
            returncode=returncode,
        )

    logger.info("Report tool finished with %d in %.2fs", returncode, duration)
    return result


def find_report_path(output: str, marker: str, name_prefix: str) -> str | None:
    """Locate the generated report in tool output.

    The tool announces the report with ``marker`` on one line and the path
    on the same or the next line.

    Returns:
        The report path alone, or None when the announcement is absent.
    """
    pattern = re.compile(rf"(\S*/{re.escape(name_prefix)}-\S*tar\S*)")
    lines = output.splitlines()
    for index, line in enumerate(lines):
        if marker not in line:
            continue
        for candidate in lines[index:index + 2]:
            match = pattern.search(candidate)
            if match:
                return match.group(1)
    return None
