"""Running external converters (ffmpeg, LibreOffice) as subprocesses."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300


class CommandError(RuntimeError):
    """An external converter is missing, failed, or timed out."""


def require_binary(binary: str) -> str:
    resolved = shutil.which(binary)
    if resolved is None:
        raise CommandError(f"{binary} is not installed or not found in PATH")
    return resolved


def run_command(command: Sequence[str], timeout: float = DEFAULT_TIMEOUT, cwd: Optional[Path] = None) -> str:
    """
    Run ``command`` and return its stderr text.

    Args:
        command: Executable followed by its arguments
        timeout: Seconds before the process is killed
        cwd: Working directory for the process

    Returns:
        Captured stderr (ffmpeg writes its progress there)

    Raises:
        CommandError: If the binary is missing, exits non-zero or times out
    """
    executable = require_binary(command[0])
    env = os.environ.copy()
    # LibreOffice refuses to start without a writable profile directory
    env.setdefault("HOME", "/tmp")

    logger.debug(f"Running {' '.join(str(part) for part in command)}")
    try:
        result = subprocess.run(
            [executable, *[str(part) for part in command[1:]]],
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
            env=env,
        )
    except subprocess.TimeoutExpired as exc:
        raise CommandError(f"{command[0]} timed out after {timeout} seconds") from exc

    if result.returncode != 0:
        tail = (result.stderr or "").strip().splitlines()[-5:]
        logger.warning(f"{command[0]} exited with {result.returncode}: {' | '.join(tail)}")
        raise CommandError(f"{command[0]} failed with return code {result.returncode}")
    return result.stderr or ""


def soffice_convert(soffice: str, source: Path, target_format: str, destination: Path) -> Path:
    """
    Convert ``source`` with headless LibreOffice and move the result to ``destination``.

    LibreOffice always names its output after the input stem, so the
    conversion runs into a private directory next to ``destination``.
    """
    work_dir = destination.parent / f".soffice-{destination.stem}"
    work_dir.mkdir(parents=True, exist_ok=True)
    try:
        run_command(
            [soffice, "--headless", "--convert-to", target_format, "--outdir", str(work_dir), str(source)],
            timeout=120,
        )
        produced = work_dir / f"{source.stem}.{target_format.split(':')[0]}"
        if not produced.exists() or produced.stat().st_size == 0:
            raise CommandError("LibreOffice conversion produced no output")
        shutil.move(str(produced), str(destination))
        return destination
    finally:
        shutil.rmtree(work_dir, ignore_errors=True)
