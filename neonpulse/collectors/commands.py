from __future__ import annotations

import asyncio
import logging
import subprocess
from typing import Sequence

from neonpulse.errors import LogSourceUnavailable

logger = logging.getLogger(__name__)


class CommandError(LogSourceUnavailable):
    """External tool missing, timed out, or exited non-zero."""


async def run_command(
    args: Sequence[str],
    timeout: float,
    merge_stderr: bool = False,
) -> str:
    """Run ``args`` in a worker thread and return stdout as text.

    The process is killed after ``timeout`` seconds; nothing is retried.
    """
    argv = list(args)

    def _run() -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            argv,
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
            text=True,
            errors="replace",
            timeout=timeout,
        )

    try:
        result = await asyncio.to_thread(_run)
    except FileNotFoundError as exc:
        raise CommandError(f"{argv[0]}: not installed") from exc
    except subprocess.TimeoutExpired as exc:
        raise CommandError(f"{argv[0]}: timed out after {timeout:.0f}s") from exc
    except OSError as exc:
        raise CommandError(f"{argv[0]}: {exc}") from exc

    if result.returncode != 0:
        output = (result.stderr or result.stdout or "").strip()
        raise CommandError(f"{' '.join(argv)}: exit {result.returncode} {output}".strip())
    return result.stdout or ""
