"""
Analysis Invoker

Runs the external engine as a child process inside a sandbox and captures
its combined output.

The engines exit non-zero whenever they report findings, so the exit code
never decides success. Only a failed launch or an exceeded timeout is a
failure.
"""

import os
import shlex
import signal
import subprocess
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from ..core.exceptions import EngineLaunchError, EngineTimeoutError, ContractScanError
from ..core.models import AnalysisResult
from .engines import EngineProfile


TIMEOUT_MESSAGE = "analysis timed out"

_POSIX = os.name == "posix"


class AnalysisInvoker:
    """
    Launches one engine against a sandbox directory.

    Never touches the cache or the sandbox lifecycle; the orchestrator
    composes those around it.
    """

    def __init__(self, engine: EngineProfile, timeout_seconds: Optional[float] = None):
        """
        Args:
            engine: Engine profile providing the base command
            timeout_seconds: Override for the engine's default timeout
        """
        self.engine = engine
        self.timeout_seconds = timeout_seconds or engine.timeout_seconds

        # Stats
        self.invocations = 0
        self._stats_lock = threading.Lock()

    def build_command(self, extra_args: Sequence[str] = ()) -> List[str]:
        """Base command followed by the per-operation arguments, unchanged."""
        return [*self.engine.command, *extra_args]

    def run(
        self,
        sandbox_root: Path,
        extra_args: Sequence[str] = (),
        timeout: Optional[float] = None,
    ) -> AnalysisResult:
        """
        Run the engine with the sandbox as working directory.

        Args:
            sandbox_root: Directory holding the materialized files
            extra_args: Operation-specific engine arguments
            timeout: Wall-clock limit in seconds (default: invoker timeout)

        Returns:
            AnalysisResult.ok(combined output) when the engine ran to
            completion, AnalysisResult.fail(...) on launch failure or timeout
        """
        cmd = self.build_command(extra_args)
        timeout = timeout or self.timeout_seconds

        with self._stats_lock:
            self.invocations += 1

        logger.info(f"[Invoker] Running: {shlex.join(cmd)} (timeout {timeout:.0f}s)")
        start = time.time()

        try:
            returncode, stdout, stderr = self._execute(cmd, Path(sandbox_root), timeout)
        except ContractScanError as e:
            logger.warning(f"[Invoker] {e}")
            return AnalysisResult.from_error(e)

        elapsed = time.time() - start
        logger.info(f"[Invoker] {self.engine.name} exited with code {returncode} in {elapsed:.1f}s")

        return AnalysisResult.ok(self._combine(returncode, stdout, stderr))

    def _execute(self, cmd: List[str], cwd: Path, timeout: float) -> Tuple[int, str, str]:
        """
        Spawn the process and wait for it.

        Raises:
            EngineLaunchError: the binary could not be started
            EngineTimeoutError: the process outlived the timeout and was killed
        """
        try:
            process = subprocess.Popen(
                cmd,
                cwd=str(cwd),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                start_new_session=_POSIX,
            )
        except FileNotFoundError as e:
            raise EngineLaunchError(
                f"{self.engine.binary} not found; is it installed and on PATH?",
                error=str(e),
            ) from e
        except OSError as e:
            raise EngineLaunchError(f"failed to launch {self.engine.binary}", error=str(e)) from e

        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            self._kill(process)
            process.communicate()
            raise EngineTimeoutError(TIMEOUT_MESSAGE, timeout=timeout) from None

        return process.returncode, stdout or "", stderr or ""

    def _kill(self, process: subprocess.Popen) -> None:
        """Kill the engine and anything it spawned (solc, forge, ...)."""
        try:
            if _POSIX:
                os.killpg(process.pid, signal.SIGKILL)
            else:
                process.kill()
        except ProcessLookupError:
            pass

    def _combine(self, returncode: int, stdout: str, stderr: str) -> str:
        parts = [part for part in (stdout, stderr) if part.strip()]
        if not parts:
            return f"{self.engine.name} exited with code {returncode} and produced no output"
        return "\n".join(part.rstrip("\n") for part in parts)
