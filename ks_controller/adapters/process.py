"""asyncio subprocess execution with cooperative termination."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from signal import SIGKILL
from typing import Callable, Mapping, Optional, Sequence, Set

from ks_controller.cancellation import CancellationSignal

logger = logging.getLogger(__name__)

TERMINATE_GRACE_SECONDS = 5.0
STREAM_CHUNK_SIZE = 64 * 1024
STREAM_LINE_LIMIT = 1024 * 1024

OutputCallback = Callable[[str], None]


@dataclass
class ProcessResult:
    """Result of a single external command."""

    rc: int
    stdout: str = ""
    stderr: str = ""
    stopped: bool = False

    @property
    def success(self) -> bool:
        return self.rc == 0


def _default_output(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


def build_env(overrides: Optional[Mapping[str, str]]) -> dict[str, str]:
    env = os.environ.copy()
    if overrides:
        env.update(overrides)
    return env


def _decode(raw: bytes) -> str:
    return raw.decode(errors="replace")


class ChildRegistry:
    """Children that are still running, so a force exit can kill them.

    Each child leads its own process group, so killing the group also takes
    down anything the tool spawned (aws-vault runs `env` as a grandchild).
    """

    def __init__(self) -> None:
        self._procs: Set[asyncio.subprocess.Process] = set()

    def __len__(self) -> int:
        return len(self._procs)

    def add(self, proc: asyncio.subprocess.Process) -> None:
        self._procs.add(proc)

    def discard(self, proc: asyncio.subprocess.Process) -> None:
        self._procs.discard(proc)

    def kill_all(self) -> None:
        """SIGKILL every live child's process group. Safe in a signal handler."""
        for proc in list(self._procs):
            if proc.returncode is not None:
                continue
            try:
                os.killpg(proc.pid, SIGKILL)
            except (ProcessLookupError, PermissionError):
                pass


LIVE_CHILDREN = ChildRegistry()


def kill_live_children() -> None:
    LIVE_CHILDREN.kill_all()


class ProcessRunner:
    """Spawn external tools on the running event loop.

    Children get their own session so a terminal Ctrl+C reaches only this
    process; stopping a child is always an explicit request routed through a
    CancellationSignal, or a group kill from the registry on force exit.
    """

    def __init__(
        self,
        output_callback: Optional[OutputCallback] = None,
        terminate_grace: float = TERMINATE_GRACE_SECONDS,
        registry: Optional[ChildRegistry] = None,
    ) -> None:
        self.output_callback = output_callback or _default_output
        self.terminate_grace = terminate_grace
        self.registry = registry if registry is not None else LIVE_CHILDREN

    async def _spawn(
        self,
        cmd: Sequence[str],
        env: Optional[Mapping[str, str]],
        *,
        stderr: int,
    ) -> asyncio.subprocess.Process:
        logger.debug("Executing command: %s", " ".join(cmd))
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            env=build_env(env),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=stderr,
            start_new_session=True,
        )
        self.registry.add(proc)
        return proc

    async def capture(
        self, cmd: Sequence[str], env: Optional[Mapping[str, str]] = None
    ) -> ProcessResult:
        """Run to completion and collect stdout/stderr."""
        proc = await self._spawn(cmd, env, stderr=asyncio.subprocess.PIPE)
        try:
            out, err = await proc.communicate()
        finally:
            if proc.returncode is None:
                _kill(proc)
            self.registry.discard(proc)
        rc = proc.returncode if proc.returncode is not None else 1
        return ProcessResult(
            rc=rc,
            stdout=out.decode(errors="replace") if out else "",
            stderr=err.decode(errors="replace") if err else "",
        )

    async def stream(
        self,
        cmd: Sequence[str],
        env: Optional[Mapping[str, str]],
        signal: CancellationSignal,
        output_callback: Optional[OutputCallback] = None,
    ) -> ProcessResult:
        """Forward output line by line until the process exits.

        When `signal` trips the child receives SIGTERM, and SIGKILL after the
        grace period if it is still alive.
        """
        if signal.is_set():
            return ProcessResult(rc=1, stopped=True)
        emit = output_callback or self.output_callback
        proc = await self._spawn(cmd, env, stderr=asyncio.subprocess.STDOUT)
        loop = asyncio.get_running_loop()
        stop_requested = False
        killer: Optional[asyncio.TimerHandle] = None

        def _on_stop() -> None:
            nonlocal stop_requested, killer
            stop_requested = True
            _terminate(proc)
            killer = loop.call_later(self.terminate_grace, _kill, proc)

        unsubscribe = signal.on_set(_on_stop)
        try:
            assert proc.stdout is not None
            await _forward_lines(proc.stdout, emit)
            rc = await proc.wait()
        finally:
            unsubscribe()
            if killer is not None:
                killer.cancel()
            if proc.returncode is None:
                _kill(proc)
            self.registry.discard(proc)
        return ProcessResult(rc=rc, stopped=stop_requested)


async def _forward_lines(reader: asyncio.StreamReader, emit: OutputCallback) -> None:
    """Emit complete lines; a line past STREAM_LINE_LIMIT goes out in pieces."""
    pending = bytearray()
    while True:
        chunk = await reader.read(STREAM_CHUNK_SIZE)
        if not chunk:
            break
        pending.extend(chunk)
        start = 0
        while True:
            end = pending.find(b"\n", start)
            if end < 0:
                break
            emit(_decode(bytes(pending[start:end])))
            start = end + 1
        del pending[:start]
        if len(pending) >= STREAM_LINE_LIMIT:
            emit(_decode(bytes(pending)))
            pending.clear()
    if pending:
        emit(_decode(bytes(pending)))


def _terminate(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    try:
        proc.terminate()
    except ProcessLookupError:
        pass


def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    logger.warning("Process %s did not exit in time; killing it", proc.pid)
    try:
        proc.kill()
    except ProcessLookupError:
        pass
