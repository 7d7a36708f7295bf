"""Run test binaries as isolated process groups."""

import asyncio
import codecs
import io
import logging
import os
import signal
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from c_binary_tests.models.result import Errored, Failed, Passed, RunResult
from c_binary_tests.reporting import OutputSink
from c_binary_tests.tree import TestLeaf

log = logging.getLogger(__name__)

OUTPUT_TAIL_CHARS = 4000
READ_CHUNK_SIZE = 4096
GROUP_POLL_INTERVAL = 0.05
# Streams can outlive the group when a grandchild escaped it with setsid().
STREAM_DRAIN_TIMEOUT = 1.0


class OutputTail:
    """Keeps the last *limit* characters of a stream."""

    def __init__(self, limit: int = OUTPUT_TAIL_CHARS) -> None:
        self.limit = limit
        self._text = ""

    def append(self, text: str) -> None:
        self._text = (self._text + text)[-self.limit :]

    def __str__(self) -> str:
        return self._text


def signal_name(signum: int) -> str:
    """Readable name of a signal number."""
    try:
        return signal.Signals(signum).name
    except ValueError:
        return f"signal {signum}"


def failure_message(headline: str, stdout: str, stderr: str) -> str:
    """Diagnostic message with the tails of both output streams."""
    parts = [headline]
    if stderr:
        parts.append(f"--- stderr (last {OUTPUT_TAIL_CHARS} chars) ---\n{stderr}")
    if stdout:
        parts.append(f"--- stdout (last {OUTPUT_TAIL_CHARS} chars) ---\n{stdout}")
    return "\n".join(parts)


async def pump_stream(
    stream: asyncio.StreamReader,
    tail: OutputTail,
    sink: OutputSink,
    leaf: TestLeaf | None,
) -> None:
    """Forward decoded chunks of *stream* to *sink* until EOF.

    Line endings are normalized to ``\\n``, across chunk boundaries too.
    """
    decoder = io.IncrementalNewlineDecoder(
        codecs.getincrementaldecoder("utf-8")(errors="replace"), translate=True
    )
    while chunk := await stream.read(READ_CHUNK_SIZE):
        if text := decoder.decode(chunk):
            tail.append(text)
            sink.append_output(text, leaf)
    if text := decoder.decode(b"", final=True):
        tail.append(text)
        sink.append_output(text, leaf)


def group_alive(pgid: int) -> bool:
    """Check whether any process of the group still exists."""
    try:
        os.killpg(pgid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def signal_group(pgid: int, signum: int) -> None:
    """Send *signum* to every process of the group, ignoring a vanished group."""
    log.debug("Sending %s to process group %d", signal_name(signum), pgid)
    try:
        os.killpg(pgid, signum)
    except ProcessLookupError:
        pass


@dataclass(kw_only=True)
class ExecutionEngine:
    """Runs executables in their own process group and interprets the exit.

    Cancellation escalates over the whole group: SIGINT at once, SIGTERM once
    *terminate_after* seconds have passed, SIGKILL once *kill_after* seconds
    have passed, both measured from the cancellation.
    """

    cwd: Path
    env: Mapping[str, str] | None = None
    terminate_after: float = 0.3
    kill_after: float = 1.5
    _live_groups: set[int] = field(default_factory=set, init=False, repr=False)

    @property
    def live_process_groups(self) -> frozenset[int]:
        """Process group ids of runs currently in flight."""
        return frozenset(self._live_groups)

    async def run(
        self,
        executable: Path,
        sink: OutputSink,
        *,
        cancel: asyncio.Event | None = None,
        leaf: TestLeaf | None = None,
    ) -> RunResult:
        """Execute *executable* with no arguments and produce its result.

        Args:
            executable: Program to run
            sink: Receives stdout and stderr as they arrive
            cancel: Cancellation token; setting it stops the process group
            leaf: Leaf the output is attributed to

        Returns:
            Passed on exit code 0, Failed on nonzero exit or signal, Errored
            when the program cannot be started or the run was cancelled.

        """
        start = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                str(executable),
                cwd=self.cwd,
                env=self.env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            log.warning("Failed to launch %s: %s", executable, e)
            return Errored(message=f"Failed to launch {executable}: {e}")

        # A new session leader's process group id is its pid.
        pgid = process.pid
        self._live_groups.add(pgid)
        log.debug("Started %s (pid=%d)", executable, pgid)

        assert process.stdout is not None
        assert process.stderr is not None
        stdout_tail, stderr_tail = OutputTail(), OutputTail()
        completion = asyncio.gather(
            process.wait(),
            pump_stream(process.stdout, stdout_tail, sink, leaf),
            pump_stream(process.stderr, stderr_tail, sink, leaf),
        )

        try:
            if await self._wait_or_cancel(completion, cancel):
                last_signal = await self._stop_group(pgid)
                await self._drain(completion, process)
                return Errored(
                    message=(
                        f"Cancelled; process group {pgid} stopped with "
                        f"{signal_name(last_signal)}"
                    )
                )
            await completion
        except asyncio.CancelledError:
            signal_group(pgid, signal.SIGKILL)
            completion.cancel()
            raise
        finally:
            self._live_groups.discard(pgid)

        duration = time.monotonic() - start
        returncode = process.returncode
        assert returncode is not None

        if returncode == 0:
            return Passed(duration=duration)

        if returncode < 0:
            headline = f"Process terminated by signal {signal_name(-returncode)}"
        else:
            headline = f"Process exited with code {returncode}"
        return Failed(
            duration=duration,
            message=failure_message(headline, str(stdout_tail), str(stderr_tail)),
        )

    @staticmethod
    async def _wait_or_cancel(
        completion: asyncio.Future[object], cancel: asyncio.Event | None
    ) -> bool:
        """Wait for completion; return True if the token fired first."""
        if cancel is None:
            await completion
            return False

        cancel_wait = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait(
                {completion, cancel_wait}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancel_wait.cancel()
        return completion not in done

    async def _stop_group(self, pgid: int) -> int:
        """Escalate INT, TERM, KILL over the group; return the last signal sent."""
        loop = asyncio.get_running_loop()
        started = loop.time()

        for signum, deadline in (
            (signal.SIGINT, started + self.terminate_after),
            (signal.SIGTERM, started + self.kill_after),
        ):
            signal_group(pgid, signum)
            while loop.time() < deadline:
                if not group_alive(pgid):
                    return signum
                await asyncio.sleep(min(GROUP_POLL_INTERVAL, deadline - loop.time()))
            if not group_alive(pgid):
                return signum

        signal_group(pgid, signal.SIGKILL)
        return signal.SIGKILL

    @staticmethod
    async def _drain(
        completion: asyncio.Future[object], process: asyncio.subprocess.Process
    ) -> None:
        try:
            await asyncio.wait_for(asyncio.shield(completion), STREAM_DRAIN_TIMEOUT)
        except TimeoutError:
            log.warning("Output of pid %d still open after kill", process.pid)
            completion.cancel()
            await process.wait()
