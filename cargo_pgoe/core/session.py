"""
Build driver session — one live cargo child process.

The child's stdout is a pipe; build events are decoded from it lazily as
the caller pulls them, so a long build is never materialized in memory
and the pipe itself supplies backpressure.  Stdin and stderr are
inherited from the parent, so diagnostics render straight to the terminal
and interactive build scripts still work (and may block on user input).
Stdout is read as bytes; each line is decoded as strict UTF-8.
"""
from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Iterator, Mapping, Optional

from cargo_pgoe.core.errors import BuildFailedError, EventStreamError, ToolchainError
from cargo_pgoe.core.invocation import BuildInvocation, StreamMode
from cargo_pgoe.io.messages import BuildEvent, iter_messages

logger = logging.getLogger(__name__)


def _popen_stream(mode: StreamMode):
    return subprocess.PIPE if mode is StreamMode.CAPTURE else None


class BuildSession:
    """
    Owns a spawned cargo process and its event stream.

    Iterate ``events()`` to completion, then call ``wait()`` to reap the
    process.  The event sequence is single-use.
    """

    def __init__(self, process: subprocess.Popen):
        self._process = process
        self._events = self._stream()
        self._exhausted = False

    @property
    def pid(self) -> int:
        return self._process.pid

    def events(self) -> Iterator[BuildEvent]:
        return self._events

    def __iter__(self) -> Iterator[BuildEvent]:
        return self._events

    def _stream(self) -> Iterator[BuildEvent]:
        stdout = self._process.stdout
        if stdout is None:
            raise ToolchainError("cargo stdout is not captured")
        try:
            yield from iter_messages(stdout)
        except EventStreamError:
            self._abort()
            raise
        self._exhausted = True

    def _abort(self) -> None:
        """Kill and reap the child after a fatal stream error."""
        if self._process.poll() is None:
            self._process.kill()
        self._process.wait()
        if self._process.stdout is not None and not self._process.stdout.closed:
            self._process.stdout.close()

    def wait(self) -> int:
        """
        Finish the session: drain any unread output, reap the process.

        Raises BuildFailedError on a non-zero exit status.
        """
        stdout = self._process.stdout
        if stdout is not None and not stdout.closed:
            if not self._exhausted:
                # Unread output is discarded
                for _ in stdout:
                    pass
            stdout.close()

        code = self._process.wait()
        logger.debug("cargo (pid %d) exited with status %d", self.pid, code)
        if code != 0:
            raise BuildFailedError(code)
        return code

    def __enter__(self) -> BuildSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self._abort()


def spawn_build(
    invocation: BuildInvocation,
    base_env: Optional[Mapping[str, str]] = None,
) -> BuildSession:
    """
    Spawn *invocation* and return its session.

    Raises ToolchainError if the program cannot be started.  No retry.
    """
    cmd = invocation.command_line()
    logger.info("Running: %s", shlex.join(cmd))

    try:
        process = subprocess.Popen(
            cmd,
            stdin=_popen_stream(invocation.stdin),
            stdout=_popen_stream(invocation.stdout),
            stderr=_popen_stream(invocation.stderr),
            env=invocation.child_environment(base_env),
        )
    except OSError as e:
        raise ToolchainError(f"Cannot execute `{invocation.program}`: {e}") from e

    return BuildSession(process)
