"""Tunnel helper process lifecycle.

:func:`start_tunnel` spawns the helper with both output streams piped and
starts one daemon reader thread per stream. Each reader scans its lines
with the provider's URL regex and offers the first match to a shared
:class:`~slackcli.slot.ResultSlot`; whichever stream announces the URL
first wins. Readers keep draining after a match so the helper never
blocks on a full pipe, and end on their own at EOF.

The returned :class:`TunnelHandle` owns the process. Use it as a context
manager (or call :meth:`TunnelHandle.stop`) so the helper never outlives
the login.
"""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from typing import IO, Optional

from slackcli.exceptions import (
    TunnelError,
    TunnelStartError,
    TunnelStopError,
    TunnelTimeoutError,
)
from slackcli.slot import ResultSlot
from slackcli.tunnel.providers import TunnelProvider

logger = logging.getLogger(__name__)

DEFAULT_URL_TIMEOUT = 30.0
"""Seconds to wait for the helper to announce its public URL."""

_POLL_INTERVAL = 0.1
_WAIT_AFTER_KILL = 5.0
_READER_JOIN_TIMEOUT = 1.0


class TunnelHandle:
    """A running tunnel helper and the public URL it announced.

    Attributes:
        provider: The preset the helper was started with.
        public_url: The announced URL, or ``None`` if discovery timed out.
    """

    def __init__(
        self,
        process: subprocess.Popen[str],
        provider: TunnelProvider,
        readers: Optional[list[threading.Thread]] = None,
    ) -> None:
        self._process = process
        self.provider = provider
        self.public_url: Optional[str] = None
        self._readers = readers or []
        self._stopped = False

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode

    def is_running(self) -> bool:
        """Return whether the helper process is still alive."""
        return self._process.poll() is None

    def stop(self) -> None:
        """Kill the helper and reap it. Idempotent.

        ``wait()`` is always attempted, even when the kill fails. The
        output reader threads are joined once the process is reaped.

        Raises:
            TunnelStopError: If the kill failed for a reason other than the
                process having already exited, or the process could not be
                reaped.
        """
        if self._stopped:
            return
        self._stopped = True

        kill_error: Optional[OSError] = None
        try:
            self._process.kill()
        except ProcessLookupError:
            pass
        except OSError as exc:
            kill_error = exc

        try:
            self._process.wait(timeout=_WAIT_AFTER_KILL)
        except subprocess.TimeoutExpired as exc:
            raise TunnelStopError(
                f"{self.provider.name} (pid {self.pid}) did not exit after kill"
            ) from exc

        # Pipes hit EOF once the process is reaped, which ends the readers.
        for reader in self._readers:
            reader.join(_READER_JOIN_TIMEOUT)

        if kill_error is not None:
            raise TunnelStopError(
                f"Failed to kill {self.provider.name} (pid {self.pid}): {kill_error}"
            ) from kill_error
        logger.debug("Stopped %s (pid %d)", self.provider.name, self.pid)

    def __enter__(self) -> TunnelHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def __del__(self) -> None:
        if getattr(self, "_stopped", True):
            return
        try:
            self.stop()
        except TunnelError as exc:
            logger.warning("Tunnel cleanup failed: %s", exc)


def _read_stream(
    stream: IO[str], label: str, provider: TunnelProvider, slot: ResultSlot[str]
) -> None:
    for line in stream:
        logger.debug("%s %s: %s", provider.name, label, line.rstrip())
        url = provider.extract_url(line)
        if url is not None and slot.offer(url):
            logger.debug("%s announced %s on %s", provider.name, url, label)


def start_tunnel(
    provider: TunnelProvider,
    executable: Optional[str],
    local_target: str,
    timeout: float = DEFAULT_URL_TIMEOUT,
) -> TunnelHandle:
    """Start a tunnel helper and wait for its public URL.

    Args:
        provider: Which helper to run.
        executable: Path to the helper; ``None`` uses ``provider.executable``.
        local_target: What the tunnel forwards to, e.g. ``http://localhost:8765``.
        timeout: Seconds to wait for the URL to appear on stdout or stderr.

    Returns:
        A handle owning the running process, with ``public_url`` set.

    Raises:
        TunnelStartError: The helper could not be spawned, or exited before
            announcing a URL.
        TunnelTimeoutError: No URL within *timeout*. The process is left
            running and the error carries its handle.
    """
    program = executable or provider.executable
    argv = [program, *provider.args(local_target)]
    logger.debug("Starting tunnel: %s", " ".join(argv))
    try:
        process = subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            bufsize=1,
            errors="replace",
        )
    except OSError as exc:
        raise TunnelStartError(
            f"Failed to execute '{program}': {exc}. "
            f"Make sure {provider.name} is installed and accessible."
        ) from exc

    slot: ResultSlot[str] = ResultSlot()
    readers = [
        threading.Thread(
            target=_read_stream,
            args=(stream, label, provider, slot),
            name=f"{provider.name}-{label}",
            daemon=True,
        )
        for stream, label in ((process.stdout, "stdout"), (process.stderr, "stderr"))
    ]
    for reader in readers:
        reader.start()

    handle = TunnelHandle(process, provider, readers)
    deadline = time.monotonic() + timeout
    while not slot.is_filled:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TunnelTimeoutError(
                f"Timeout waiting for {provider.name} URL (waited {timeout:g} seconds). "
                f"Make sure {provider.name} is working correctly.",
                timeout,
                handle,
            )
        if slot.wait(min(_POLL_INTERVAL, remaining)):
            break
        if not handle.is_running() and not any(r.is_alive() for r in readers):
            if slot.is_filled:
                break
            handle.stop()
            raise TunnelStartError(
                f"{provider.name} exited with status {handle.returncode} "
                "before announcing a public URL"
            )

    handle.public_url = slot.value
    logger.debug("Tunnel %s is up at %s", provider.name, handle.public_url)
    return handle
