"""Single-flight guard: one sampler per interface, decided by flock(2).

The content of the PID file is informational. What counts is who holds the
exclusive lock on it; the kernel drops that lock when the holder dies, so a
crashed sampler never leaves a stale claim behind.
"""

from __future__ import annotations

import errno
import fcntl
import logging
import os
from enum import Enum
from pathlib import Path

from if1sec.errors import SamplerError, SingletonConflict

logger = logging.getLogger(__name__)


class LockState(str, Enum):
    LOCKED = "locked"          # a sampler is running
    AVAILABLE = "available"    # nobody holds the lock, or no PID file yet


def probe(pid_file: Path) -> LockState:
    """Check whether a sampler holds the lock, without creating the file."""
    try:
        fd = os.open(pid_file, os.O_RDONLY)
    except FileNotFoundError:
        return LockState.AVAILABLE
    except OSError as e:
        raise SamplerError(f"Can not open pid file {pid_file}: {e}") from e
    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            if e.errno in (errno.EAGAIN, errno.EWOULDBLOCK, errno.EACCES):
                return LockState.LOCKED
            raise
        fcntl.flock(fd, fcntl.LOCK_UN)
        return LockState.AVAILABLE
    finally:
        os.close(fd)


class PidLock:
    """Exclusive lock on the PID file, held until release() or process exit.

    The descriptor survives fork(), so a daemon can lock first and detach
    afterwards without ever running unlocked.
    """

    def __init__(self, pid_file: Path):
        self.pid_file = Path(pid_file)
        self.fd: int | None = None

    def acquire(self) -> "PidLock":
        try:
            fd = os.open(self.pid_file, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise SamplerError(f"Can not open pid file {self.pid_file}: {e}") from e
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            os.close(fd)
            if e.errno in (errno.EAGAIN, errno.EWOULDBLOCK, errno.EACCES):
                raise SingletonConflict(
                    f"Another sampler holds {self.pid_file}, not starting a second one"
                ) from e
            raise SamplerError(f"Can not lock {self.pid_file}: {e}") from e
        self.fd = fd
        logger.debug("Locked %s", self.pid_file)
        return self

    def write_pid(self, pid: int | None = None) -> None:
        """Replace the file content with our pid. Only call while locked."""
        if self.fd is None:
            raise SamplerError("write_pid() called without holding the lock")
        os.ftruncate(self.fd, 0)
        os.lseek(self.fd, 0, os.SEEK_SET)
        os.write(self.fd, f"{pid if pid is not None else os.getpid()}\n".encode())

    def release(self) -> None:
        if self.fd is None:
            return
        fcntl.flock(self.fd, fcntl.LOCK_UN)
        os.close(self.fd)
        self.fd = None

    def __enter__(self) -> "PidLock":
        return self.acquire()

    def __exit__(self, *exc) -> None:
        self.release()
