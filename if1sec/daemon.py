"""The sampler: a detached process appending one tick per second to the cache.

Lifecycle:
    1. start() locks the PID file, detaches, records its pid
    2. run() enters the endless acquisition loop
    3. tick() samples both counters and appends two lines
    4. the loop only ends when the process is killed, or on a failed tick

A failed tick ends the sampler process. The next munin poll finds the lock
free and spawns a fresh one.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from typing import Callable

from if1sec.config import Config
from if1sec.counters import read_counters
from if1sec.errors import SamplerError
from if1sec.guard import PidLock
from if1sec.identity import Interface
from if1sec.ticker import Ticker

logger = logging.getLogger(__name__)


def format_tick(interface: str, epoch: int, rx: int, tx: int) -> str:
    """Both lines of one tick, tx first, as a single string."""
    return (
        f"{interface}_tx.value {epoch}:{tx}\n"
        f"{interface}_rx.value {epoch}:{rx}\n"
    )


def detach(workdir) -> None:
    """Classic double fork: leave the session and the controlling terminal."""
    if os.fork() > 0:
        os._exit(0)
    os.setsid()
    if os.fork() > 0:
        os._exit(0)
    os.chdir(workdir)
    os.umask(0o022)
    sys.stdout.flush()
    sys.stderr.flush()
    devnull = os.open(os.devnull, os.O_RDWR)
    for fd in (0, 1, 2):
        os.dup2(devnull, fd)
    if devnull > 2:
        os.close(devnull)


class SamplerDaemon:
    def __init__(self, config: Config, iface: Interface, *,
                 clock: Callable[[], float] = time.time,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self.iface = iface
        self._clock = clock
        self._sleep = sleep
        self.lock = PidLock(config.pid_file)
        self.last_epoch: int | None = None

    def start(self, *, detach_process: bool = True) -> None:
        """Become the one sampler for this interface, or raise.

        The lock is taken before detaching; a loser of the race fails here
        and never gets to write a single sample.
        """
        self.lock.acquire()
        if detach_process:
            detach(self.config.state_dir)
        self.lock.write_pid()
        logger.info("Sampler for %s running as pid %d", self.iface.name, os.getpid())

    def tick(self) -> int | None:
        """Sample once and append to the cache. Returns the tick's epoch.

        Returns None without sampling when the clock has not moved past the
        previous epoch, since munin rejects two values for one second.
        """
        epoch = int(self._clock())
        if self.last_epoch is not None and epoch <= self.last_epoch:
            logger.warning("Clock at %d, not past last tick %d; skipping", epoch, self.last_epoch)
            return None
        rx, tx = read_counters(self.iface)
        payload = format_tick(self.iface.name, epoch, rx, tx)
        # Opened per tick and closed before sleeping, so a reader may rename
        # the cache away between ticks. One write() per tick keeps the pair
        # together in O_APPEND mode.
        try:
            with open(self.config.cache_file, "a") as f:
                f.write(payload)
        except OSError as e:
            raise SamplerError(f"Can not append to {self.config.cache_file}: {e}") from e
        self.last_epoch = epoch
        return epoch

    def run(self, ticks: int | None = None) -> None:
        """Acquisition loop. ``ticks`` bounds it for callers that need an end."""
        ticker = Ticker(self.config.interval_s, clock=self._clock, sleep=self._sleep)
        done = 0
        while ticks is None or done < ticks:
            self.tick()
            done += 1
            if ticks is not None and done >= ticks:
                break
            ticker.wait()


def run_sampler(config: Config, iface: Interface) -> None:
    daemon = SamplerDaemon(config, iface)
    daemon.start()
    daemon.run()
