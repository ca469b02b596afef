"""Command line entry: pick the verb, resolve the interface, run it.

    if1sec_eth0            ensure a sampler runs, then print what it collected
    if1sec_eth0 fetch      same, spelled out (as munin-run users type it)
    if1sec_eth0 config     print the graph description (plus values if dirty)
    if1sec_eth0 acquire    become the sampler
    if1sec_eth0 watch      live terminal graph, for humans
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
import time
from typing import BinaryIO, Callable, Mapping

import if1sec
from if1sec import handoff
from if1sec.config import Config
from if1sec.daemon import run_sampler
from if1sec.errors import HandoffError, If1secError, SamplerError, UnknownVerb, WrongArgCount
from if1sec.graph import config_for
from if1sec.guard import LockState, probe
from if1sec.identity import Interface, resolve

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(environ: Mapping[str, str]) -> None:
    level = logging.DEBUG if environ.get("MUNIN_DEBUG") == "1" else logging.INFO
    logging.basicConfig(stream=sys.stderr, level=level, format=LOG_FORMAT)


def spawn_command(argv0: str) -> list[str]:
    """How to run ourselves again, keeping the ``_<interface>`` name."""
    prog = argv0 if os.sep in argv0 else (shutil.which(argv0) or argv0)
    if os.access(prog, os.X_OK):
        return [prog]
    return [sys.executable, prog]


def ensure_sampler(config: Config, argv0: str, *,
                   popen: Callable | None = None,
                   sleep: Callable[[float], None] | None = None) -> bool:
    """Start a sampler unless one holds the lock. True if one was spawned.

    Two polls may both see the lock free; both spawn, and the sampler that
    loses the lock race exits before sampling.
    """
    if probe(config.pid_file) is LockState.LOCKED:
        logger.debug("Sampler for %s already running", config.interface)
        return False
    popen = popen or subprocess.Popen
    sleep = sleep or time.sleep
    cmd = [*spawn_command(argv0), "acquire"]
    logger.info("Starting sampler: %s", " ".join(cmd))
    try:
        popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
            close_fds=True,
        )
    except OSError as e:
        raise SamplerError(f"Can not start sampler {cmd[0]}: {e}") from e
    sleep(config.spawn_wait_s)
    return True


# ---- verbs ----

@if1sec.register("fetch")
def fetch_verb(config: Config, iface: Interface, args: list[str], out: BinaryIO, argv0: str) -> None:
    ensure_sampler(config, argv0)
    handoff.fetch(config.cache_file, out, config.fetch_size)


@if1sec.register("config")
def config_verb(config: Config, iface: Interface, args: list[str], out: BinaryIO, argv0: str) -> None:
    try:
        out.write(config_for(iface).encode())
        out.flush()
    except OSError as e:
        raise HandoffError(f"Can not write config for {config.instance}: {e}") from e
    if config.dirtyconfig:
        handoff.fetch(config.cache_file, out, config.fetch_size)


@if1sec.register("acquire")
def acquire_verb(config: Config, iface: Interface, args: list[str], out: BinaryIO, argv0: str) -> None:
    run_sampler(config, iface)


@if1sec.register("watch", takes_args=True)
def watch_verb(config: Config, iface: Interface, args: list[str], out: BinaryIO, argv0: str) -> None:
    from if1sec.watch import WatchView

    WatchView(config, iface, args).run()


# ---- dispatch ----

def dispatch(argv: list[str], environ: Mapping[str, str], out: BinaryIO,
             net_root=None) -> None:
    """Validate in order (arguments, interface, environment), then run the verb."""
    argv0, *rest = argv
    verb = if1sec.resolve(rest[0] if rest else "")
    handler = if1sec.VERBS.get(verb)
    if handler is None:
        raise UnknownVerb(f"Unknown command {verb!r}, expected one of: {', '.join(sorted(if1sec.VERBS))}")
    extra = rest[1:]
    if extra and not handler.takes_args:
        raise WrongArgCount(f"{verb} takes no further arguments, got {len(extra)}")

    iface = resolve(argv0, net_root)
    config = Config.from_env(iface.name, environ)
    logger.debug("%s %s, state in %s", config.instance, verb, config.state_dir)
    handler(config, iface, extra, out, argv0)


def main(argv: list[str] | None = None, environ: Mapping[str, str] | None = None,
         out: BinaryIO | None = None) -> None:
    argv = sys.argv if argv is None else argv
    environ = os.environ if environ is None else environ
    setup_logging(environ)
    try:
        dispatch(argv, environ, out or sys.stdout.buffer)
    except If1secError as e:
        logger.error("%s", e)
        sys.exit(int(e.exit_status))


if __name__ == "__main__":
    main()
