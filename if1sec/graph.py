"""munin graph description for the ``config`` verb."""

from __future__ import annotations

import logging
from pathlib import Path

from if1sec.identity import Interface

logger = logging.getLogger(__name__)

DEFAULT_SPEED_MBIT = 1000


def read_speed(path: Path) -> int:
    """Link speed in Mbit/s, falling back when the driver reports none.

    Virtual devices either lack the file, fail the read with EINVAL, or
    report -1.
    """
    try:
        speed = int(Path(path).read_text().strip())
    except (OSError, ValueError) as e:
        logger.debug("No usable speed in %s (%s), assuming %d", path, e, DEFAULT_SPEED_MBIT)
        return DEFAULT_SPEED_MBIT
    if speed <= 0:
        return DEFAULT_SPEED_MBIT
    return speed


def render_config(interface: str, speed: int) -> str:
    max_bytes = speed // 8 * 1000000
    i = interface
    lines = [
        f"graph_title Interface 1sec stats for {i}",
        "graph_category network",
        "graph_args --base 1000",
        "graph_data_size custom 1d, 1s for 1d, 5s for 2d, 10s for 7d, 1m for 1t, 5m for 1y",
        "graph_vlabel bits in (-) / out (+)",
        f"graph_info This graph shows the traffic of the {i} network interface. "
        "Please note that the traffic is shown in bits per second, not bytes.",
        "update_rate 1",
        f"{i}_rx.label {i} bits",
        f"{i}_rx.cdef {i}_rx,8,*",
        f"{i}_rx.type DERIVE",
        f"{i}_rx.min 0",
        f"{i}_rx.graph no",
        f"{i}_tx.label bps",
        f"{i}_tx.cdef {i}_tx,8,*",
        f"{i}_tx.type DERIVE",
        f"{i}_tx.min 0",
        f"{i}_tx.negative {i}_rx",
        f"{i}_rx.max {max_bytes}",
        f"{i}_tx.max {max_bytes}",
        f"{i}_rx.info Received traffic on the {i} interface. Maximum speed is {speed} Mbps.",
        f"{i}_tx.info Transmitted traffic on the {i} interface. Maximum speed is {speed} Mbps.",
    ]
    return "\n".join(lines) + "\n"


def config_for(iface: Interface) -> str:
    return render_config(iface.name, read_speed(iface.speed))
