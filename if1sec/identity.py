"""Which network device this invocation is about.

munin runs one symlink per interface, ``if1sec_eth0`` → ``if1sec_``; the
suffix after the last ``_`` of our own program name is the interface.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from if1sec.errors import MissingSource, ResolutionError

logger = logging.getLogger(__name__)

NET_ROOT = Path("/sys/class/net")
SEPARATOR = "_"


@dataclass(frozen=True)
class Interface:
    name: str
    rx_bytes: Path
    tx_bytes: Path
    speed: Path

    @classmethod
    def under(cls, name: str, net_root: Path) -> "Interface":
        base = Path(net_root) / name
        return cls(
            name=name,
            rx_bytes=base / "statistics" / "rx_bytes",
            tx_bytes=base / "statistics" / "tx_bytes",
            speed=base / "speed",
        )


def interface_name(argv0: str) -> str:
    """Return the interface encoded in the invocation name.

    Only the basename is considered, so a directory with an underscore in
    its name cannot leak into the result.
    """
    prog = os.path.basename(argv0)
    suffix = prog.rsplit(SEPARATOR, 1)[-1]
    if not suffix or suffix == prog:
        raise ResolutionError(
            f"Can not derive interface from {prog!r}, expected a symlink named {{plugin}}_<interface>"
        )
    return suffix


def resolve(argv0: str, net_root: Path | None = None) -> Interface:
    """Resolve and validate the interface; both counter files must exist."""
    iface = Interface.under(interface_name(argv0), net_root or NET_ROOT)
    if not iface.tx_bytes.exists():
        raise MissingSource("tx", iface.tx_bytes)
    if not iface.rx_bytes.exists():
        raise MissingSource("rx", iface.rx_bytes)
    logger.debug("Interface: %s", iface)
    return iface
