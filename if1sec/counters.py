"""Byte counters as the kernel exposes them under /sys/class/net."""

from __future__ import annotations

from pathlib import Path

from if1sec.errors import CounterError
from if1sec.identity import Interface


def read_counter(path: Path) -> int:
    """Read one counter file. Python ints are unbounded, so no 64-bit cap."""
    try:
        raw = Path(path).read_text()
    except OSError as e:
        raise CounterError(f"Can not read {path}: {e}") from e
    try:
        value = int(raw.strip())
    except ValueError as e:
        raise CounterError(f"{path} does not hold an integer: {raw.strip()!r}") from e
    if value < 0:
        raise CounterError(f"{path} holds a negative counter: {value}")
    return value


def read_counters(iface: Interface) -> tuple[int, int]:
    """Return ``(rx, tx)`` bytes, read fresh every call."""
    rx = read_counter(iface.rx_bytes)
    tx = read_counter(iface.tx_bytes)
    return rx, tx
