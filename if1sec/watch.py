"""Live rx/tx graph in the terminal — a debugging aid, munin never calls it.

Reads the same counters the sampler reads, at the same cadence, and draws
the rates with plotext. Leaves the cache and PID file alone.
"""

from __future__ import annotations

import math
import signal
import sys
import time
from argparse import ArgumentParser
from collections import deque
from dataclasses import dataclass, field

import plotext as plt

from if1sec.config import Config
from if1sec.counters import read_counters
from if1sec.identity import Interface
from if1sec.ticker import Ticker

# ---- unit scaling ----

RATE_UNITS = [("B/s", 1), ("KB/s", 1024), ("MB/s", 1024**2), ("GB/s", 1024**3)]


def pick_unit(max_val: float, units: list[tuple[str, int]] | None = None) -> tuple[str, int]:
    """Choose the best unit so the peak value is readable."""
    if units is None:
        units = RATE_UNITS
    for name, divisor in reversed(units):
        if max_val >= divisor:
            return name, divisor
    return units[0]


def format_rate(bps: float) -> str:
    for name, divisor in reversed(RATE_UNITS):
        if bps >= divisor:
            return f"{bps / divisor:.1f} {name}"
    return f"{bps:.0f} {RATE_UNITS[0][0]}"


@dataclass
class Series:
    """One data series on the chart."""
    name: str
    color: str
    label_fmt: str          # e.g. "↓ {}"
    data: deque = field(default=None, repr=False)
    current: float = 0.0

    def formatted_label(self) -> str:
        return self.label_fmt.format(format_rate(self.current))


def rate(prev: int, cur: int, dt: float) -> float:
    """Bytes per second between two counter readings, never negative."""
    return max(0.0, (cur - prev) / max(1e-6, dt))


class WatchView:
    """Rolling chart of one interface's receive and transmit rates."""

    def __init__(self, config: Config, iface: Interface, argv: list[str] | None = None):
        parser = ArgumentParser(prog=f"{config.instance} watch",
                                description=f"Live traffic graph for {iface.name}")
        parser.add_argument("--window", type=float, default=60.0,
                            help="Rolling history window in seconds (default: 60)")
        parser.add_argument("--no-legend", action="store_true",
                            help="Hide the legend labels")
        self.args = parser.parse_args(argv)

        self.config = config
        self.iface = iface
        self.interval_s = config.interval_s
        self.window_seconds = max(self.interval_s * 4, self.args.window)
        self.max_points = max(2, int(self.window_seconds / self.interval_s))
        self.xs = [i * self.interval_s - self.window_seconds for i in range(self.max_points)]

        self._series = [
            Series("rx", "green", "↓ {}", deque([0.0] * self.max_points, maxlen=self.max_points)),
            Series("tx", "yellow", "↑ {}", deque([0.0] * self.max_points, maxlen=self.max_points)),
        ]
        self._prev_rx, self._prev_tx = read_counters(iface)
        self._prev_time = time.monotonic()

    def sample(self) -> dict[str, float]:
        now = time.monotonic()
        rx, tx = read_counters(self.iface)
        dt = now - self._prev_time
        values = {"rx": rate(self._prev_rx, rx, dt), "tx": rate(self._prev_tx, tx, dt)}
        self._prev_rx, self._prev_tx = rx, tx
        self._prev_time = now
        return values

    def _draw(self) -> None:
        plt.clf()
        plt.theme("clear")
        plt.plotsize(None, None)

        peak = max(max(max(s.data) for s in self._series), 1.0)
        unit_label, divisor = pick_unit(peak)
        for s in self._series:
            label = s.formatted_label() if not self.args.no_legend else ""
            plt.plot(self.xs, [v / divisor for v in s.data],
                     label=label, color=s.color, marker="braille")
        y_max = math.ceil(max(peak / divisor, 0.01) * 1.15)

        plt.frame(False)
        plt.xticks([])
        plt.yticks([])
        plt.ylim(0, y_max)
        plt.xlim(-self.window_seconds, 0)
        plt.grid(False, False)
        plt.text(f"{self.iface.name}  {unit_label}", x=-self.window_seconds / 2,
                 y=y_max * 0.9, color="default", alignment="center")

        sys.stdout.write("\033[H" + plt.build().rstrip() + "\033[J")
        sys.stdout.flush()

    def run(self) -> None:
        """Blocking main loop. Ctrl+C to exit."""
        sys.stdout.write("\033[?25l")  # hide cursor
        sys.stdout.flush()
        signal.signal(signal.SIGWINCH, lambda signum, frame: self._draw())

        ticker = Ticker(self.interval_s)
        try:
            while True:
                ticker.wait()
                values = self.sample()
                for s in self._series:
                    s.current = values[s.name]
                    s.data.append(s.current)
                self._draw()
        except KeyboardInterrupt:
            pass
        finally:
            sys.stdout.write("\033[?25h")  # show cursor
            sys.stdout.flush()
