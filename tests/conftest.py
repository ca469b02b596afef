import pytest

from if1sec.config import Config
from if1sec.identity import Interface


@pytest.fixture
def net_root(tmp_path):
    """A fake /sys/class/net with eth0 reporting rx=1000, tx=500."""
    root = tmp_path / "net"
    stats = root / "eth0" / "statistics"
    stats.mkdir(parents=True)
    (stats / "rx_bytes").write_text("1000\n")
    (stats / "tx_bytes").write_text("500\n")
    (root / "eth0" / "speed").write_text("1000\n")
    return root


@pytest.fixture
def iface(net_root):
    return Interface.under("eth0", net_root)


@pytest.fixture
def state_dir(tmp_path):
    d = tmp_path / "plugin-state"
    d.mkdir()
    return d


@pytest.fixture
def config(state_dir):
    return Config(interface="eth0", state_dir=state_dir)


class FakeClock:
    """Wall clock that only moves when told to, or when slept on."""

    def __init__(self, now: float):
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock(1_700_000_000.0)
