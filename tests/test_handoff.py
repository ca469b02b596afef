import io
import os

import pytest

from if1sec.daemon import SamplerDaemon
from if1sec.errors import ExitStatus, HandoffError
from if1sec.handoff import fetch, sweep_leftovers


def test_absent_cache_is_empty(config):
    for _ in range(3):
        out = io.BytesIO()
        assert fetch(config.cache_file, out) == 0
        assert out.getvalue() == b""
    assert list(config.state_dir.iterdir()) == []


def test_exactly_once(config, iface, clock):
    daemon = SamplerDaemon(config, iface, clock=clock, sleep=clock.sleep)
    daemon.run(ticks=4)
    expected = config.cache_file.read_bytes()

    out = io.BytesIO()
    assert fetch(config.cache_file, out) == len(expected)
    assert out.getvalue() == expected
    assert len(out.getvalue().splitlines()) == 8

    again = io.BytesIO()
    assert fetch(config.cache_file, again) == 0
    assert again.getvalue() == b""
    assert list(config.state_dir.iterdir()) == []


def test_ticks_after_handoff_go_to_next_reader(config, iface, clock):
    daemon = SamplerDaemon(config, iface, clock=clock, sleep=clock.sleep)
    daemon.tick()
    first = io.BytesIO()
    fetch(config.cache_file, first)
    clock.now += 1
    daemon.tick()
    second = io.BytesIO()
    fetch(config.cache_file, second)
    assert b"1700000000" in first.getvalue() and b"1700000001" not in first.getvalue()
    assert b"1700000001" in second.getvalue() and b"1700000000" not in second.getvalue()


def test_small_chunks(config):
    payload = b"".join(b"eth0_tx.value %d:%d\n" % (1700000000 + i, i) for i in range(100))
    config.cache_file.write_bytes(payload)
    out = io.BytesIO()
    fetch(config.cache_file, out, chunk_size=7)
    assert out.getvalue() == payload


class BrokenOutput(io.BytesIO):
    def write(self, data):
        raise BrokenPipeError("reader went away")


def test_failed_stream_keeps_data(config):
    config.cache_file.write_bytes(b"eth0_tx.value 1700000000:500\n")
    with pytest.raises(HandoffError) as info:
        fetch(config.cache_file, BrokenOutput())
    assert info.value.exit_status == ExitStatus.HANDOFF
    assert not config.cache_file.exists()
    left = [p for p in config.state_dir.iterdir()]
    assert len(left) == 1
    assert left[0].read_bytes() == b"eth0_tx.value 1700000000:500\n"


def test_missing_state_dir(tmp_path):
    with pytest.raises(HandoffError):
        fetch(tmp_path / "nowhere" / "munin.if1sec_eth0.value", io.BytesIO())


def test_old_leftovers_are_swept(config):
    old = config.state_dir / ".munin.if1sec_eth0.value.abc123"
    old.write_bytes(b"eth0_tx.value 1600000000:1\n")
    os.utime(old, (1_600_000_000, 1_600_000_000))
    fresh = config.state_dir / ".munin.if1sec_eth0.value.def456"
    fresh.write_bytes(b"eth0_tx.value 1700000000:1\n")
    other = config.state_dir / ".munin.if1sec_eth1.value.abc123"
    other.write_bytes(b"")
    os.utime(other, (1_600_000_000, 1_600_000_000))

    out = io.BytesIO()
    assert fetch(config.cache_file, out) == 0
    assert not old.exists()
    assert fresh.exists()
    assert other.exists()


def test_sweep_respects_age(config):
    left = config.state_dir / ".munin.if1sec_eth0.value.xyz"
    left.write_bytes(b"")
    mtime = left.stat().st_mtime
    assert sweep_leftovers(config.cache_file, max_age_s=60, now=mtime + 59) == []
    assert sweep_leftovers(config.cache_file, max_age_s=60, now=mtime + 61) == [left]
