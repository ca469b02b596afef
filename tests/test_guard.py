import pytest

from if1sec.errors import ExitStatus, SingletonConflict
from if1sec.guard import LockState, PidLock, probe


def test_probe_absent_file_does_not_create_it(tmp_path):
    pid_file = tmp_path / "munin.if1sec_eth0.pid"
    assert probe(pid_file) is LockState.AVAILABLE
    assert not pid_file.exists()


def test_probe_stale_file(tmp_path):
    pid_file = tmp_path / "munin.if1sec_eth0.pid"
    pid_file.write_text("4242\n")
    assert probe(pid_file) is LockState.AVAILABLE
    assert pid_file.read_text() == "4242\n"


def test_probe_sees_holder(tmp_path):
    pid_file = tmp_path / "munin.if1sec_eth0.pid"
    with PidLock(pid_file):
        assert probe(pid_file) is LockState.LOCKED
    assert probe(pid_file) is LockState.AVAILABLE


def test_second_lock_fails_closed(tmp_path):
    pid_file = tmp_path / "munin.if1sec_eth0.pid"
    winner = PidLock(pid_file).acquire()
    winner.write_pid(1234)
    loser = PidLock(pid_file)
    with pytest.raises(SingletonConflict) as info:
        loser.acquire()
    assert info.value.exit_status == ExitStatus.SINGLETON
    assert loser.fd is None
    # The loser must not have touched the winner's pid.
    assert pid_file.read_text() == "1234\n"
    winner.release()


def test_write_pid_replaces_content(tmp_path):
    pid_file = tmp_path / "munin.if1sec_eth0.pid"
    pid_file.write_text("999999999\n")
    with PidLock(pid_file) as lock:
        lock.write_pid(77)
        assert pid_file.read_text() == "77\n"


def test_lock_free_after_release(tmp_path):
    pid_file = tmp_path / "munin.if1sec_eth0.pid"
    PidLock(pid_file).acquire().release()
    with PidLock(pid_file):
        pass
