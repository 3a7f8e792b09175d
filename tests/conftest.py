from __future__ import annotations

import os
import shutil
import tempfile

import pytest

from udsperf.net import UdsChannel


class GuardedChannel(UdsChannel):
    """Channel whose receives give up after ``timeout_s`` so a broken test fails instead of hanging."""

    def __init__(self, own_address: str, peer_address: str, timeout_s: float = 0.5, **kwargs):
        super().__init__(own_address, peer_address, **kwargs)
        self.timeout_s = timeout_s

    def open(self) -> None:
        super().open()
        self._recv_sock.settimeout(self.timeout_s)


@pytest.fixture
def sock_dir():
    # pytest's tmp_path can exceed the AF_UNIX path limit
    d = tempfile.mkdtemp(prefix="udsperf-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def guarded_channel():
    return GuardedChannel


@pytest.fixture
def channel_pair(sock_dir, guarded_channel):
    a_path = os.path.join(sock_dir, "a")
    b_path = os.path.join(sock_dir, "b")
    a = guarded_channel(a_path, b_path)
    b = guarded_channel(b_path, a_path)
    a.open()
    b.open()
    yield a, b
    a.close()
    b.close()
