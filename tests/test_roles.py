from __future__ import annotations

import os
import threading

import pytest

from udsperf.follower import Follower, FollowerState
from udsperf.framing import Framer
from udsperf.leader import Leader
from udsperf.net import ChannelError, ChannelErrorKind, UdsChannel
from udsperf.packet import HEADER_SIZE, PerfTopic


def _start(target):
    result = {}

    def runner():
        try:
            result["value"] = target()
        except Exception as e:
            result["error"] = e

    t = threading.Thread(target=runner, daemon=True)
    t.start()
    return t, result


def test_follower_echoes_until_stopped(sock_dir, guarded_channel):
    leader_path = os.path.join(sock_dir, "leader")
    follower_path = os.path.join(sock_dir, "follower")
    leader_ch = guarded_channel(leader_path, follower_path, timeout_s=1.0)
    leader_ch.open()
    follower = Follower(guarded_channel(follower_path, leader_path, timeout_s=5.0))
    try:
        follower.init()
        assert follower.state is FollowerState.LISTENING
        framer = Framer(leader_ch)
        assert framer.receive_message() == PerfTopic(payload_size=HEADER_SIZE, run=True)

        t, result = _start(follower.run)
        for size in (16, 1024, 8192):
            framer.send_message(size, True)
            echo = framer.receive_message()
            assert echo.payload_size == size
            assert echo.run is True

        framer.send_message(HEADER_SIZE, False)
        t.join(timeout=5)
        assert not t.is_alive()
        assert result == {"value": 3}
        assert follower.state is FollowerState.TERMINATED

        # no reply to the stop message
        with pytest.raises(ChannelError) as ei:
            leader_ch.receive_raw()
        assert ei.value.kind is ChannelErrorKind.RECEIVE
    finally:
        follower.shutdown()
        leader_ch.close()


def test_follower_registration_needs_a_leader(sock_dir):
    follower = Follower(UdsChannel(os.path.join(sock_dir, "follower"), os.path.join(sock_dir, "nobody")))
    try:
        with pytest.raises(ChannelError) as ei:
            follower.init()
        assert ei.value.kind is ChannelErrorKind.SEND
    finally:
        follower.shutdown()


def test_leader_and_follower_end_to_end(sock_dir, guarded_channel):
    a = os.path.join(sock_dir, "A")
    b = os.path.join(sock_dir, "B")
    leader = Leader(guarded_channel(a, b, timeout_s=10.0))
    follower = Follower(guarded_channel(b, a, timeout_s=10.0))
    leader.open()

    def follower_main():
        follower.channel.open()
        follower.framer.send_message(8, True)
        try:
            return follower.run()
        finally:
            follower.shutdown()

    t, result = _start(follower_main)
    try:
        assert leader.await_follower() == PerfTopic(payload_size=8, run=True, fragment_count=1)
        leader.begin_exchange(64)
        leader.run_loop(1000)
        assert leader.finish() == PerfTopic(payload_size=64, run=True, fragment_count=1)
        leader.terminate()
        t.join(timeout=10)
    finally:
        leader.shutdown()

    assert not t.is_alive()
    assert result == {"value": 1001}
    assert follower.state is FollowerState.TERMINATED
    assert not os.path.exists(a)
    assert not os.path.exists(b)


def test_ping_pong_across_payload_sizes(sock_dir, guarded_channel):
    a = os.path.join(sock_dir, "A")
    b = os.path.join(sock_dir, "B")
    leader = Leader(guarded_channel(a, b, timeout_s=10.0))
    follower = Follower(guarded_channel(b, a, timeout_s=10.0))
    leader.open()
    follower.init()
    t, result = _start(follower.run)
    try:
        leader.await_follower()
        results = [leader.ping_pong(size, 20) for size in (32, 16 * 1024)]
        leader.terminate()
        t.join(timeout=10)
    finally:
        leader.shutdown()
        follower.shutdown()

    assert [r.payload_size for r in results] == [32, 16 * 1024]
    assert all(r.round_trips == 20 and r.latency_us >= 0 for r in results)
    assert result == {"value": 2 * 21}
