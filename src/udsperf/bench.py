from __future__ import annotations

import os
import shutil
import tempfile
import threading
from typing import Iterable

from .constants import DEFAULT_ROUND_TRIPS, MAX_MESSAGE_SIZE
from .follower import Follower
from .leader import Leader
from .meter import LatencyResult
from .net import ChannelError, UdsChannel


def run_leader(
    own_address: str,
    peer_address: str,
    payload_sizes: Iterable[int],
    round_trips: int = DEFAULT_ROUND_TRIPS,
    *,
    max_message_size: int = MAX_MESSAGE_SIZE,
) -> list[LatencyResult]:
    leader = Leader(UdsChannel(own_address, peer_address, max_message_size))
    try:
        leader.init()
        results = [leader.ping_pong(size, round_trips) for size in payload_sizes]
        leader.terminate()
    finally:
        leader.shutdown()
    return results


def run_follower(
    own_address: str,
    peer_address: str,
    *,
    max_message_size: int = MAX_MESSAGE_SIZE,
) -> int:
    follower = Follower(UdsChannel(own_address, peer_address, max_message_size))
    try:
        follower.init()
        return follower.run()
    finally:
        follower.shutdown()


def run_benchmark(
    payload_sizes: Iterable[int],
    round_trips: int = DEFAULT_ROUND_TRIPS,
    *,
    socket_dir: str | None = None,
    max_message_size: int = MAX_MESSAGE_SIZE,
) -> list[LatencyResult]:
    """Run leader and follower in this process, the follower on a background thread."""
    tmp_dir = tempfile.mkdtemp(prefix="udsperf-", dir=socket_dir)
    leader_address = os.path.join(tmp_dir, "leader")
    follower_address = os.path.join(tmp_dir, "follower")

    leader = Leader(UdsChannel(leader_address, follower_address, max_message_size))
    follower = Follower(UdsChannel(follower_address, leader_address, max_message_size))
    follower_errors: list[Exception] = []

    def follower_runner():
        try:
            follower.run()
        except Exception as e:
            follower_errors.append(e)
        finally:
            follower.shutdown()

    try:
        leader.open()
        try:
            # registration failures surface in this thread, before the leader waits
            try:
                follower.init()
            except ChannelError:
                follower.shutdown()
                raise
            t = threading.Thread(target=follower_runner, daemon=True)
            t.start()
            leader.await_follower()
            results = [leader.ping_pong(size, round_trips) for size in payload_sizes]
            leader.terminate()
            t.join()
        finally:
            leader.shutdown()
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)

    if follower_errors:
        raise follower_errors[0]
    return results
