from __future__ import annotations

HEADER_FORMAT = "@III"  # payload_size, run, fragment_count (host-native)

MAX_MESSAGE_SIZE = 4 * 1024
UINT32_MAX = 0xFFFFFFFF

TRANSMISSIONS_PER_ROUND_TRIP = 2

DEFAULT_LEADER_ADDRESS = "/tmp/udsperf-leader"
DEFAULT_FOLLOWER_ADDRESS = "/tmp/udsperf-follower"

DEFAULT_ROUND_TRIPS = 10_000
DEFAULT_PAYLOAD_SIZES = (32, 1024, 4 * 1024, 16 * 1024, 64 * 1024)
