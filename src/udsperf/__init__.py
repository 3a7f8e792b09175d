"""Unix domain socket round-trip latency benchmark (udsperf)

Two processes in fixed roles exchange synthetic payloads over local datagram sockets:
- the follower registers and echoes every message until told to stop
- the leader drives the exchange and times it

Layers are kept apart: header codec, channel, framer, role protocol, latency meter.
"""

__all__ = []
