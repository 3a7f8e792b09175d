from __future__ import annotations

import logging

from .framing import Framer
from .meter import LatencyResult, measure_latency
from .net import UdsChannel
from .packet import HEADER_SIZE, PerfTopic


class Leader:
    """Drives the ping-pong exchange with a registered follower."""

    def __init__(self, channel: UdsChannel):
        self.channel = channel
        self.framer = Framer(channel)

    def open(self) -> None:
        self.channel.open()

    def await_follower(self) -> PerfTopic:
        logging.info("waiting for follower on %s", self.channel.own_address)
        registration = self.framer.receive_message()
        logging.info("follower registered")
        return registration

    def init(self) -> PerfTopic:
        self.open()
        return self.await_follower()

    def begin_exchange(self, payload_size: int) -> None:
        self.framer.send_message(payload_size, True)

    def run_loop(self, round_trips: int) -> None:
        for _ in range(round_trips):
            topic = self.framer.receive_message()
            self.framer.send_message(topic.payload_size, True)

    def finish(self) -> PerfTopic:
        # the follower still owes the echo of our last send
        last = self.framer.receive_message()
        logging.info("done")
        return last

    def terminate(self) -> None:
        self.framer.send_message(HEADER_SIZE, False)

    def ping_pong(self, payload_size: int, round_trips: int) -> LatencyResult:
        logging.info("measuring payload_size=%d round_trips=%d", payload_size, round_trips)
        self.begin_exchange(payload_size)
        latency_us = measure_latency(self.run_loop, round_trips)
        self.finish()
        return LatencyResult(payload_size=payload_size, round_trips=round_trips, latency_us=latency_us)

    def shutdown(self) -> None:
        logging.info("shutdown")
        self.channel.close()
