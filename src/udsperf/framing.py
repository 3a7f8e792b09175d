from __future__ import annotations

import logging

from .net import UdsChannel
from .packet import HEADER_SIZE, PerfTopic


class Framer:
    """Sends and receives logical messages, splitting large ones into fragments.

    Fragments carry no sequence number. Both peers exchange one message at a
    time, so the declared fragment count is all the receiver needs to drain a
    message.
    """

    def __init__(self, channel: UdsChannel):
        self.channel = channel

    def send_message(self, payload_size: int, run: bool) -> PerfTopic:
        max_size = self.channel.max_message_size
        topic = PerfTopic.for_payload(payload_size, run, max_size)
        header = topic.to_bytes()

        if payload_size <= max_size:
            datagram = header.ljust(max(payload_size, HEADER_SIZE), b"\x00")
            self.channel.send_raw(datagram)
            return topic

        datagram = header.ljust(max_size, b"\x00")
        for _ in range(topic.fragment_count):
            self.channel.send_raw(datagram)
        logging.debug("sent %d fragments; payload_size=%d", topic.fragment_count, payload_size)
        return topic

    def receive_message(self) -> PerfTopic:
        topic = PerfTopic.from_bytes(self.channel.receive_raw())

        for _ in range(topic.fragment_count - 1):
            self.channel.receive_raw()

        return topic
