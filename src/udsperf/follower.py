from __future__ import annotations

import enum
import logging

from .framing import Framer
from .net import UdsChannel
from .packet import HEADER_SIZE


class FollowerState(enum.Enum):
    IDLE = "idle"
    LISTENING = "listening"
    ECHOING = "echoing"
    TERMINATED = "terminated"


class Follower:
    """Echoes every message back to the leader until a message with run=False arrives."""

    def __init__(self, channel: UdsChannel):
        self.channel = channel
        self.framer = Framer(channel)
        self.state = FollowerState.IDLE

    def init(self) -> None:
        self.channel.open()
        logging.info("registering with the leader at %s; fails now if no leader is bound", self.channel.peer_address)
        self.framer.send_message(HEADER_SIZE, True)
        self.state = FollowerState.LISTENING

    def run(self) -> int:
        echoes = 0
        while True:
            self.state = FollowerState.LISTENING
            topic = self.framer.receive_message()

            if not topic.run:
                self.state = FollowerState.TERMINATED
                break

            self.state = FollowerState.ECHOING
            self.framer.send_message(topic.payload_size, True)
            echoes += 1

        logging.info("follower terminated; echoes=%d", echoes)
        return echoes

    def shutdown(self) -> None:
        logging.info("shutdown")
        self.channel.close()
