from __future__ import annotations

import enum
import errno
import logging
import os
import socket

from .constants import MAX_MESSAGE_SIZE
from .packet import HEADER_SIZE


class ChannelErrorKind(enum.Enum):
    SOCKET = "socket"
    BIND = "bind"
    SEND = "send"
    RECEIVE = "receive"
    CLOSE = "close"


class ChannelError(Exception):
    """An I/O failure on a channel. A benchmark run cannot continue past one."""

    def __init__(self, kind: ChannelErrorKind, address: str, reason: str):
        super().__init__(f"{kind.value} error on {address}: {reason}")
        self.kind = kind
        self.address = address


def _remove_stale_address(path: str) -> None:
    if not os.path.lexists(path):
        return
    probe = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
    try:
        probe.connect(path)
    except ConnectionRefusedError:
        # nobody is bound to it any more
        os.unlink(path)
        return
    finally:
        probe.close()
    raise OSError(errno.EADDRINUSE, "address is bound by a live socket", path)


class UdsChannel:
    """A send socket and a bound receive socket on local datagram addresses."""

    def __init__(
        self,
        own_address: str,
        peer_address: str,
        max_message_size: int = MAX_MESSAGE_SIZE,
    ):
        if max_message_size < HEADER_SIZE:
            raise ValueError(f"max_message_size must hold a header: {max_message_size} < {HEADER_SIZE}")
        self._own_address = own_address
        self._peer_address = peer_address
        self.max_message_size = max_message_size
        self._send_sock: socket.socket | None = None
        self._recv_sock: socket.socket | None = None

    @property
    def own_address(self) -> str:
        return self._own_address

    @property
    def peer_address(self) -> str:
        return self._peer_address

    @property
    def is_open(self) -> bool:
        return self._send_sock is not None and self._recv_sock is not None

    def open(self) -> None:
        logging.info("starting client side; peer=%s", self._peer_address)
        try:
            send_sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
        except OSError as e:
            raise ChannelError(ChannelErrorKind.SOCKET, self._peer_address, str(e)) from e

        logging.info("starting server side; bind=%s", self._own_address)
        try:
            recv_sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
        except OSError as e:
            send_sock.close()
            raise ChannelError(ChannelErrorKind.SOCKET, self._own_address, str(e)) from e

        try:
            _remove_stale_address(self._own_address)
            recv_sock.bind(self._own_address)
        except OSError as e:
            send_sock.close()
            recv_sock.close()
            raise ChannelError(ChannelErrorKind.BIND, self._own_address, str(e)) from e

        self._send_sock = send_sock
        self._recv_sock = recv_sock
        logging.debug("channel open; own=%s peer=%s", self._own_address, self._peer_address)

    def close(self) -> None:
        send_sock, self._send_sock = self._send_sock, None
        recv_sock, self._recv_sock = self._recv_sock, None

        try:
            if send_sock is not None:
                try:
                    send_sock.close()
                except OSError as e:
                    raise ChannelError(ChannelErrorKind.CLOSE, self._peer_address, str(e)) from e
        finally:
            if recv_sock is not None:
                self._close_receive_side(recv_sock)

    def _close_receive_side(self, recv_sock: socket.socket) -> None:
        try:
            recv_sock.close()
        except OSError as e:
            raise ChannelError(ChannelErrorKind.CLOSE, self._own_address, str(e)) from e
        finally:
            try:
                os.unlink(self._own_address)
            except FileNotFoundError:
                pass
            except OSError as e:
                raise ChannelError(ChannelErrorKind.CLOSE, self._own_address, str(e)) from e

    def send_raw(self, data: bytes) -> None:
        if self._send_sock is None:
            raise ChannelError(ChannelErrorKind.SEND, self._peer_address, "channel is not open")
        try:
            sent = self._send_sock.sendto(data, self._peer_address)
        except OSError as e:
            raise ChannelError(ChannelErrorKind.SEND, self._peer_address, str(e)) from e
        if sent != len(data):
            raise ChannelError(
                ChannelErrorKind.SEND,
                self._peer_address,
                f"short send: {sent} of {len(data)} bytes",
            )

    def receive_raw(self) -> bytes:
        if self._recv_sock is None:
            raise ChannelError(ChannelErrorKind.RECEIVE, self._own_address, "channel is not open")
        try:
            data, _ = self._recv_sock.recvfrom(self.max_message_size)
        except OSError as e:
            raise ChannelError(ChannelErrorKind.RECEIVE, self._own_address, str(e)) from e
        return data
