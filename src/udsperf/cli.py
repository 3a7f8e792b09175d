from __future__ import annotations

import argparse
import json
import logging

from .bench import run_benchmark, run_follower, run_leader
from .constants import (
    DEFAULT_FOLLOWER_ADDRESS,
    DEFAULT_LEADER_ADDRESS,
    DEFAULT_PAYLOAD_SIZES,
    DEFAULT_ROUND_TRIPS,
    MAX_MESSAGE_SIZE,
)
from .meter import LatencyResult
from .net import ChannelError


def positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def _print_results(results: list[LatencyResult], as_json: bool) -> None:
    rows = [{"payload_size": r.payload_size, "round_trips": r.round_trips, "latency_us": r.latency_us} for r in results]
    if as_json:
        print(json.dumps({"transport": "uds", "results": rows}, indent=2))
        return
    print("payload_size  latency_us")
    for r in results:
        print(f"{r.payload_size:>12}  {r.latency_us:>10.2f}")


def cmd_leader(args: argparse.Namespace) -> int:
    results = run_leader(
        args.own_address or DEFAULT_LEADER_ADDRESS,
        args.peer_address or DEFAULT_FOLLOWER_ADDRESS,
        args.payload_size or DEFAULT_PAYLOAD_SIZES,
        args.round_trips,
        max_message_size=args.max_message_size,
    )
    _print_results(results, args.json)
    return 0


def cmd_follower(args: argparse.Namespace) -> int:
    echoes = run_follower(
        args.own_address or DEFAULT_FOLLOWER_ADDRESS,
        args.peer_address or DEFAULT_LEADER_ADDRESS,
        max_message_size=args.max_message_size,
    )
    payload = {"role": "follower", "echoes": echoes}
    print(json.dumps(payload, indent=2) if args.json else payload)
    return 0


def cmd_bench(args: argparse.Namespace) -> int:
    results = run_benchmark(
        args.payload_size or DEFAULT_PAYLOAD_SIZES,
        args.round_trips,
        socket_dir=args.socket_dir,
        max_message_size=args.max_message_size,
    )
    _print_results(results, args.json)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="udsperf", description="Round-trip latency over Unix domain datagram sockets.")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x: argparse.ArgumentParser) -> None:
        x.add_argument("--max-message-size", type=positive_int, default=MAX_MESSAGE_SIZE)
        x.add_argument("--json", action="store_true")

    def add_addresses(x: argparse.ArgumentParser) -> None:
        x.add_argument("--own-address", default=None, help="path this process binds to receive on")
        x.add_argument("--peer-address", default=None, help="path of the other role")

    def add_measurement(x: argparse.ArgumentParser) -> None:
        x.add_argument("--round-trips", type=positive_int, default=DEFAULT_ROUND_TRIPS)
        x.add_argument(
            "--payload-size",
            type=positive_int,
            action="append",
            help="payload size in bytes; repeat for a sweep",
        )

    leader = sub.add_parser("leader", help="wait for a follower, measure, then stop it")
    add_common(leader)
    add_addresses(leader)
    add_measurement(leader)
    leader.set_defaults(func=cmd_leader)

    follower = sub.add_parser("follower", help="register with a running leader and echo until stopped")
    add_common(follower)
    add_addresses(follower)
    follower.set_defaults(func=cmd_follower)

    bench = sub.add_parser("bench", help="run both roles in this process")
    add_common(bench)
    add_measurement(bench)
    bench.add_argument("--socket-dir", default=None, help="directory for the temporary socket files")
    bench.set_defaults(func=cmd_bench)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")
    try:
        return int(args.func(args))
    except (ChannelError, ValueError) as e:
        logging.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
