from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from .constants import TRANSMISSIONS_PER_ROUND_TRIP


@dataclass(frozen=True, slots=True)
class LatencyResult:
    payload_size: int
    round_trips: int
    latency_us: float


def measure_latency(
    run_loop: Callable[[int], None],
    round_trips: int,
    clock: Callable[[], int] = time.perf_counter_ns,
) -> float:
    """Time ``run_loop(round_trips)`` and return the mean one-way latency in microseconds.

    Each round trip is one receive and one send, so the elapsed time is split
    over ``2 * round_trips`` transmissions.
    """
    if round_trips < 1:
        raise ValueError(f"round_trips must be positive, got {round_trips}")

    start = clock()
    run_loop(round_trips)
    finish = clock()

    latency_ns = (finish - start) // (round_trips * TRANSMISSIONS_PER_ROUND_TRIP)
    return latency_ns / 1000
