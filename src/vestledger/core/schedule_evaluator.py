"""
Vested and claw-backable amount calculations.

Pure functions over schedules; the current time is always passed in. All
interpolation is integer arithmetic: ``passed * (end - start) // period``
with an unbounded intermediate, so the only rounding is the final
truncating division.
"""

from __future__ import annotations

from typing import Iterable, List

from .vesting_types import VestingInfo, VestingSchedule, checked_add, checked_sub


def compute_vested(now: int, schedule: VestingSchedule) -> int:
    """
    Amount of a single schedule vested at ``now``.

    Args:
        now: Current time in seconds
        schedule: Schedule to evaluate

    Returns:
        Cumulative vested amount, 0 before the schedule starts
    """
    start = schedule.start_point
    if now < start.time:
        return 0

    vested = start.amount
    end = schedule.end_point
    if end is not None:
        passed_time = min(now, end.time) - start.time
        time_period = end.time - start.time
        if passed_time != 0 and time_period != 0:
            released = passed_time * checked_sub(end.amount, start.amount) // time_period
            vested = checked_add(vested, released)
    return vested


def total_vested(now: int, schedules: Iterable[VestingSchedule]) -> int:
    """Sum of ``compute_vested`` over ``schedules``."""
    total = 0
    for schedule in schedules:
        total = checked_add(total, compute_vested(now, schedule))
    return total


def record_vested(now: int, info: VestingInfo) -> int:
    """
    Vested total of a record at ``now``.

    Schedules settled by a clawback count at their full total; the rest
    follow their curve.
    """
    settled = set(info.settled_schedules)
    total = 0
    for index, schedule in enumerate(info.schedules):
        if index in settled:
            amount = schedule.total_amount
        else:
            amount = compute_vested(now, schedule)
        total = checked_add(total, amount)
    return total


def compute_available(now: int, info: VestingInfo) -> int:
    """
    Vested amount not yet released.

    Raises:
        ArithmeticUnderflowError: If more was released than ever vested,
            which means the record is corrupted.
    """
    return checked_sub(record_vested(now, info), info.released_amount)


def clawback_schedules(now: int, info: VestingInfo) -> List[int]:
    """Indexes of the schedules a clawback at ``now`` covers: settled or started."""
    settled = set(info.settled_schedules)
    return [
        index
        for index, schedule in enumerate(info.schedules)
        if index in settled or now >= schedule.start_point.time
    ]


def compute_clawback_available(now: int, info: VestingInfo) -> int:
    """
    Remaining entitlement the controller can revoke at ``now``.

    Every started schedule counts at its full total (vested and unvested
    alike); schedules that have not started contribute nothing.
    """
    total = 0
    for index in clawback_schedules(now, info):
        total = checked_add(total, info.schedules[index].total_amount)
    return checked_sub(total, info.released_amount)
