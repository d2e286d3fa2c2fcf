"""
Hold Timer Module for Pose Challenge.

Finite State Machine (FSM) turning the per-frame matched signal into a
held duration and a completion flag.

FSM for one pose instance:
    ┌─────────────────────────────────────────────────┐
    │                                                 │
    │   IDLE ──(matched)──► HOLDING ──(target)──► COMPLETED
    │     ▲                    │                      │
    │     └───(not matched)────┘                      │
    │     ▲                                           │
    │     └──────────────(explicit reset)─────────────┘
    │                                                 │
    └─────────────────────────────────────────────────┘

Phases:
    - IDLE: No hold in progress, hold_time is 0
    - HOLDING: Pose matched, hold_time grows on each tick
    - COMPLETED: Target reached; sticky until an explicit reset

The matched signal only moves between IDLE and HOLDING. Time only advances
on ticks, so hold accuracy does not depend on the camera frame rate.

All transitions are pure functions returning a new HoldTimerState.

Author: Pose Challenge Team
Version: 1.0.0
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

# Decimal places kept on hold_time to stop 0.1 s ticks from drifting
_TIME_PRECISION = 6


class HoldPhase(Enum):
    """Phases of the hold timer."""
    IDLE = "idle"
    HOLDING = "holding"
    COMPLETED = "completed"


@dataclass(frozen=True)
class HoldTimerState:
    """
    Current hold timer state.

    Attributes:
        phase: Current FSM phase.
        hold_time: Seconds held so far, 0 <= hold_time <= target_time.
        target_time: Seconds the pose must be held to complete.
    """
    target_time: float = 5.0
    phase: HoldPhase = HoldPhase.IDLE
    hold_time: float = 0.0

    @property
    def timer_running(self) -> bool:
        return self.phase == HoldPhase.HOLDING

    @property
    def completed(self) -> bool:
        return self.phase == HoldPhase.COMPLETED

    @property
    def progress(self) -> float:
        """Hold fraction for progress display, clamped to [0, 1]."""
        if self.target_time <= 0:
            return 1.0 if self.completed else 0.0
        return min(1.0, max(0.0, self.hold_time / self.target_time))


@dataclass(frozen=True)
class TimerTransition:
    """Outcome of a timer transition."""
    state: HoldTimerState
    just_completed: bool = False


def apply_match(state: HoldTimerState, matched: bool) -> TimerTransition:
    """
    Feed the matched signal of a processed frame.

    IDLE + matched starts a fresh hold; HOLDING + not matched drops the hold
    entirely (no partial credit). COMPLETED ignores the signal.
    """
    if state.phase == HoldPhase.COMPLETED:
        return TimerTransition(state)

    if matched and state.phase == HoldPhase.IDLE:
        return TimerTransition(replace(state, phase=HoldPhase.HOLDING, hold_time=0.0))

    if not matched and state.phase == HoldPhase.HOLDING:
        return TimerTransition(replace(state, phase=HoldPhase.IDLE, hold_time=0.0))

    return TimerTransition(state)


def apply_tick(state: HoldTimerState, dt: float) -> TimerTransition:
    """
    Advance the hold by dt seconds.

    Only HOLDING reacts. Reaching target_time moves to COMPLETED and reports
    just_completed exactly once.
    """
    if state.phase != HoldPhase.HOLDING:
        return TimerTransition(state)

    new_time = round(state.hold_time + dt, _TIME_PRECISION)

    if new_time >= state.target_time:
        return TimerTransition(
            replace(state, phase=HoldPhase.COMPLETED, hold_time=state.target_time),
            just_completed=True,
        )

    return TimerTransition(replace(state, hold_time=new_time))


def reset_timer(state: HoldTimerState, target_time: Optional[float] = None) -> HoldTimerState:
    """Unconditionally return to IDLE, optionally with a new target time."""
    return HoldTimerState(
        target_time=state.target_time if target_time is None else target_time,
        phase=HoldPhase.IDLE,
        hold_time=0.0,
    )
