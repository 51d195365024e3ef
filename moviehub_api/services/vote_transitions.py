"""Ballot state machine over {absent, up, down}.

No I/O here: the coordinator feeds in the stored direction and applies
whatever ``plan_transition`` returns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from moviehub_api.models.votes import VoteDirection, VoteOutcome


@dataclass(frozen=True)
class Transition:
    outcome: VoteOutcome
    # ballot direction after the transition; None means no ballot
    direction: Optional[VoteDirection]
    up_delta: int = 0
    down_delta: int = 0


def _delta(direction: VoteDirection, step: int) -> tuple[int, int]:
    if direction is VoteDirection.up:
        return step, 0
    return 0, step


def plan_transition(
        current: Optional[VoteDirection],
        requested: VoteDirection) -> Transition:
    """Decide the ballot mutation and counter deltas for a vote request.

    Same direction twice cancels the vote, the opposite direction moves it.
    """
    requested = VoteDirection(requested)
    if current is None:
        up, down = _delta(requested, 1)
        return Transition(VoteOutcome.added, requested, up, down)

    current = VoteDirection(current)
    if current is requested:
        up, down = _delta(current, -1)
        return Transition(VoteOutcome.removed, None, up, down)

    old_up, old_down = _delta(current, -1)
    new_up, new_down = _delta(requested, 1)
    return Transition(
        VoteOutcome.changed,
        requested,
        old_up + new_up,
        old_down + new_down,
    )
