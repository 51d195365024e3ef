import pytest

from moviehub_api.models.votes import VoteDirection, VoteOutcome
from moviehub_api.services.vote_transitions import Transition, plan_transition

UP, DOWN = VoteDirection.up, VoteDirection.down


@pytest.mark.parametrize("current, requested, expected", [
    (None, UP, Transition(VoteOutcome.added, UP, 1, 0)),
    (None, DOWN, Transition(VoteOutcome.added, DOWN, 0, 1)),
    (UP, UP, Transition(VoteOutcome.removed, None, -1, 0)),
    (DOWN, DOWN, Transition(VoteOutcome.removed, None, 0, -1)),
    (UP, DOWN, Transition(VoteOutcome.changed, DOWN, -1, 1)),
    (DOWN, UP, Transition(VoteOutcome.changed, UP, 1, -1)),
])
def test_transition_table(current, requested, expected):
    assert plan_transition(current, requested) == expected


def test_stored_string_directions_are_accepted():
    # ballots come back from Mongo as plain strings
    t = plan_transition("up", "down")
    assert t.outcome is VoteOutcome.changed
    assert t.direction is DOWN


def test_same_direction_twice_nets_to_zero():
    first = plan_transition(None, UP)
    second = plan_transition(first.direction, UP)
    assert second.direction is None
    assert first.up_delta + second.up_delta == 0
    assert first.down_delta + second.down_delta == 0


def test_unknown_direction_rejected():
    with pytest.raises(ValueError):
        plan_transition(None, "sideways")
