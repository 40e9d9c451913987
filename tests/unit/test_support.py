"""Tests for the three-state support toggle."""

import pytest

from app.domains.documents.support import (
    VoteAction, decode_vote, encode_vote, toggle_support,
)


def test_first_vote_creates() -> None:
    transition = toggle_support(None, True)

    assert transition.action is VoteAction.CREATE
    assert transition.previous is None
    assert transition.new is True


def test_same_vote_twice_clears() -> None:
    transition = toggle_support(False, False)

    assert transition.action is VoteAction.DELETE
    assert transition.previous is False
    assert transition.new is None


def test_opposite_vote_flips() -> None:
    transition = toggle_support(True, False)

    assert transition.action is VoteAction.UPDATE
    assert transition.new is False


@pytest.mark.parametrize("value", [True, False])
def test_vote_encoding(value: bool) -> None:
    assert decode_vote(encode_vote(value)) is value


def test_legacy_values_decode() -> None:
    assert decode_vote("true") is True
    assert decode_vote("") is False
    assert decode_vote(None) is False
