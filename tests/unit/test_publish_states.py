"""Tests for the publish/discussion state registry."""

from app.domains.documents.publish_states import (
    ALL_PUBLISH_STATES, DEFAULT_QUERY_STATES, DiscussionState, PublishState,
    is_deleted, parse_publish_state, resolve_discussion_states,
    resolve_requested_states, valid_publish_states, valid_publish_states_for_query,
)


def test_valid_states_list_every_publish_state() -> None:
    assert set(valid_publish_states()) == {
        "published", "unpublished", "private", "deleted_by_admin", "deleted_by_user"
    }


def test_query_states_offer_all_first() -> None:
    states = valid_publish_states_for_query()
    assert states[0] == "all"
    assert set(states[1:]) == set(valid_publish_states())


def test_is_deleted_only_for_deleted_variants() -> None:
    assert is_deleted(PublishState.DELETED_BY_ADMIN)
    assert is_deleted(PublishState.DELETED_BY_USER)
    assert not is_deleted(PublishState.PUBLISHED)
    assert not is_deleted(PublishState.PRIVATE)


def test_parse_publish_state_rejects_unknown_values() -> None:
    assert parse_publish_state("private") is PublishState.PRIVATE
    assert parse_publish_state(PublishState.PUBLISHED) is PublishState.PUBLISHED
    assert parse_publish_state("archived") is None
    assert parse_publish_state(None) is None


def test_no_filter_means_every_non_deleted_state() -> None:
    assert resolve_requested_states(None) == DEFAULT_QUERY_STATES
    assert not any(is_deleted(state) for state in resolve_requested_states(None))


def test_all_expands_to_every_state_including_deleted() -> None:
    assert resolve_requested_states(["all"]) == ALL_PUBLISH_STATES
    assert resolve_requested_states(["published", "all"]) == ALL_PUBLISH_STATES


def test_unknown_requested_states_are_dropped() -> None:
    assert resolve_requested_states(["published", "bogus"]) == frozenset({PublishState.PUBLISHED})
    assert resolve_requested_states(["bogus"]) == frozenset()


def test_discussion_states_without_filter_are_empty() -> None:
    assert resolve_discussion_states(None) == frozenset()
    assert resolve_discussion_states([]) == frozenset()
    assert resolve_discussion_states(["open", "nope"]) == frozenset({DiscussionState.OPEN})
