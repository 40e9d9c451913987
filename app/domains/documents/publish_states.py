"""Реестр состояний публикации и обсуждения документа"""
import enum
from typing import FrozenSet, Iterable, List, Optional


class PublishState(str, enum.Enum):
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"
    PRIVATE = "private"
    DELETED_BY_ADMIN = "deleted_by_admin"
    DELETED_BY_USER = "deleted_by_user"


class DiscussionState(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"
    HIDDEN = "hidden"


# Значение фильтра, означающее "все состояния, включая удаленные"
ALL_STATES = "all"

ALL_PUBLISH_STATES: FrozenSet[PublishState] = frozenset(PublishState)
DELETED_STATES: FrozenSet[PublishState] = frozenset(
    {PublishState.DELETED_BY_ADMIN, PublishState.DELETED_BY_USER}
)
DEFAULT_QUERY_STATES: FrozenSet[PublishState] = frozenset(
    {PublishState.PUBLISHED, PublishState.UNPUBLISHED, PublishState.PRIVATE}
)
PUBLIC_STATES: FrozenSet[PublishState] = frozenset({PublishState.PUBLISHED})


def valid_publish_states() -> List[str]:
    return [state.value for state in PublishState]


def valid_publish_states_for_query() -> List[str]:
    return [ALL_STATES] + valid_publish_states()


def valid_discussion_states() -> List[str]:
    return [state.value for state in DiscussionState]


def is_deleted(state: PublishState) -> bool:
    return state in DELETED_STATES


def parse_publish_state(value) -> Optional[PublishState]:
    """Значение перечисления или None для неизвестной строки"""
    if isinstance(value, PublishState):
        return value
    try:
        return PublishState(value)
    except ValueError:
        return None


def parse_discussion_state(value) -> Optional[DiscussionState]:
    if isinstance(value, DiscussionState):
        return value
    try:
        return DiscussionState(value)
    except ValueError:
        return None


def resolve_requested_states(requested: Optional[Iterable[str]]) -> FrozenSet[PublishState]:
    """Набор запрошенных состояний публикации.

    Без фильтра берутся все неудаленные состояния; "all" раскрывается во все
    состояния, включая оба варианта удаления. Неизвестные значения
    отбрасываются.
    """
    if requested is None:
        return DEFAULT_QUERY_STATES

    requested = list(requested)
    if ALL_STATES in requested:
        return ALL_PUBLISH_STATES

    parsed = (parse_publish_state(value) for value in requested)
    return frozenset(state for state in parsed if state is not None)


def resolve_discussion_states(requested: Optional[Iterable[str]]) -> FrozenSet[DiscussionState]:
    """Набор запрошенных состояний обсуждения; пустой набор означает отсутствие фильтра"""
    if not requested:
        return frozenset()
    parsed = (parse_discussion_state(value) for value in requested)
    return frozenset(state for state in parsed if state is not None)
