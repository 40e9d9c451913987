"""Фильтр видимости документов.

Для каждого спонсора вычисляется набор состояний публикации, которые
пользователь может видеть: участник спонсора (или администратор) видит
документы в любом состоянии, остальные только опубликованные. Результат
сворачивается в неизменяемый предикат, который применяет репозиторий.
"""
from dataclasses import dataclass
from typing import AbstractSet, FrozenSet, Iterable, Optional, Tuple
import uuid

from app.domains.documents.publish_states import (
    ALL_PUBLISH_STATES, DELETED_STATES, PUBLIC_STATES, DiscussionState, PublishState,
)


@dataclass(frozen=True)
class SponsorScope:
    sponsor_id: uuid.UUID
    states: FrozenSet[PublishState]


@dataclass(frozen=True)
class VisibilityPredicate:
    """Дизъюнкция по спонсорам: документ виден, если принадлежит спонсору
    из scopes и его состояние входит в разрешенные для этого спонсора"""

    scopes: Tuple[SponsorScope, ...]

    @property
    def include_trashed(self) -> bool:
        """Запрошены удаленные состояния, значит нужны мягко удаленные строки"""
        return any(scope.states & DELETED_STATES for scope in self.scopes)

    @property
    def matches_nothing(self) -> bool:
        return not self.scopes

    def allowed_states(self, sponsor_id: uuid.UUID) -> FrozenSet[PublishState]:
        for scope in self.scopes:
            if scope.sponsor_id == sponsor_id:
                return scope.states
        return frozenset()

    def allows(self, sponsor_ids: Iterable[uuid.UUID], publish_state: PublishState) -> bool:
        """Проверка одного документа без обращения к базе"""
        return any(publish_state in self.allowed_states(sponsor_id) for sponsor_id in sponsor_ids)


@dataclass(frozen=True)
class DocumentCriteria:
    """Полная спецификация выборки для репозитория документов"""

    visibility: VisibilityPredicate
    discussion_states: FrozenSet[DiscussionState] = frozenset()
    search: Optional[str] = None
    document_ids: Optional[FrozenSet[uuid.UUID]] = None

    def restricted_to(self, document_ids: Iterable[uuid.UUID]) -> "DocumentCriteria":
        return DocumentCriteria(
            visibility=self.visibility,
            discussion_states=self.discussion_states,
            search=self.search,
            document_ids=frozenset(document_ids),
        )


def allowed_states_for(
    sponsor_id: uuid.UUID,
    requested_states: AbstractSet[PublishState],
    member_sponsor_ids: AbstractSet[uuid.UUID],
) -> FrozenSet[PublishState]:
    possible = ALL_PUBLISH_STATES if sponsor_id in member_sponsor_ids else PUBLIC_STATES
    return frozenset(possible & requested_states)


def build_visibility_predicate(
    sponsor_ids: Iterable[uuid.UUID],
    requested_states: AbstractSet[PublishState],
    member_sponsor_ids: AbstractSet[uuid.UUID],
) -> VisibilityPredicate:
    """Сборка предиката видимости.

    Args:
        sponsor_ids: спонсоры, по которым идет выборка (пустой набор ничего не находит)
        requested_states: запрошенные состояния публикации
        member_sponsor_ids: спонсоры, в которых пользователь имеет полный доступ
    """
    scopes = []
    seen = set()
    for sponsor_id in sponsor_ids:
        if sponsor_id in seen:
            continue
        seen.add(sponsor_id)

        states = allowed_states_for(sponsor_id, requested_states, member_sponsor_ids)
        # спонсор без разрешенных состояний ничего не добавляет
        if states:
            scopes.append(SponsorScope(sponsor_id=sponsor_id, states=states))

    return VisibilityPredicate(scopes=tuple(scopes))
