"""Переходы жизненного цикла документа.

Каждый переход является чистой функцией, возвращающей результат с целевым
состоянием или ошибкой; сервис применяет результат к базе.
"""
from dataclasses import dataclass
from typing import Optional

from app.domains.documents.entities import Document
from app.domains.documents.exceptions import (
    DocumentError, DocumentPermissionError, InvalidTransitionError,
)
from app.domains.documents.publish_states import PublishState, is_deleted
from app.domains.identity.entities import User


@dataclass(frozen=True)
class TransitionResult:
    target: Optional[PublishState] = None
    error: Optional[DocumentError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> PublishState:
        if self.error is not None:
            raise self.error
        return self.target


def update_transition(current: PublishState, requested: Optional[PublishState]) -> TransitionResult:
    """Явная смена состояния через обновление; удаление идет только через delete"""
    if requested is None:
        return TransitionResult(target=current)
    if is_deleted(requested):
        return TransitionResult(
            error=InvalidTransitionError(f"Cannot set publish state to {requested.value} by update")
        )
    return TransitionResult(target=requested)


def crosses_into_published(old: PublishState, new: PublishState) -> bool:
    """Событие публикации срабатывает только на границе перехода"""
    return old != PublishState.PUBLISHED and new == PublishState.PUBLISHED


def delete_transition(document: Document, actor: User) -> TransitionResult:
    if document.is_deleted() or document.is_trashed():
        return TransitionResult(error=InvalidTransitionError("Document is already deleted"))
    if actor.is_admin:
        return TransitionResult(target=PublishState.DELETED_BY_ADMIN)
    return TransitionResult(target=PublishState.DELETED_BY_USER)


def restore_transition(document: Document, actor: User) -> TransitionResult:
    """Восстановление всегда приводит в unpublished.

    Удаленный администратором документ может восстановить только администратор.
    """
    if not document.is_deleted():
        return TransitionResult(error=InvalidTransitionError("Document is not deleted"))
    if document.publish_state == PublishState.DELETED_BY_ADMIN and not actor.is_admin:
        return TransitionResult(
            error=DocumentPermissionError("Only an administrator can restore this document")
        )
    return TransitionResult(target=PublishState.UNPUBLISHED)
