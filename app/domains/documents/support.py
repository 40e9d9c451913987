"""Голос поддержки: три состояния (за / против / нет мнения).

Отсутствие строки метаданных означает "нет мнения"; повтор того же голоса
снимает его.
"""
from dataclasses import dataclass
import enum
from typing import Optional

SUPPORT_META_KEY = "support"
INTRO_TEXT_META_KEY = "intro_text"


class VoteAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class VoteTransition:
    previous: Optional[bool]
    new: Optional[bool]
    action: VoteAction


@dataclass(frozen=True)
class SupportCounts:
    support: int = 0
    oppose: int = 0


def toggle_support(existing: Optional[bool], support: bool) -> VoteTransition:
    if existing is None:
        return VoteTransition(previous=None, new=support, action=VoteAction.CREATE)
    if existing == support:
        return VoteTransition(previous=existing, new=None, action=VoteAction.DELETE)
    return VoteTransition(previous=existing, new=support, action=VoteAction.UPDATE)


def encode_vote(value: bool) -> str:
    return "1" if value else "0"


def decode_vote(value: Optional[str]) -> bool:
    return value not in (None, "", "0", "false", "False")
