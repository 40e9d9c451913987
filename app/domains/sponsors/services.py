from typing import FrozenSet, Optional, Protocol
import uuid

from app.domains.identity.entities import User


class SponsorDirectory(Protocol):
    """Справочник спонсоров и их участников"""

    async def all_ids(self) -> FrozenSet[uuid.UUID]:
        ...

    async def ids_for_user(self, user_id: uuid.UUID) -> FrozenSet[uuid.UUID]:
        ...


class SponsorMembershipResolver:
    """Определяет спонсоров, в которых пользователь видит все документы"""

    def __init__(self, directory: SponsorDirectory):
        self.directory = directory

    async def member_sponsor_ids(self, user: Optional[User]) -> FrozenSet[uuid.UUID]:
        """Анониму пустой набор, администратору все спонсоры, остальным свои"""
        if user is None:
            return frozenset()

        if user.is_admin:
            # администратор считается участником каждого спонсора
            return await self.directory.all_ids()

        return await self.directory.ids_for_user(user.uuid)
