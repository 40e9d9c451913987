from typing import FrozenSet, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import uuid

from app.db.models.sponsor import Sponsor as SponsorModel, sponsor_members
from app.domains.sponsors.entities import Sponsor, STATUS_ACTIVE


class SponsorRepository:
    """Репозиторий спонсоров; реализует справочник SponsorDirectory"""
    
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def create(self, sponsor: Sponsor) -> Sponsor:
        """Создание спонсора"""
        db_sponsor = SponsorModel(
            uuid=sponsor.uuid,
            name=sponsor.name,
            display_name=sponsor.display_name,
            status=sponsor.status
        )
        self.session.add(db_sponsor)
        await self.session.flush()
        return self._to_domain(db_sponsor)
    
    async def get_by_uuid(self, sponsor_uuid: uuid.UUID) -> Optional[Sponsor]:
        result = await self.session.execute(
            select(SponsorModel).where(SponsorModel.uuid == sponsor_uuid)
        )
        db_sponsor = result.scalar_one_or_none()
        return self._to_domain(db_sponsor) if db_sponsor else None
    
    async def add_member(self, sponsor_uuid: uuid.UUID, user_uuid: uuid.UUID) -> None:
        """Добавление пользователя в участники спонсора"""
        await self.session.execute(
            sponsor_members.insert().values(sponsor_id=sponsor_uuid, user_id=user_uuid)
        )
    
    async def all_ids(self) -> FrozenSet[uuid.UUID]:
        """Идентификаторы всех спонсоров"""
        result = await self.session.execute(select(SponsorModel.uuid))
        return frozenset(result.scalars().all())
    
    async def ids_for_user(self, user_id: uuid.UUID) -> FrozenSet[uuid.UUID]:
        """Спонсоры, в которых состоит пользователь"""
        result = await self.session.execute(
            select(sponsor_members.c.sponsor_id).where(sponsor_members.c.user_id == user_id)
        )
        return frozenset(result.scalars().all())
    
    async def list_active(self) -> List[Sponsor]:
        result = await self.session.execute(
            select(SponsorModel)
            .where(SponsorModel.status == STATUS_ACTIVE)
            .order_by(SponsorModel.display_name)
        )
        return [self._to_domain(sponsor) for sponsor in result.scalars().all()]
    
    def _to_domain(self, db_sponsor: SponsorModel) -> Sponsor:
        return Sponsor(
            uuid=db_sponsor.uuid,
            name=db_sponsor.name,
            display_name=db_sponsor.display_name,
            status=db_sponsor.status,
            created_at=db_sponsor.created_at
        )
