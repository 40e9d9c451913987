from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
import uuid

from app.db.models.user import User as UserModel
from app.db.models.sponsor import sponsor_members
from app.domains.identity.entities import User


class UserRepository:
    """Репозиторий для работы с пользователями"""
    
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def create(self, user: User) -> User:
        """Создание нового пользователя"""
        db_user = UserModel(
            uuid=user.uuid,
            email=user.email,
            username=user.username,
            is_active=user.is_active,
            is_admin=user.is_admin
        )
        
        self.session.add(db_user)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            raise ValueError("User with this email or username already exists")
        return await self._to_domain(db_user)
    
    async def get_by_uuid(self, user_uuid: uuid.UUID) -> Optional[User]:
        """Получение пользователя по UUID вместе с его спонсорами"""
        result = await self.session.execute(
            select(UserModel).where(UserModel.uuid == user_uuid)
        )
        db_user = result.scalar_one_or_none()
        return await self._to_domain(db_user) if db_user else None
    
    async def get_by_email(self, email: str) -> Optional[User]:
        """Получение пользователя по email"""
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == email)
        )
        db_user = result.scalar_one_or_none()
        return await self._to_domain(db_user) if db_user else None
    
    async def _to_domain(self, db_user: UserModel) -> User:
        """Преобразование модели БД в доменную сущность"""
        result = await self.session.execute(
            select(sponsor_members.c.sponsor_id).where(sponsor_members.c.user_id == db_user.uuid)
        )
        return User(
            uuid=db_user.uuid,
            email=db_user.email,
            username=db_user.username,
            is_active=db_user.is_active,
            is_admin=db_user.is_admin,
            sponsor_ids=result.scalars().all(),
            created_at=db_user.created_at,
            updated_at=db_user.updated_at
        )
