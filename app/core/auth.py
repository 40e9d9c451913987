from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.security import user_uuid_from_token
from app.db.repositories.user_repository import UserRepository
from app.domains.identity.entities import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


async def _load_user(token: str, db: AsyncSession) -> Optional[User]:
    user_uuid = user_uuid_from_token(token)
    if user_uuid is None:
        return None

    user = await UserRepository(db).get_by_uuid(user_uuid)
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Текущий пользователь; 401 если токен отсутствует или недействителен"""
    user = await _load_user(token, db)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Текущий пользователь или None для анонимного запроса"""
    if not token:
        return None
    return await _load_user(token, db)
