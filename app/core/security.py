from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import uuid
from jose import JWTError, jwt

from app.core.config import settings


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Создание JWT токена доступа"""
    to_encode = data.copy()
    
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
    
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def create_user_token(user_uuid: uuid.UUID, expires_delta: Optional[timedelta] = None) -> str:
    """Токен доступа для конкретного пользователя"""
    return create_access_token({"sub": str(user_uuid)}, expires_delta)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Проверка JWT токена и извлечение данных"""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return payload
    except JWTError:
        return None


def user_uuid_from_token(token: str) -> Optional[uuid.UUID]:
    """Извлечение UUID пользователя из поля sub"""
    payload = verify_token(token)
    if not payload or not payload.get("sub"):
        return None
    try:
        return uuid.UUID(payload["sub"])
    except ValueError:
        return None
