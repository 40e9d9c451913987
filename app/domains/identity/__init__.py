from app.domains.identity.entities import User

__all__ = [
    "User",
]
