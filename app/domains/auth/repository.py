import uuid
from typing import Dict, List, Optional

from sqlalchemy import func, select

from app.core.database import get_db

from .models import User
from ...shared.utils.logger import get_logger


logger = get_logger(__name__)


async def get_user_by_id(user_id: str) -> Optional[User]:
    async with get_db() as db:
        return await db.get(User, user_id)


async def get_user_by_email(email: str) -> Optional[User]:
    async with get_db() as db:
        result = await db.execute(select(User).filter(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()


async def get_users_by_ids(user_ids: List[str]) -> Dict[str, User]:
    if not user_ids:
        return {}
    async with get_db() as db:
        result = await db.execute(select(User).filter(User.id.in_(set(user_ids))))
        return {u.id: u for u in result.scalars().all()}


async def create_user(user_data: dict) -> User:
    async with get_db() as db:
        new_user = User(id=str(uuid.uuid4()), **user_data)
        db.add(new_user)
        await db.flush()
        await db.refresh(new_user)
        return new_user


async def update_user(user_id: str, fields: dict) -> Optional[User]:
    async with get_db() as db:
        user = await db.get(User, user_id)
        if not user:
            return None
        for name, value in fields.items():
            setattr(user, name, value)
        await db.flush()
        await db.refresh(user)
        return user


async def list_users_except(excluded_ids: List[str]) -> List[User]:
    async with get_db() as db:
        query = select(User)
        if excluded_ids:
            query = query.filter(User.id.notin_(excluded_ids))
        result = await db.execute(query.order_by(User.created_at.desc()))
        return list(result.scalars().all())
