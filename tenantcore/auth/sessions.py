"""
Database-backed login sessions.

Every login creates one row; the row's hash travels inside the JWTs so a
session can be revoked server-side before its tokens expire.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore.base_microservice import utcnow
from tenantcore.database.models import Session


class SessionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        user_id: int,
        expires_at: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        device_type: Optional[str] = None,
    ) -> Session:
        session = Session(
            user_id=user_id,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
            device_type=device_type,
            is_active=True,
            last_activity_at=utcnow(),
        )
        self.db.add(session)
        await self.db.commit()
        await self.db.refresh(session)
        return session

    async def find_by_hash(self, hash: str, user_id: Optional[int] = None) -> Optional[Session]:
        query = select(Session).where(Session.hash == hash)
        if user_id is not None:
            query = query.where(Session.user_id == user_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def validate(self, hash: str, user_id: int) -> Optional[Session]:
        """Return the session only if it is active, unrevoked and unexpired."""
        session = await self.find_by_hash(hash, user_id)
        if session is None or not session.is_valid:
            return None
        return session

    async def update_activity(self, session: Session) -> Session:
        session.last_activity_at = utcnow()
        await self.db.commit()
        return session

    async def revoke(self, hash: str) -> None:
        await self.db.execute(
            update(Session)
            .where(Session.hash == hash)
            .values(is_active=False, revoked_at=utcnow())
        )
        await self.db.commit()

    async def revoke_all_for_user(self, user_id: int) -> None:
        await self.db.execute(
            update(Session)
            .where(Session.user_id == user_id, Session.is_active.is_(True))
            .values(is_active=False, revoked_at=utcnow())
        )
        await self.db.commit()

    async def get_active_for_user(self, user_id: int) -> List[Session]:
        result = await self.db.execute(
            select(Session)
            .where(
                Session.user_id == user_id,
                Session.is_active.is_(True),
                Session.revoked_at.is_(None),
                Session.expires_at > utcnow(),
            )
            .order_by(Session.last_activity_at.desc())
        )
        return list(result.scalars().all())

    async def revoke_by_hash_and_user(self, hash: str, user_id: int) -> bool:
        session = await self.find_by_hash(hash, user_id)
        if session is None:
            return False
        session.is_active = False
        session.revoked_at = utcnow()
        await self.db.commit()
        return True
