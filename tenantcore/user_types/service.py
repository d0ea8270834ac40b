from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import select

from tenantcore.database.crud import BaseCrudService
from tenantcore.database.models import UserType
from tenantcore.user_types.schemas import UserTypeCreate, UserTypeUpdate

# Seeded codes that can be neither deleted nor deactivated
SYSTEM_CODES = ("SUPER_ADMIN", "ADMIN", "USER")


class UserTypeService(BaseCrudService[UserType]):
    """User types have no soft delete; system codes are protected."""
    model = UserType
    entity_name = "User type"
    soft_delete_field = None
    search_fields = ("name", "code", "description")

    @staticmethod
    def is_system_code(code: str) -> bool:
        return code in SYSTEM_CODES

    async def find_all_active(self) -> List[UserType]:
        result = await self.db.execute(
            select(UserType).where(UserType.is_active.is_(True)).order_by(UserType.name.asc())
        )
        return list(result.scalars().all())

    async def find_by_code(self, code: str) -> Optional[UserType]:
        result = await self.db.execute(select(UserType).where(UserType.code == code.upper()))
        return result.scalar_one_or_none()

    async def create_user_type(self, dto: UserTypeCreate) -> UserType:
        if await self.find_by_code(dto.code):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f'User type with code "{dto.code}" already exists',
            )
        return await self.create(dto.model_dump())

    async def update_user_type(self, id: int, dto: UserTypeUpdate) -> UserType:
        return await self.update(id, dto.model_dump(exclude_unset=True))

    async def delete_user_type(self, id: int) -> bool:
        user_type = await self.find_one_or_fail(id)
        if self.is_system_code(user_type.code):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Cannot delete system user types")
        await self.db.delete(user_type)
        await self.db.commit()
        return True

    async def toggle_active(self, id: int) -> UserType:
        user_type = await self.find_one_or_fail(id)
        if self.is_system_code(user_type.code) and user_type.is_active:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Cannot deactivate system user types")
        return await self._apply(user_type, {"is_active": not user_type.is_active})
