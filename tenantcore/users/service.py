"""
User management service.

Users are tenant-scoped: every query helper here has an organization-scoped
counterpart inherited from BaseCrudService.
"""
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select

from tenantcore.auth.passwords import PasswordService
from tenantcore.database.crud import BaseCrudService, Page, PaginationParams
from tenantcore.database.models import Organization, User, UserType
from tenantcore.users.schemas import UserCreate, UserUpdate

RELATIONS = ["user_type", "organization"]


class UserService(BaseCrudService[User]):
    model = User
    entity_name = "User"
    search_fields = ("first_name", "last_name", "email")

    def __init__(self, db, password_service: Optional[PasswordService] = None):
        super().__init__(db)
        self.passwords = password_service or PasswordService()

    async def _load_relations(self, user: User) -> User:
        await self.db.refresh(user, attribute_names=RELATIONS)
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.lower(), User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def search_users(self, organization_id: int, params: PaginationParams) -> Page:
        """Search first name, last name and email within one organization."""
        return await self.find_all_by_organization(
            organization_id,
            page=params.page,
            limit=params.limit,
            sort_by=params.sort_by,
            sort_order=params.sort_order,
            search=params.search,
        )

    # --- validation ---

    async def validate_email_uniqueness(self, email: str, exclude_id: Optional[int] = None):
        existing = await self.find_by_email(email)
        if existing is not None and existing.id != exclude_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    async def validate_organization(self, organization_id: int):
        organization = await self.db.get(Organization, organization_id)
        if organization is None or organization.deleted_at is not None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")

    async def validate_user_type(self, user_type_id: int):
        user_type = await self.db.get(UserType, user_type_id)
        if user_type is None or not user_type.is_active:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User type not found or inactive")

    # --- writes ---

    async def create_user(self, dto: UserCreate) -> User:
        await self.validate_email_uniqueness(dto.email)
        await self.validate_organization(dto.organization_id)
        await self.validate_user_type(dto.user_type_id)

        values = dto.model_dump()
        values["email"] = dto.email.lower()
        values["password"] = self.passwords.hash(dto.password)
        user = await self.create(values)
        return await self._load_relations(user)

    async def update_user(self, id: int, dto: UserUpdate) -> User:
        user = await self.find_one_or_fail(id)
        values = dto.model_dump(exclude_unset=True)

        if values.get("email") and values["email"].lower() != user.email:
            await self.validate_email_uniqueness(values["email"], exclude_id=id)
        if values.get("user_type_id"):
            await self.validate_user_type(values["user_type_id"])

        user = await self._apply(user, values)
        return await self._load_relations(user)

    async def restore_user(self, id: int) -> User:
        user = await self.restore(id)
        return await self._load_relations(user)
