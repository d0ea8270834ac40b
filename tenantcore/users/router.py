"""
User router.

SUPER_ADMIN sees every organization; everyone else is confined to their
own. Lookups that miss, or that hit another tenant's user, answer with a
success envelope carrying ``data: null``.
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore.auth.middleware import ADMIN, SUPER_ADMIN, organization_guard, require_roles
from tenantcore.auth.schemas import CurrentUser
from tenantcore.base_microservice import ApiResponse, BaseMicroservice, get_db_session
from tenantcore.database.crud import PaginationParams
from tenantcore.users.schemas import UserCreate, UserOut, UserUpdate
from tenantcore.users.service import UserService

router = APIRouter(prefix="/users", tags=["users"])

base_service = BaseMicroservice(name="users")

admins = require_roles(ADMIN, SUPER_ADMIN)


def get_user_service(db: AsyncSession = Depends(get_db_session)) -> UserService:
    return UserService(db)


def _user_not_found():
    return ApiResponse(None, "User not found")


@router.get("")
async def list_users(
    params: Annotated[PaginationParams, Query()],
    current_user: CurrentUser = Depends(admins),
    service: UserService = Depends(get_user_service),
):
    if params.search:
        page = await service.search_users(current_user.organization_id, params)
    elif current_user.user_type_code == SUPER_ADMIN:
        page = await service.find_all_from_params(params)
    else:
        page = await service.find_all_by_organization(
            current_user.organization_id,
            page=params.page,
            limit=params.limit,
            sort_by=params.sort_by,
            sort_order=params.sort_order,
        )
    return ApiResponse(page.serialize(UserOut), "Users retrieved successfully")


@router.get("/uuid/{uuid}")
async def get_user_by_uuid(
    uuid: str,
    current_user: CurrentUser = Depends(organization_guard),
    service: UserService = Depends(get_user_service),
):
    user = await service.find_by_uuid(uuid)
    if user is None:
        return _user_not_found()
    if current_user.user_type_code != SUPER_ADMIN and user.organization_id != current_user.organization_id:
        return _user_not_found()
    return ApiResponse(UserOut.model_validate(user), "User retrieved successfully")


@router.get("/{id}")
async def get_user(
    id: int,
    current_user: CurrentUser = Depends(organization_guard),
    service: UserService = Depends(get_user_service),
):
    if current_user.user_type_code == SUPER_ADMIN:
        user = await service.find_one(id)
    else:
        user = await service.find_one_by_organization(id, current_user.organization_id)
    if user is None:
        return _user_not_found()
    return ApiResponse(UserOut.model_validate(user), "User retrieved successfully")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    dto: UserCreate,
    current_user: CurrentUser = Depends(admins),
    service: UserService = Depends(get_user_service),
):
    # Admins can only create users in their own organization
    if current_user.user_type_code != SUPER_ADMIN:
        dto.organization_id = current_user.organization_id

    user = await service.create_user(dto)
    base_service.log_event("user.created", {"user_id": user.id, "by": current_user.id})
    return ApiResponse(UserOut.model_validate(user), "User created successfully", status_code=status.HTTP_201_CREATED)


@router.patch("/{id}", dependencies=[Depends(organization_guard)])
async def update_user(
    id: int,
    dto: UserUpdate,
    current_user: CurrentUser = Depends(admins),
    service: UserService = Depends(get_user_service),
):
    if current_user.user_type_code != SUPER_ADMIN:
        if await service.find_one_by_organization(id, current_user.organization_id) is None:
            return _user_not_found()

    user = await service.update_user(id, dto)
    return ApiResponse(UserOut.model_validate(user), "User updated successfully")


@router.delete("/{id}", dependencies=[Depends(organization_guard)])
async def delete_user(
    id: int,
    current_user: CurrentUser = Depends(admins),
    service: UserService = Depends(get_user_service),
):
    if current_user.user_type_code != SUPER_ADMIN:
        if await service.find_one_by_organization(id, current_user.organization_id) is None:
            return _user_not_found()

    if current_user.id == id:
        return ApiResponse(None, "Cannot delete your own account")

    await service.soft_delete(id)
    base_service.log_event("user.deleted", {"user_id": id, "by": current_user.id})
    return ApiResponse({"deleted": True}, "User deleted successfully")


@router.post("/{id}/restore")
async def restore_user(
    id: int,
    current_user: CurrentUser = Depends(require_roles(SUPER_ADMIN)),
    service: UserService = Depends(get_user_service),
):
    user = await service.restore_user(id)
    return ApiResponse(UserOut.model_validate(user), "User restored successfully")
