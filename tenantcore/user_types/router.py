"""
User type router.

Reads are open to any authenticated user; writes need SUPER_ADMIN.
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore.auth.middleware import SUPER_ADMIN, get_current_user, require_roles
from tenantcore.base_microservice import ApiResponse, get_db_session
from tenantcore.database.crud import PaginationParams
from tenantcore.user_types.schemas import UserTypeCreate, UserTypeOut, UserTypeUpdate
from tenantcore.user_types.service import UserTypeService

router = APIRouter(prefix="/user-types", tags=["user-types"], dependencies=[Depends(get_current_user)])


def get_user_type_service(db: AsyncSession = Depends(get_db_session)) -> UserTypeService:
    return UserTypeService(db)


@router.get("")
async def list_user_types(
    params: Annotated[PaginationParams, Query()],
    service: UserTypeService = Depends(get_user_type_service),
):
    page = await service.find_all_from_params(params)
    return ApiResponse(page.serialize(UserTypeOut), "User types retrieved successfully")


@router.get("/active")
async def list_active_user_types(service: UserTypeService = Depends(get_user_type_service)):
    user_types = await service.find_all_active()
    return ApiResponse(
        [UserTypeOut.model_validate(t) for t in user_types],
        "Active user types retrieved successfully",
    )


@router.get("/code/{code}")
async def get_user_type_by_code(code: str, service: UserTypeService = Depends(get_user_type_service)):
    user_type = await service.find_by_code(code)
    if user_type is None:
        return ApiResponse(None, "User type not found")
    return ApiResponse(UserTypeOut.model_validate(user_type), "User type retrieved successfully")


@router.get("/{id}")
async def get_user_type(id: int, service: UserTypeService = Depends(get_user_type_service)):
    user_type = await service.find_one(id)
    if user_type is None:
        return ApiResponse(None, "User type not found")
    return ApiResponse(UserTypeOut.model_validate(user_type), "User type retrieved successfully")


@router.post("", status_code=201, dependencies=[Depends(require_roles(SUPER_ADMIN))])
async def create_user_type(dto: UserTypeCreate, service: UserTypeService = Depends(get_user_type_service)):
    user_type = await service.create_user_type(dto)
    return ApiResponse(UserTypeOut.model_validate(user_type), "User type created successfully", status_code=201)


@router.patch("/{id}/toggle-active", dependencies=[Depends(require_roles(SUPER_ADMIN))])
async def toggle_user_type(id: int, service: UserTypeService = Depends(get_user_type_service)):
    user_type = await service.toggle_active(id)
    state = "activated" if user_type.is_active else "deactivated"
    return ApiResponse(UserTypeOut.model_validate(user_type), f"User type {state} successfully")


@router.patch("/{id}", dependencies=[Depends(require_roles(SUPER_ADMIN))])
async def update_user_type(
    id: int,
    dto: UserTypeUpdate,
    service: UserTypeService = Depends(get_user_type_service),
):
    user_type = await service.update_user_type(id, dto)
    return ApiResponse(UserTypeOut.model_validate(user_type), "User type updated successfully")


@router.delete("/{id}", dependencies=[Depends(require_roles(SUPER_ADMIN))])
async def delete_user_type(id: int, service: UserTypeService = Depends(get_user_type_service)):
    await service.delete_user_type(id)
    return ApiResponse({"deleted": True}, "User type deleted successfully")
