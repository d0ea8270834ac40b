"""
Organization router.

Organizations are tenants: only SUPER_ADMIN manages them, while every
user can read their own and admins can edit it.
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore.auth.middleware import ADMIN, SUPER_ADMIN, get_current_user, require_roles
from tenantcore.auth.schemas import CurrentUser
from tenantcore.base_microservice import ApiResponse, get_db_session
from tenantcore.database.crud import PaginationParams
from tenantcore.organizations.schemas import OrganizationCreate, OrganizationOut, OrganizationUpdate
from tenantcore.organizations.service import OrganizationService

router = APIRouter(prefix="/organizations", tags=["organizations"])

super_admin_only = [Depends(require_roles(SUPER_ADMIN))]


def get_organization_service(db: AsyncSession = Depends(get_db_session)) -> OrganizationService:
    return OrganizationService(db)


@router.get("", dependencies=super_admin_only)
async def list_organizations(
    params: Annotated[PaginationParams, Query()],
    service: OrganizationService = Depends(get_organization_service),
):
    page = await service.find_all_from_params(params)
    return ApiResponse(page.serialize(OrganizationOut), "Organizations retrieved successfully")


@router.get("/current")
async def get_current_organization(
    current_user: CurrentUser = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
):
    organization = await service.find_one(current_user.organization_id)
    if organization is None:
        return ApiResponse(None, "Organization not found")
    return ApiResponse(OrganizationOut.model_validate(organization), "Organization retrieved successfully")


@router.patch("/current")
async def update_current_organization(
    dto: OrganizationUpdate,
    current_user: CurrentUser = Depends(require_roles(ADMIN, SUPER_ADMIN)),
    service: OrganizationService = Depends(get_organization_service),
):
    organization = await service.update_organization(current_user.organization_id, dto)
    return ApiResponse(OrganizationOut.model_validate(organization), "Organization updated successfully")


@router.get("/uuid/{uuid}", dependencies=super_admin_only)
async def get_organization_by_uuid(uuid: str, service: OrganizationService = Depends(get_organization_service)):
    organization = await service.find_by_uuid(uuid)
    if organization is None:
        return ApiResponse(None, "Organization not found")
    return ApiResponse(OrganizationOut.model_validate(organization), "Organization retrieved successfully")


@router.get("/{id}", dependencies=super_admin_only)
async def get_organization(id: int, service: OrganizationService = Depends(get_organization_service)):
    organization = await service.find_one(id)
    if organization is None:
        return ApiResponse(None, "Organization not found")
    return ApiResponse(OrganizationOut.model_validate(organization), "Organization retrieved successfully")


@router.post("", status_code=201, dependencies=super_admin_only)
async def create_organization(
    dto: OrganizationCreate,
    service: OrganizationService = Depends(get_organization_service),
):
    organization = await service.create_organization(dto)
    return ApiResponse(
        OrganizationOut.model_validate(organization),
        "Organization created successfully",
        status_code=201,
    )


@router.patch("/{id}", dependencies=super_admin_only)
async def update_organization(
    id: int,
    dto: OrganizationUpdate,
    service: OrganizationService = Depends(get_organization_service),
):
    organization = await service.update_organization(id, dto)
    return ApiResponse(OrganizationOut.model_validate(organization), "Organization updated successfully")


@router.delete("/{id}", dependencies=super_admin_only)
async def delete_organization(id: int, service: OrganizationService = Depends(get_organization_service)):
    await service.soft_delete(id)
    return ApiResponse({"deleted": True}, "Organization deleted successfully")


@router.post("/{id}/restore", dependencies=super_admin_only)
async def restore_organization(id: int, service: OrganizationService = Depends(get_organization_service)):
    organization = await service.restore(id)
    return ApiResponse(OrganizationOut.model_validate(organization), "Organization restored successfully")
