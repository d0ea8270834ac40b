from tenantcore.database.crud import BaseCrudService
from tenantcore.database.models import Organization
from tenantcore.organizations.schemas import OrganizationCreate, OrganizationUpdate


class OrganizationService(BaseCrudService[Organization]):
    model = Organization
    entity_name = "Organization"
    search_fields = ("name", "email", "description")

    async def create_organization(self, dto: OrganizationCreate) -> Organization:
        return await self.create(dto.model_dump())

    async def update_organization(self, id: int, dto: OrganizationUpdate) -> Organization:
        return await self.update(id, dto.model_dump(exclude_unset=True))
