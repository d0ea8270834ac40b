"""
Generic CRUD service.

Services for models with a ``deleted_at`` column get soft delete, restore
and soft-delete-aware lookups for free; models with an ``organization_id``
column also get the multi-tenant helpers.
"""
import math
import re
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from fastapi import HTTPException, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore.base_microservice import Base, utcnow

ModelT = TypeVar("ModelT", bound=Base)
SchemaT = TypeVar("SchemaT", bound=BaseModel)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class PaginationParams(BaseModel):
    """Query parameters accepted by every list endpoint."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int = Field(1, ge=1, description="Page number")
    limit: int = Field(10, ge=1, le=100, description="Items per page")
    sort_by: Optional[str] = Field(None, description="Field to sort by")
    sort_order: str = Field("DESC", pattern="^(ASC|DESC|asc|desc)$", description="Sort order")
    search: Optional[str] = Field(None, description="Search query")


class PageMeta(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class PaginatedResult(BaseModel, Generic[SchemaT]):
    data: List[SchemaT]
    meta: PageMeta


class Page:
    """Raw result of ``find_all``: model rows plus pagination metadata."""

    def __init__(self, rows: Sequence[Any], total: int, page: int, limit: int):
        self.rows = list(rows)
        self.total = total
        self.page = page
        self.limit = limit

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def meta(self) -> PageMeta:
        return PageMeta(
            total=self.total,
            page=self.page,
            limit=self.limit,
            total_pages=self.total_pages,
            has_next_page=self.page < self.total_pages,
            has_prev_page=self.page > 1,
        )

    def serialize(self, schema: Type[SchemaT]) -> PaginatedResult[SchemaT]:
        return PaginatedResult[schema](
            data=[schema.model_validate(row) for row in self.rows],
            meta=self.meta,
        )


class BaseCrudService(Generic[ModelT]):
    """
    Paginated find/create/update/delete over a single model.

    Subclasses set ``model`` and ``entity_name`` and may override the
    sorting, paging and search defaults.
    """
    model: Type[ModelT]
    entity_name: str = "Entity"

    default_sort_field: str = "created_at"
    default_sort_order: str = "DESC"
    default_limit: int = 10
    max_limit: int = 100
    soft_delete_field: Optional[str] = "deleted_at"
    search_fields: Sequence[str] = ()

    def __init__(self, db: AsyncSession):
        self.db = db

    # --- query helpers ---

    def _column(self, name: str):
        return getattr(self.model, name)

    def _live(self) -> List[Any]:
        if self.soft_delete_field is None:
            return []
        return [self._column(self.soft_delete_field).is_(None)]

    def _deleted(self) -> List[Any]:
        if self.soft_delete_field is None:
            return []
        return [self._column(self.soft_delete_field).is_not(None)]

    def _sort_column(self, sort_by: Optional[str]):
        columns = self.model.__table__.columns
        for candidate in (sort_by, _CAMEL_BOUNDARY.sub("_", sort_by or "").lower()):
            if candidate and candidate in columns:
                return columns[candidate]
        return columns[self.default_sort_field]

    def _search_condition(self, query: str):
        escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        return or_(*[
            self._column(field).ilike(pattern, escape="\\") for field in self.search_fields
        ])

    def clamp(self, page: Optional[int], limit: Optional[int]):
        safe_limit = min(max(1, limit or self.default_limit), self.max_limit)
        safe_page = max(1, page or 1)
        return safe_page, safe_limit

    # --- reads ---

    async def find_all(
        self,
        page: Optional[int] = 1,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        where: Sequence[Any] = (),
        search: Optional[str] = None,
        include_deleted: bool = False,
    ) -> Page:
        safe_page, safe_limit = self.clamp(page, limit)
        conditions = list(where)
        if not include_deleted:
            conditions.extend(self._live())
        if search and self.search_fields:
            conditions.append(self._search_condition(search))

        order = (sort_order or self.default_sort_order).upper()
        sort_column = self._sort_column(sort_by)
        order_by = desc(sort_column) if order == "DESC" else asc(sort_column)

        count_query = select(func.count()).select_from(self.model).where(*conditions)
        total = (await self.db.execute(count_query)).scalar_one()

        query = (
            select(self.model)
            .where(*conditions)
            .order_by(order_by, self.model.id)
            .limit(safe_limit)
            .offset((safe_page - 1) * safe_limit)
        )
        rows = (await self.db.execute(query)).scalars().all()
        return Page(rows, total, safe_page, safe_limit)

    async def find_all_from_params(self, params: PaginationParams, where: Sequence[Any] = ()) -> Page:
        return await self.find_all(
            page=params.page,
            limit=params.limit,
            sort_by=params.sort_by,
            sort_order=params.sort_order,
            where=where,
            search=params.search,
        )

    async def find_one(self, id: int, where: Sequence[Any] = ()) -> Optional[ModelT]:
        result = await self.db.execute(
            select(self.model).where(self.model.id == id, *self._live(), *where)
        )
        return result.scalar_one_or_none()

    async def find_one_or_fail(self, id: int, where: Sequence[Any] = ()) -> ModelT:
        entity = await self.find_one(id, where)
        if entity is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{self.entity_name} with ID {id} not found",
            )
        return entity

    async def find_by_uuid(self, uuid: str, where: Sequence[Any] = ()) -> Optional[ModelT]:
        result = await self.db.execute(
            select(self.model).where(self._column("uuid") == uuid, *self._live(), *where)
        )
        return result.scalar_one_or_none()

    async def find_by_uuid_or_fail(self, uuid: str, where: Sequence[Any] = ()) -> ModelT:
        entity = await self.find_by_uuid(uuid, where)
        if entity is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{self.entity_name} with UUID {uuid} not found",
            )
        return entity

    async def count(self, where: Sequence[Any] = ()) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(self.model).where(*where, *self._live())
        )
        return result.scalar_one()

    async def exists(self, id: int) -> bool:
        return await self.count([self.model.id == id]) > 0

    async def exists_by_uuid(self, uuid: str) -> bool:
        return await self.count([self._column("uuid") == uuid]) > 0

    # --- writes ---

    async def create(self, values: Dict[str, Any]) -> ModelT:
        entity = self.model(**values)
        self.db.add(entity)
        await self.db.commit()
        await self.db.refresh(entity)
        return entity

    async def _apply(self, entity: ModelT, values: Dict[str, Any]) -> ModelT:
        for key, value in values.items():
            setattr(entity, key, value)
        await self.db.commit()
        await self.db.refresh(entity)
        return entity

    async def update(self, id: int, values: Dict[str, Any]) -> ModelT:
        entity = await self.find_one_or_fail(id)
        return await self._apply(entity, values)

    async def update_by_uuid(self, uuid: str, values: Dict[str, Any]) -> ModelT:
        entity = await self.find_by_uuid_or_fail(uuid)
        return await self._apply(entity, values)

    async def delete(self, id: int) -> bool:
        entity = await self.find_one_or_fail(id)
        await self.db.delete(entity)
        await self.db.commit()
        return True

    async def soft_delete(self, id: int) -> bool:
        entity = await self.find_one_or_fail(id)
        await self._apply(entity, {self.soft_delete_field: utcnow()})
        return True

    async def restore(self, id: int) -> ModelT:
        result = await self.db.execute(
            select(self.model).where(self.model.id == id, *self._deleted())
        )
        entity = result.scalar_one_or_none()
        if entity is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{self.entity_name} with ID {id} not found or not deleted",
            )
        return await self._apply(entity, {self.soft_delete_field: None})

    # --- multi-tenant helpers ---

    def _in_organization(self, organization_id: int):
        return self._column("organization_id") == organization_id

    async def find_all_by_organization(self, organization_id: int, **options) -> Page:
        where = list(options.pop("where", ())) + [self._in_organization(organization_id)]
        return await self.find_all(where=where, **options)

    async def find_one_by_organization(self, id: int, organization_id: int) -> Optional[ModelT]:
        return await self.find_one(id, [self._in_organization(organization_id)])

    async def find_one_by_organization_or_fail(self, id: int, organization_id: int) -> ModelT:
        entity = await self.find_one_by_organization(id, organization_id)
        if entity is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{self.entity_name} with ID {id} not found in this organization",
            )
        return entity
