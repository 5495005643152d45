# tuition_center/services/base_service.py
"""Base service with common CRUD operations.

Writes only flush; committing is left to the caller's ``unit_of_work`` so
several writes can share one transaction.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Type, Any, Dict, Optional, List, TypeVar, Generic

from ..core.database import unit_of_work

# Define generic type
T = TypeVar('T')

class BaseService(Generic[T]):
    def __init__(self, model: Type[T], db: AsyncSession):
        self.model = model
        self.db = db

    def transaction(self):
        return unit_of_work(self.db)

    async def get(self, id: Any) -> Optional[T]:
        stmt = select(self.model).where(self.model.id == id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active(self, id: Any) -> Optional[T]:
        """Like ``get`` but ignores soft-deleted rows"""
        stmt = select(self.model).where(self.model.id == id)
        if hasattr(self.model, 'active'):
            stmt = stmt.where(self.model.active == True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_multi(self, include_inactive: bool = False, order_by: Optional[str] = None, **filters) -> List[T]:
        stmt = select(self.model)

        # Add soft delete filter if model has an active flag
        if hasattr(self.model, 'active') and not include_inactive:
            stmt = stmt.where(self.model.active == True)

        # Add additional filters
        for key, value in filters.items():
            if hasattr(self.model, key) and value is not None:
                stmt = stmt.where(getattr(self.model, key) == value)

        if order_by and hasattr(self.model, order_by):
            stmt = stmt.order_by(getattr(self.model, order_by))

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, obj_in: Dict) -> T:
        obj = self.model(**obj_in)
        self.db.add(obj)
        await self.db.flush()
        return obj

    async def update(self, obj: T, obj_in: Dict) -> T:
        for key, value in obj_in.items():
            setattr(obj, key, value)
        await self.db.flush()
        return obj

    async def soft_delete(self, obj: T) -> T:
        obj.active = False
        await self.db.flush()
        return obj

    async def hard_delete(self, obj: T) -> None:
        """Permanently delete record from database"""
        await self.db.delete(obj)
        await self.db.flush()
