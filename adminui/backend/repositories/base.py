"""
Primary-key CRUD shared by every repository.

Repositories flush but never commit; the request (get_db_session) or
ActivityService.track owns the transaction.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adminui.backend.core.exceptions import NotFoundError
from adminui.backend.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Subclasses name their model::

        class SshKeyRepository(BaseRepository[SshKey]):
            model = SshKey

    The primary key column is looked up from the mapper, so models keyed
    by ``username`` or a credential id work the same as UUID-keyed ones.
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @property
    def _pk(self) -> Any:
        return self.model.__mapper__.primary_key[0]

    async def get_by_id_or_none(self, id: Any) -> ModelType | None:
        return (await self.session.execute(select(self.model).where(self._pk == id))).scalar_one_or_none()

    async def get_by_id(self, id: Any) -> ModelType:
        """Raises NotFoundError naming the model, e.g. "SshKey not found"."""
        found = await self.get_by_id_or_none(id)
        if found is None:
            raise NotFoundError(f"{self.model.__name__} not found")
        return found

    async def _flushed(self, instance: ModelType) -> ModelType:
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def create(self, **values: Any) -> ModelType:
        instance = self.model(**values)
        self.session.add(instance)
        return await self._flushed(instance)

    async def update(self, id: Any, **values: Any) -> ModelType:
        """Set the given attributes; names the model does not have are ignored."""
        instance = await self.get_by_id(id)
        for name, value in values.items():
            if hasattr(instance, name):
                setattr(instance, name, value)
        return await self._flushed(instance)

    async def delete(self, id: Any) -> None:
        await self.session.delete(await self.get_by_id(id))
        await self.session.flush()
