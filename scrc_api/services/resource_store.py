"""
Uniform persistence for the flat record collections (members, news, gallery, notices).
"""
import asyncio
import logging
import math
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from scrc_api.exceptions import BackendFailure, RecordNotFound
from scrc_api.models import GalleryItem, Member, MemoryImage, News, Notice

logger = logging.getLogger(__name__)


class ResourceStore:
    """
    CRUD over one model.

    Args:
        model: SQLAlchemy model class
        filterable: Column names accepted as equality filters by list()
        order_by: Column names for ordering; defaults to rank asc, created_at desc
    """

    def __init__(self, model, filterable: Iterable[str] = (), order_by: Optional[Sequence] = None):
        self.model = model
        self.filterable = frozenset(filterable)
        if order_by is None:
            order_by = (model.rank.asc(), model.created_at.desc(), model.id.desc())
        self.order_by = tuple(order_by)

    @property
    def name(self) -> str:
        return self.model.__tablename__

    async def list(self, db: AsyncSession, **filters: Any) -> List:
        """
        List records matching the allow-listed equality filters.
        Filters set to None are ignored, unknown filter names raise ValueError.
        """
        query = select(self.model)
        for field, value in filters.items():
            if field not in self.filterable:
                raise ValueError(f"Cannot filter {self.name} by {field}")
            if value is not None:
                query = query.where(getattr(self.model, field) == value)

        try:
            result = await db.execute(query.order_by(*self.order_by))
        except SQLAlchemyError as e:
            raise BackendFailure(f"Failed to list {self.name}") from e
        return list(result.scalars().all())

    async def get(self, db: AsyncSession, record_id: int):
        try:
            record = await db.get(self.model, record_id)
        except SQLAlchemyError as e:
            raise BackendFailure(f"Failed to load {self.name} {record_id}") from e
        if record is None:
            raise RecordNotFound(f"{self.name} {record_id} does not exist")
        return record

    async def create(self, db: AsyncSession, values: dict):
        record = self.model(**values)
        db.add(record)
        try:
            await db.commit()
            await db.refresh(record)
        except SQLAlchemyError as e:
            await db.rollback()
            raise BackendFailure(f"Failed to create {self.name}") from e

        logger.info(f"Created {self.name} record: ID {record.id}")
        return record

    async def update(self, db: AsyncSession, record_id: int, values: dict):
        record = await self.get(db, record_id)
        values.pop("id", None)
        for field, value in values.items():
            setattr(record, field, value)
        try:
            await db.commit()
            await db.refresh(record)
        except SQLAlchemyError as e:
            await db.rollback()
            raise BackendFailure(f"Failed to update {self.name} {record_id}") from e

        logger.info(f"Updated {self.name} record: ID {record_id}")
        return record

    async def delete(self, db: AsyncSession, record_id: int):
        """Delete a record and return it as it was before deletion."""
        record = await self.get(db, record_id)
        try:
            await db.delete(record)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise BackendFailure(f"Failed to delete {self.name} {record_id}") from e

        logger.info(f"Deleted {self.name} record: ID {record_id}")
        return record


members = ResourceStore(
    Member,
    filterable=("type",),
    order_by=(Member.rank.asc(), Member.name.asc(), Member.id.asc()),
)
news = ResourceStore(News, filterable=("active", "popup"))
gallery = ResourceStore(GalleryItem, filterable=("type",))
notices = ResourceStore(Notice, filterable=("active", "popup"))

# External resource name -> model whose rank the reorder endpoint may update
REORDERABLE = {
    "members": Member,
    "news": News,
    "gallery": GalleryItem,
    "notices": Notice,
    "memories": MemoryImage,
}


def _reorder_id(value: Any) -> Optional[int]:
    """Positive integer ids, given as a JSON integer or a string of ASCII digits."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value.isascii() and value.isdigit():
        value = int(value)
    if isinstance(value, int) and value > 0:
        return value
    return None


def _reorder_rank(value: Any) -> Optional[int]:
    """Integer ranks; floats only when finite and integral (1.0 but not 1.7, NaN or Infinity)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def _valid_reorder_entries(updates: Iterable[Any]) -> List[Tuple[int, int]]:
    """Keep entries with a usable id and an integral rank; drop everything else."""
    valid = []
    for entry in updates:
        if not isinstance(entry, dict):
            continue
        record_id = _reorder_id(entry.get("id", entry.get("_id")))
        rank = _reorder_rank(entry.get("rank"))
        if record_id is None or rank is None:
            continue
        valid.append((record_id, rank))
    return valid


async def apply_reorder(session_factory: async_sessionmaker, model, updates: Iterable[Any]) -> Tuple[int, int]:
    """
    Set `rank` for each valid {id, rank} entry.

    Entries are applied concurrently, each in its own session, with no
    atomicity across entries.

    Returns:
        Tuple of (applied, failed) counts

    Raises:
        BackendFailure: if there were valid entries and every one failed
    """
    entries = _valid_reorder_entries(updates)
    if not entries:
        return 0, 0

    async def _set_rank(record_id: int, rank: int) -> None:
        async with session_factory() as session:
            await session.execute(
                update(model).where(model.id == record_id).values(rank=rank)
            )
            await session.commit()

    results = await asyncio.gather(
        *(_set_rank(record_id, rank) for record_id, rank in entries),
        return_exceptions=True,
    )

    failed = 0
    for (record_id, _), result in zip(entries, results):
        if isinstance(result, Exception):
            failed += 1
            logger.error(f"Failed to update rank of {model.__tablename__} {record_id}: {str(result)}")

    if failed == len(entries):
        raise BackendFailure(f"Failed to reorder {model.__tablename__}")

    logger.info(f"Reordered {len(entries) - failed} {model.__tablename__} record(s), {failed} failed")
    return len(entries) - failed, failed
