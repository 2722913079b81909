"""Async database engine and the SQLAlchemy-backed record store.

One engine per DbStorage instance; every operation opens its own short
session so no connection is held across an LLM or Google call.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, event, func, select, text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from peulot.core.errors import NotFoundError
from peulot.core.types import Feedback, Peula, PeulaContent, TrainingExample, TzofimAnchor, utcnow
from peulot.storage.base import ContentMutation, Storage
from peulot.storage.models import Base, FeedbackRow, PeulaRow, TrainingExampleRow, TzofimAnchorRow

logger = logging.getLogger(__name__)


def create_engine(database_url: str, require_ssl: bool = False) -> AsyncEngine:
    """Build an async engine with the connection options for the URL's dialect."""
    if database_url.startswith("sqlite"):
        engine = create_async_engine(database_url, echo=False)

        # SQLite ignores foreign keys (and so ON DELETE CASCADE) unless asked
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    connect_args: dict = {"timeout": 10}  # 10s connection timeout for asyncpg
    if require_ssl:
        import ssl

        connect_args["ssl"] = ssl.create_default_context()
    return create_async_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        pool_recycle=300,
        connect_args=connect_args,
    )


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _to_peula(row: PeulaRow) -> Peula:
    return Peula(
        id=row.id,
        title=row.title,
        topic=row.topic,
        age_group=row.age_group,
        duration=row.duration,
        group_size=row.group_size,
        goals=row.goals,
        content=PeulaContent.from_dict(row.content),
        available_materials=list(row.available_materials or []),
        special_considerations=row.special_considerations,
        created_at=_aware(row.created_at),
    )


def _to_feedback(row: FeedbackRow) -> Feedback:
    return Feedback(
        id=row.id,
        peula_id=row.peula_id,
        component_index=row.component_index,
        comment=row.comment,
        created_at=_aware(row.created_at),
    )


def _to_example(row: TrainingExampleRow) -> TrainingExample:
    return TrainingExample(
        id=row.id,
        title=row.title,
        content=row.content,
        notes=row.notes,
        created_at=_aware(row.created_at),
    )


def _to_anchor(row: TzofimAnchorRow) -> TzofimAnchor:
    return TzofimAnchor(
        id=row.id,
        text=row.text,
        category=row.category,
        display_order=row.display_order,
        created_at=_aware(row.created_at),
    )


class DbStorage(Storage):
    """Record store backed by SQLAlchemy (asyncpg in production)."""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, database_url: str, require_ssl: bool = False) -> "DbStorage":
        return cls(create_engine(database_url, require_ssl=require_ssl))

    async def init(self) -> None:
        """Create all tables if they don't exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized")

    async def ping(self) -> None:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))

    async def close(self) -> None:
        await self._engine.dispose()

    # -- peulot ------------------------------------------------------------

    async def get_peula(self, peula_id: str) -> Peula | None:
        async with self._session_factory() as session:
            row = await session.get(PeulaRow, peula_id)
            return _to_peula(row) if row else None

    async def list_peulot(self) -> list[Peula]:
        async with self._session_factory() as session:
            result = await session.execute(select(PeulaRow).order_by(PeulaRow.created_at.desc()))
            return [_to_peula(r) for r in result.scalars()]

    async def create_peula(
        self,
        *,
        title: str,
        topic: str,
        age_group: str,
        duration: str,
        group_size: str,
        goals: str,
        content: PeulaContent,
        available_materials: list[str] | None = None,
        special_considerations: str | None = None,
    ) -> Peula:
        row = PeulaRow(
            id=str(uuid.uuid4()),
            title=title,
            topic=topic,
            age_group=age_group,
            duration=duration,
            group_size=group_size,
            goals=goals,
            available_materials=list(available_materials or []),
            special_considerations=special_considerations,
            content=content.to_dict(),
            created_at=utcnow(),
        )
        async with self._session_factory() as session, session.begin():
            session.add(row)
        return _to_peula(row)

    async def update_peula_content(self, peula_id: str, mutate: ContentMutation) -> Peula:
        async with self._session_factory() as session, session.begin():
            # Row lock on Postgres; SQLite serializes writers on its own
            result = await session.execute(
                select(PeulaRow).where(PeulaRow.id == peula_id).with_for_update()
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError("Peula not found")
            updated = mutate(PeulaContent.from_dict(row.content))
            row.content = updated.to_dict()
        return _to_peula(row)

    async def delete_peula(self, peula_id: str) -> None:
        async with self._session_factory() as session, session.begin():
            # FK cascades too; the explicit sweep keeps backends without FK enforcement honest
            await session.execute(delete(FeedbackRow).where(FeedbackRow.peula_id == peula_id))
            await session.execute(delete(PeulaRow).where(PeulaRow.id == peula_id))

    # -- feedback ----------------------------------------------------------

    async def list_feedback_for_peula(self, peula_id: str) -> list[Feedback]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(FeedbackRow)
                .where(FeedbackRow.peula_id == peula_id)
                .order_by(FeedbackRow.created_at, FeedbackRow.id)
            )
            return [_to_feedback(r) for r in result.scalars()]

    async def list_feedback(self) -> list[Feedback]:
        async with self._session_factory() as session:
            result = await session.execute(select(FeedbackRow).order_by(FeedbackRow.created_at, FeedbackRow.id))
            return [_to_feedback(r) for r in result.scalars()]

    async def create_feedback(self, peula_id: str, component_index: int, comment: str) -> Feedback:
        row = FeedbackRow(
            id=str(uuid.uuid4()),
            peula_id=peula_id,
            component_index=component_index,
            comment=comment,
            created_at=utcnow(),
        )
        async with self._session_factory() as session, session.begin():
            session.add(row)
        return _to_feedback(row)

    async def delete_feedback(self, feedback_id: str) -> None:
        async with self._session_factory() as session, session.begin():
            await session.execute(delete(FeedbackRow).where(FeedbackRow.id == feedback_id))

    # -- training examples -------------------------------------------------

    async def list_training_examples(self) -> list[TrainingExample]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TrainingExampleRow).order_by(TrainingExampleRow.created_at.desc())
            )
            return [_to_example(r) for r in result.scalars()]

    async def create_training_example(
        self, title: str, content: str, notes: str | None = None,
    ) -> TrainingExample:
        row = TrainingExampleRow(
            id=str(uuid.uuid4()),
            title=title,
            content=content,
            notes=notes,
            created_at=utcnow(),
        )
        async with self._session_factory() as session, session.begin():
            session.add(row)
        return _to_example(row)

    async def delete_training_example(self, example_id: str) -> None:
        async with self._session_factory() as session, session.begin():
            await session.execute(delete(TrainingExampleRow).where(TrainingExampleRow.id == example_id))

    # -- anchors -----------------------------------------------------------

    async def list_anchors(self) -> list[TzofimAnchor]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TzofimAnchorRow).order_by(
                    TzofimAnchorRow.display_order, TzofimAnchorRow.created_at,
                )
            )
            return [_to_anchor(r) for r in result.scalars()]

    async def create_anchor(
        self, text: str, category: str, display_order: int | None = None,
    ) -> TzofimAnchor:
        async with self._session_factory() as session, session.begin():
            if display_order is None:
                current_max = await session.scalar(select(func.max(TzofimAnchorRow.display_order)))
                display_order = (current_max or 0) + 1
            row = TzofimAnchorRow(
                id=str(uuid.uuid4()),
                text=text,
                category=category,
                display_order=display_order,
                created_at=utcnow(),
            )
            session.add(row)
        return _to_anchor(row)

    async def update_anchor(
        self,
        anchor_id: str,
        *,
        text: str | None = None,
        category: str | None = None,
        display_order: int | None = None,
    ) -> TzofimAnchor | None:
        async with self._session_factory() as session, session.begin():
            row = await session.get(TzofimAnchorRow, anchor_id)
            if row is None:
                return None
            if text is not None:
                row.text = text
            if category is not None:
                row.category = category
            if display_order is not None:
                row.display_order = display_order
        return _to_anchor(row)

    async def delete_anchor(self, anchor_id: str) -> None:
        async with self._session_factory() as session, session.begin():
            await session.execute(delete(TzofimAnchorRow).where(TzofimAnchorRow.id == anchor_id))

    async def reorder_anchors(self, ids: list[str]) -> list[TzofimAnchor]:
        async with self._session_factory() as session, session.begin():
            for position, anchor_id in enumerate(ids):
                row = await session.get(TzofimAnchorRow, anchor_id)
                if row is not None:
                    row.display_order = position + 1
        return await self.list_anchors()
