"""In-memory record store for tests and local development."""

import asyncio
import dataclasses
import uuid

from peulot.core.errors import NotFoundError
from peulot.core.types import Feedback, Peula, PeulaContent, TrainingExample, TzofimAnchor, utcnow
from peulot.storage.base import ContentMutation, Storage, next_display_order


def _newest_first(items):
    # Reverse insertion order first so equal timestamps still list newest first.
    return sorted(reversed(list(items)), key=lambda x: x.created_at, reverse=True)


class MemStorage(Storage):
    """Dict-backed store. Returned records are copies, never live references."""

    def __init__(self):
        self._peulot: dict[str, Peula] = {}
        self._feedback: dict[str, Feedback] = {}
        self._examples: dict[str, TrainingExample] = {}
        self._anchors: dict[str, TzofimAnchor] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _copy(record):
        if isinstance(record, Peula):
            return dataclasses.replace(record, available_materials=list(record.available_materials))
        return dataclasses.replace(record)

    # -- peulot ------------------------------------------------------------

    async def get_peula(self, peula_id: str) -> Peula | None:
        peula = self._peulot.get(peula_id)
        return self._copy(peula) if peula else None

    async def list_peulot(self) -> list[Peula]:
        return [self._copy(p) for p in _newest_first(self._peulot.values())]

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
        peula = Peula(
            id=str(uuid.uuid4()),
            title=title,
            topic=topic,
            age_group=age_group,
            duration=duration,
            group_size=group_size,
            goals=goals,
            content=content,
            available_materials=list(available_materials or []),
            special_considerations=special_considerations,
        )
        self._peulot[peula.id] = peula
        return self._copy(peula)

    async def update_peula_content(self, peula_id: str, mutate: ContentMutation) -> Peula:
        async with self._lock:
            peula = self._peulot.get(peula_id)
            if peula is None:
                raise NotFoundError("Peula not found")
            peula.content = mutate(peula.content)
            return self._copy(peula)

    async def delete_peula(self, peula_id: str) -> None:
        async with self._lock:
            self._peulot.pop(peula_id, None)
            for fb_id in [f.id for f in self._feedback.values() if f.peula_id == peula_id]:
                del self._feedback[fb_id]

    # -- feedback ----------------------------------------------------------

    async def list_feedback_for_peula(self, peula_id: str) -> list[Feedback]:
        return [self._copy(f) for f in self._feedback.values() if f.peula_id == peula_id]

    async def list_feedback(self) -> list[Feedback]:
        return [self._copy(f) for f in self._feedback.values()]

    async def create_feedback(self, peula_id: str, component_index: int, comment: str) -> Feedback:
        fb = Feedback(
            id=str(uuid.uuid4()),
            peula_id=peula_id,
            component_index=component_index,
            comment=comment,
        )
        self._feedback[fb.id] = fb
        return self._copy(fb)

    async def delete_feedback(self, feedback_id: str) -> None:
        self._feedback.pop(feedback_id, None)

    # -- training examples -------------------------------------------------

    async def list_training_examples(self) -> list[TrainingExample]:
        return [self._copy(e) for e in _newest_first(self._examples.values())]

    async def create_training_example(
        self, title: str, content: str, notes: str | None = None,
    ) -> TrainingExample:
        example = TrainingExample(id=str(uuid.uuid4()), title=title, content=content, notes=notes)
        self._examples[example.id] = example
        return self._copy(example)

    async def delete_training_example(self, example_id: str) -> None:
        self._examples.pop(example_id, None)

    # -- anchors -----------------------------------------------------------

    async def list_anchors(self) -> list[TzofimAnchor]:
        # dict preserves insertion order, so the stable sort breaks ties by creation
        return [
            self._copy(a)
            for a in sorted(self._anchors.values(), key=lambda a: (a.display_order, a.created_at))
        ]

    async def create_anchor(
        self, text: str, category: str, display_order: int | None = None,
    ) -> TzofimAnchor:
        async with self._lock:
            if display_order is None:
                display_order = next_display_order(list(self._anchors.values()))
            anchor = TzofimAnchor(
                id=str(uuid.uuid4()),
                text=text,
                category=category,
                display_order=display_order,
                created_at=utcnow(),
            )
            self._anchors[anchor.id] = anchor
            return self._copy(anchor)

    async def update_anchor(
        self,
        anchor_id: str,
        *,
        text: str | None = None,
        category: str | None = None,
        display_order: int | None = None,
    ) -> TzofimAnchor | None:
        anchor = self._anchors.get(anchor_id)
        if anchor is None:
            return None
        if text is not None:
            anchor.text = text
        if category is not None:
            anchor.category = category
        if display_order is not None:
            anchor.display_order = display_order
        return self._copy(anchor)

    async def delete_anchor(self, anchor_id: str) -> None:
        self._anchors.pop(anchor_id, None)

    async def reorder_anchors(self, ids: list[str]) -> list[TzofimAnchor]:
        async with self._lock:
            for position, anchor_id in enumerate(ids):
                anchor = self._anchors.get(anchor_id)
                if anchor is not None:
                    anchor.display_order = position + 1
        return await self.list_anchors()
