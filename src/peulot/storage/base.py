"""Record store interface.

Two backends implement it: ``MemStorage`` (tests, local dev) and
``DbStorage`` (SQLAlchemy, PostgreSQL in production). Callers only ever
see this interface; ``create_storage()`` picks the backend from settings.
"""

import abc
from collections.abc import Callable

from peulot.core.types import Feedback, Peula, PeulaContent, TrainingExample, TzofimAnchor

ContentMutation = Callable[[PeulaContent], PeulaContent]


class Storage(abc.ABC):
    # -- peulot ------------------------------------------------------------

    @abc.abstractmethod
    async def get_peula(self, peula_id: str) -> Peula | None: ...

    @abc.abstractmethod
    async def list_peulot(self) -> list[Peula]:
        """All peulot, newest first."""

    @abc.abstractmethod
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
    ) -> Peula: ...

    @abc.abstractmethod
    async def update_peula_content(self, peula_id: str, mutate: ContentMutation) -> Peula:
        """Atomically replace a peula's content with ``mutate(current)``.

        ``mutate`` receives the content as stored at the moment of the
        write, so concurrent updates to different sections both survive.
        Raises NotFoundError when the peula does not exist.
        """

    @abc.abstractmethod
    async def delete_peula(self, peula_id: str) -> None:
        """Delete a peula and all of its feedback. Missing ids are ignored."""

    # -- feedback ----------------------------------------------------------

    @abc.abstractmethod
    async def list_feedback_for_peula(self, peula_id: str) -> list[Feedback]: ...

    @abc.abstractmethod
    async def list_feedback(self) -> list[Feedback]:
        """Every feedback row, oldest first."""

    @abc.abstractmethod
    async def create_feedback(self, peula_id: str, component_index: int, comment: str) -> Feedback: ...

    @abc.abstractmethod
    async def delete_feedback(self, feedback_id: str) -> None: ...

    # -- training examples -------------------------------------------------

    @abc.abstractmethod
    async def list_training_examples(self) -> list[TrainingExample]:
        """All examples, newest first."""

    @abc.abstractmethod
    async def create_training_example(
        self, title: str, content: str, notes: str | None = None,
    ) -> TrainingExample: ...

    @abc.abstractmethod
    async def delete_training_example(self, example_id: str) -> None: ...

    # -- anchors -----------------------------------------------------------

    @abc.abstractmethod
    async def list_anchors(self) -> list[TzofimAnchor]:
        """All anchors by display_order, ties by creation time."""

    @abc.abstractmethod
    async def create_anchor(
        self, text: str, category: str, display_order: int | None = None,
    ) -> TzofimAnchor:
        """Create an anchor. Without display_order it goes after the current last."""

    @abc.abstractmethod
    async def update_anchor(
        self,
        anchor_id: str,
        *,
        text: str | None = None,
        category: str | None = None,
        display_order: int | None = None,
    ) -> TzofimAnchor | None: ...

    @abc.abstractmethod
    async def delete_anchor(self, anchor_id: str) -> None: ...

    @abc.abstractmethod
    async def reorder_anchors(self, ids: list[str]) -> list[TzofimAnchor]:
        """Set each listed anchor's display_order to its 1-based position."""

    # -- lifecycle ---------------------------------------------------------

    async def init(self) -> None:
        """Prepare the backend (create tables etc). No-op by default."""

    async def ping(self) -> None:
        """Raise if the backend is unreachable. No-op by default."""

    async def close(self) -> None:
        """Release backend resources. No-op by default."""


def next_display_order(anchors: list[TzofimAnchor]) -> int:
    return max((a.display_order for a in anchors), default=0) + 1
