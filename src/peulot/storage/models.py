"""SQLAlchemy ORM models for the peulot record store."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


class PeulaRow(Base):
    """A generated activity plan. ``content`` holds the nine components."""

    __tablename__ = "peulot"

    id = Column(String(36), primary_key=True)
    title = Column(Text, nullable=False)
    topic = Column(Text, nullable=False)
    age_group = Column(Text, nullable=False)
    duration = Column(Text, nullable=False)
    group_size = Column(Text, nullable=False)
    goals = Column(Text, nullable=False)
    available_materials = Column(JSONType, nullable=False, default=list)
    special_considerations = Column(Text)
    content = Column(JSONType, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)


class FeedbackRow(Base):
    __tablename__ = "feedback"

    id = Column(String(36), primary_key=True)
    peula_id = Column(
        String(36),
        ForeignKey("peulot.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    component_index = Column(Integer, nullable=False, index=True)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class TrainingExampleRow(Base):
    __tablename__ = "training_examples"

    id = Column(String(36), primary_key=True)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False)


class TzofimAnchorRow(Base):
    __tablename__ = "tzofim_anchors"

    id = Column(String(36), primary_key=True)
    text = Column(Text, nullable=False)
    category = Column(String(200), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False)
