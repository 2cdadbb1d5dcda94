"""SQLAlchemy ORM models mirroring the Plex library tables the importer uses."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


class MetadataItem(Base):
    """A movie, show, season or episode in the Plex catalog."""

    __tablename__ = "metadata_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    library_section_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("metadata_items.id"), nullable=True
    )
    metadata_type: Mapped[int | None] = mapped_column(Integer, nullable=True)
    guid: Mapped[str] = mapped_column(String(255), default="")
    title: Mapped[str] = mapped_column(String(255), default="")
    index: Mapped[int | None] = mapped_column("index", Integer, nullable=True)
    user_thumb_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    originally_available_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    parent: Mapped["MetadataItem | None"] = relationship(
        remote_side="MetadataItem.id", back_populates="children"
    )
    children: Mapped[list["MetadataItem"]] = relationship(back_populates="parent")
    media_items: Mapped[list["MediaItem"]] = relationship(
        back_populates="metadata_item"
    )

    def __repr__(self) -> str:
        return f"<MetadataItem id={self.id} guid={self.guid!r} title={self.title!r}>"


class MediaItem(Base):
    """A physical version of a metadata item."""

    __tablename__ = "media_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    metadata_item_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("metadata_items.id"), nullable=True
    )

    metadata_item: Mapped[MetadataItem | None] = relationship(
        back_populates="media_items"
    )
    media_parts: Mapped[list["MediaPart"]] = relationship(back_populates="media_item")


class MediaPart(Base):
    """A file on disk backing a media item."""

    __tablename__ = "media_parts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    media_item_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("media_items.id"), nullable=True
    )
    file: Mapped[str] = mapped_column(Text, default="")

    media_item: Mapped[MediaItem | None] = relationship(back_populates="media_parts")


class MetadataItemSetting(Base):
    """Per-account watch state keyed by the catalog guid."""

    __tablename__ = "metadata_item_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    guid: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    view_offset: Mapped[int | None] = mapped_column(Integer, nullable=True)
    view_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_viewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    changed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)


class MetadataItemView(Base):
    """One row per individual play, denormalised for history display."""

    __tablename__ = "metadata_item_views"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    guid: Mapped[str] = mapped_column(String(255))
    metadata_type: Mapped[int | None] = mapped_column(Integer, nullable=True)
    library_section_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    grandparent_title: Mapped[str] = mapped_column(String(255), default="")
    parent_index: Mapped[int] = mapped_column(Integer, default=-1)
    parent_title: Mapped[str] = mapped_column(String(255), default="")
    index: Mapped[int | None] = mapped_column("index", Integer, nullable=True)
    title: Mapped[str] = mapped_column(String(255), default="")
    thumb_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    viewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    grandparent_guid: Mapped[str] = mapped_column(String(255), default="")
    originally_available_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    device_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
