# src/ordinal_stage/models/record.py
"""SQLAlchemy model for orderable records."""

from sqlalchemy import Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from ordinal_stage.db.session import Base

# Lifecycle states; only published records take part in ordering.
RECORD_STATUS_PUBLISHED = "published"
RECORD_STATUS_DRAFT = "draft"
RECORD_STATUS_TRASH = "trash"


class Record(Base):
    """A content record that is displayed in a client-controlled order.

    ``menu_order`` is the authoritative sort key. ``legacy_order`` is the
    older per-record attribute that may drift and is reconciled into it.
    """

    __tablename__ = "record"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    record_type: Mapped[str] = mapped_column(Text, nullable=False, default="quiz")
    status: Mapped[str] = mapped_column(Text, nullable=False, default=RECORD_STATUS_DRAFT)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    thumbnail_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # 0 means "unordered"; not unique at the schema level because historical
    # rows may collide until the duplicate sweep repairs them.
    menu_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # NULL means "no legacy value".
    legacy_order: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_record_type_status_order", "record_type", "status", "menu_order"),
    )

    def __repr__(self) -> str:
        return (
            f"Record(id={self.id!r}, status={self.status!r}, "
            f"menu_order={self.menu_order!r}, legacy_order={self.legacy_order!r})"
        )
