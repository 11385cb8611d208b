from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Uuid, event
from sqlalchemy.orm import (
    Mapped,
    ORMExecuteState,
    Session,
    mapped_column,
    with_loader_criteria,
)

from ..core.security import now_utc
from .base import Base

INCLUDE_DELETED = "include_deleted"

ID_DOC = "Unique identifier (UUID v4)"
CREATED_AT_DOC = "Creation time"
UPDATED_AT_DOC = "Time of the last update"
DELETED_AT_DOC = "Soft deletion time, null while the record is live"


class CommonEntity(Base):
    """
    Columns shared by every persisted record.

    ``deleted_at`` is ``None`` for live rows and carries the deletion time once
    the row is soft deleted; the row itself stays in the table.  Columns whose
    ``info`` contains ``exclude`` never leave the process in API responses.
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        doc=ID_DOC,
        comment=ID_DOC,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=now_utc,
        doc=CREATED_AT_DOC,
        comment=CREATED_AT_DOC,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=now_utc,
        onupdate=now_utc,
        doc=UPDATED_AT_DOC,
        comment=UPDATED_AT_DOC,
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        info={"exclude": True},
        doc=DELETED_AT_DOC,
        comment=DELETED_AT_DOC,
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self, at: Optional[datetime] = None) -> None:
        self.deleted_at = at or now_utc()

    def restore(self) -> None:
        self.deleted_at = None


@event.listens_for(Session, "do_orm_execute")
def _hide_soft_deleted(execute_state: ORMExecuteState) -> None:
    # Pass execution_options(include_deleted=True) to see soft-deleted rows.
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.is_relationship_load
        and not execute_state.execution_options.get(INCLUDE_DELETED, False)
    ):
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                CommonEntity,
                lambda cls: cls.deleted_at.is_(None),
                include_aliases=True,
            )
        )


__all__ = ["CommonEntity", "INCLUDE_DELETED"]
