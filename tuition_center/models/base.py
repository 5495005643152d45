from sqlalchemy.orm import as_declarative, declared_attr
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import DateTime
from sqlalchemy.dialects.postgresql import UUID
import uuid

from ..core.clock import local_now


@as_declarative()
class Base:
    __abstract__ = True  # Prevents creating a table for the base class

    id: Mapped[uuid.UUID]

    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower()

    id = mapped_column(UUID(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4)
    # Client-side wall-clock timestamps, same zone as class start times
    created_at = mapped_column(DateTime, default=local_now, index=True)
    updated_at = mapped_column(DateTime, default=local_now, onupdate=local_now)
