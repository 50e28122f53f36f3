"""SQLAlchemy models for the SQL-backed store."""

from sqlalchemy import JSON, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from portier.db.base import BaseEntity


class CachedDocumentEntity(BaseEntity):
    """A broker document cached under a logical name."""

    __tablename__ = "portier_cache"

    cache_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[dict] = mapped_column(JSON, nullable=False)
    expires_at: Mapped[float] = mapped_column(Float, nullable=False)


class NonceEntity(BaseEntity):
    """A single-use nonce awaiting consumption."""

    __tablename__ = "portier_nonces"

    nonce: Mapped[str] = mapped_column(String(64), primary_key=True)
    client_id: Mapped[str] = mapped_column(String(2048), nullable=False)
    email: Mapped[str] = mapped_column(String(1024), nullable=False)
    expires_at: Mapped[float] = mapped_column(Float, nullable=False, index=True)
