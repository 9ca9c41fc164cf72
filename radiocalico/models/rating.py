# radiocalico/models/rating.py
import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint, Column, DateTime, Index, Integer, SmallInteger, String,
    UniqueConstraint, Uuid, func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase


class EmbeddedBase(DeclarativeBase):
    pass


class RelationalBase(DeclarativeBase):
    pass


class EmbeddedSongRating(EmbeddedBase):
    """song_ratings as laid out in the single-file SQLite store."""
    __tablename__ = "song_ratings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    song_id = Column(String(255), nullable=False)
    user_identifier = Column(String(255), nullable=False)
    artist = Column(String(255), nullable=True)
    title = Column(String(255), nullable=True)
    rating = Column(SmallInteger, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("song_id", "user_identifier", name="uq_song_ratings_song_user"),
        CheckConstraint("rating IN (-1, 1)", name="ck_song_ratings_rating"),
        Index("idx_song_ratings_song_id", "song_id"),
        Index("idx_song_ratings_user", "user_identifier"),
    )


class SongRating(RelationalBase):
    """song_ratings as laid out in PostgreSQL."""
    __tablename__ = "song_ratings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    song_id = Column(String(255), nullable=False)
    user_identifier = Column(String(255), nullable=False)
    artist = Column(String(255), nullable=True)
    title = Column(String(255), nullable=True)
    rating = Column(SmallInteger, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # free-form; not read by the rating core
    meta = Column("metadata", JSONB, nullable=True, server_default="{}")

    __table_args__ = (
        UniqueConstraint("song_id", "user_identifier", name="uq_song_ratings_song_user"),
        CheckConstraint("rating IN (-1, 1)", name="ck_song_ratings_rating"),
        Index("idx_song_ratings_song_id", "song_id"),
        Index("idx_song_ratings_user", "user_identifier"),
        Index("idx_song_ratings_created_at", "created_at"),
    )
