from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, UniqueConstraint

from .db import Base


class Document(Base):
    __tablename__ = "documents"
    # seq keeps insertion order for documents that share a timestamp
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), nullable=False, index=True)
    collection = Column(String(500), nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)

    __table_args__ = (UniqueConstraint("collection", "id"),)


class Account(Base):
    __tablename__ = "accounts"
    uid = Column(String(64), primary_key=True)
    custom_token = Column(String(500), unique=True, nullable=True)
    is_anonymous = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    last_sign_in = Column(DateTime(timezone=True), nullable=True)
    signed_in = Column(Boolean, nullable=False, default=False)
