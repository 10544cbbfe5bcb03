"""User domain model — maps to the 'users' table."""

import uuid

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.sql import func

from app.infrastructure.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    image = Column(String(500), nullable=False)

    # Ids of the places this user created; mirrors places.creator_id and is
    # only ever changed in the same transaction as the place row itself.
    places = Column(MutableList.as_mutable(JSON), nullable=False, default=list)

    # Concurrent writers to the same user row abort instead of losing updates
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<User {self.email}>"
