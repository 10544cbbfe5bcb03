"""Place domain model — maps to the 'places' table."""

import uuid

from sqlalchemy import Column, String, Float, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.infrastructure.database import Base


class Place(Base):
    __tablename__ = "places"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    address = Column(String(500), nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    image = Column(String(500), nullable=False)
    creator_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    creator = relationship("User", lazy="select")

    @property
    def location(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}

    def __repr__(self):
        return f"<Place {self.id} - {self.title}>"
