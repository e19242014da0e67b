"""
Organizer model (tenant) for the organizers table.
"""

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship

from poap_gateway.db.database import Base
from poap_gateway.models.common import iso, new_id, utcnow


class Organizer(Base):
    """An organization that owns campaigns and API keys."""

    __tablename__ = "organizers"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    company = Column(String(200), nullable=True)
    password_hash = Column(String(255), nullable=False)
    tier = Column(String(20), nullable=False, default="free")
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    campaigns = relationship("Campaign", back_populates="organizer", cascade="all, delete-orphan")
    api_keys = relationship("ApiKey", back_populates="organizer", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Organizer(id={self.id}, email='{self.email}')>"

    def to_dict(self):
        """Convert to dictionary for API responses (never includes the password hash)."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "company": self.company,
            "tier": self.tier,
            "isActive": self.is_active,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
