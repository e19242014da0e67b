from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from poap_gateway.db.database import Base
from poap_gateway.models.common import iso, new_id, utcnow


class ApiKey(Base):
    __tablename__ = "api_keys"

    id = Column(String(36), primary_key=True, default=new_id)
    organizer_id = Column(String(36), ForeignKey("organizers.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    key = Column(String(64), nullable=False, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    organizer = relationship("Organizer", back_populates="api_keys")

    @property
    def masked_key(self) -> str:
        return f"{self.key[:7]}...{self.key[-4:]}"

    def to_dict(self, reveal: bool = False):
        return {
            "id": self.id,
            "name": self.name,
            "key": self.key if reveal else self.masked_key,
            "isActive": self.is_active,
            "lastUsedAt": iso(self.last_used_at),
            "createdAt": iso(self.created_at),
        }
