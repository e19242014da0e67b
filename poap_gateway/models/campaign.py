"""
Campaign model for the campaigns table.
A campaign is one POAP drop: every confirmed claim mints one 1/1 NFT.
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from poap_gateway.db.database import Base
from poap_gateway.models.common import iso, new_id, utcnow


class Campaign(Base):
    """POAP campaign owned by an organizer."""

    __tablename__ = "campaigns"

    id = Column(String(36), primary_key=True, default=new_id)
    organizer_id = Column(String(36), ForeignKey("organizers.id", ondelete="CASCADE"), nullable=False, index=True)

    # Event information
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    event_date = Column(DateTime, nullable=True)
    location = Column(String(255), nullable=True)
    image_url = Column(String(1000), nullable=True)
    external_url = Column(String(1000), nullable=True)

    # Claim rules
    secret_code = Column(String(100), nullable=True)
    max_claims = Column(Integer, nullable=True)  # None = unlimited
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Token information
    symbol = Column(String(10), nullable=False, default="POAP")
    metadata_uri = Column(String(1000), nullable=True)

    # Free-form metadata (column is named "metadata" in the database)
    campaign_metadata = Column("metadata", JSON, nullable=True, default=dict)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    organizer = relationship("Organizer", back_populates="campaigns")
    claims = relationship("Claim", back_populates="campaign", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Campaign(id={self.id}, name='{self.name}')>"

    def to_dict(self, claim_count: int = 0, include_secret: bool = True):
        """Convert to dictionary for organizer-facing API responses."""
        data = {
            "id": self.id,
            "organizerId": self.organizer_id,
            "name": self.name,
            "description": self.description,
            "eventDate": iso(self.event_date),
            "location": self.location,
            "imageUrl": self.image_url,
            "externalUrl": self.external_url,
            "maxClaims": self.max_claims,
            "isActive": self.is_active,
            "symbol": self.symbol,
            "metadataUri": self.metadata_uri,
            "metadata": self.campaign_metadata or {},
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
            "_count": {"claims": claim_count},
        }
        if include_secret:
            data["secretCode"] = self.secret_code
        return data

    def to_public_dict(self, claim_count: int = 0):
        """Public view: no secret code and no organizer contact details."""
        remaining = None
        if self.max_claims is not None:
            remaining = max(self.max_claims - claim_count, 0)

        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "eventDate": iso(self.event_date),
            "location": self.location,
            "imageUrl": self.image_url,
            "externalUrl": self.external_url,
            "symbol": self.symbol,
            "isActive": self.is_active,
            "requiresSecretCode": bool(self.secret_code),
            "maxClaims": self.max_claims,
            "claimed": claim_count,
            "remaining": remaining,
            "organizer": {"name": self.organizer.name, "company": self.organizer.company} if self.organizer else None,
        }
