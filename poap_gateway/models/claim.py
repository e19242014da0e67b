"""
Claim model for the claims table.

A claim row is inserted as "pending" before the relayer mints, and flipped
to "confirmed" once the mint transaction lands. The unique constraint on
(campaign_id, user_public_key) is the last line of defence against double
claims when several gateway processes share one database.
"""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from poap_gateway.db.database import Base
from poap_gateway.models.common import iso, new_id, utcnow

CLAIM_PENDING = "pending"
CLAIM_CONFIRMED = "confirmed"


class Claim(Base):
    __tablename__ = "claims"
    __table_args__ = (
        UniqueConstraint("campaign_id", "user_public_key", name="uq_claims_campaign_user"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    campaign_id = Column(String(36), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    user_public_key = Column(String(64), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=CLAIM_PENDING, index=True)

    # Filled once the mint lands
    mint_address = Column(String(64), nullable=True)
    token_account = Column(String(64), nullable=True)
    transaction_hash = Column(String(128), nullable=True)
    gas_cost = Column(BigInteger, nullable=False, default=0)  # lamports

    claimed_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    campaign = relationship("Campaign", back_populates="claims")

    def __repr__(self):
        return f"<Claim(id={self.id}, campaign_id={self.campaign_id}, status={self.status})>"

    def to_dict(self):
        return {
            "id": self.id,
            "campaignId": self.campaign_id,
            "userPublicKey": self.user_public_key,
            "status": self.status,
            "mintAddress": self.mint_address,
            "tokenAccount": self.token_account,
            "transactionHash": self.transaction_hash,
            "gasCost": self.gas_cost,
            "claimedAt": iso(self.claimed_at),
        }


class LegacyMint(Base):
    """Demo mints from the pre-campaign claim endpoint, one per (service, wallet)."""

    __tablename__ = "legacy_mints"
    __table_args__ = (
        UniqueConstraint("service_id", "user_public_key", name="uq_legacy_mints_service_user"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    service_id = Column(String(100), nullable=False, index=True)
    user_public_key = Column(String(64), nullable=False, index=True)
    mint_address = Column(String(64), nullable=True)
    transaction_hash = Column(String(128), nullable=True)
    gas_cost = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
