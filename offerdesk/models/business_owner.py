"""Business owner model - the tenant that owns drafts, offers, buyers and products."""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from offerdesk.database import Base, IdType


class BusinessOwner(Base):
    """Business owner account (tenant)."""

    __tablename__ = 'business_owner'

    id = Column(IdType, primary_key=True, autoincrement=True)
    business_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    buyers = relationship('Buyer', back_populates='business_owner')

    def __repr__(self):
        return f"<BusinessOwner(id={self.id}, business_name='{self.business_name}')>"
