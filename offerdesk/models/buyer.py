"""Buyer model."""
import enum
from sqlalchemy import Column, BigInteger, String, Text, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from offerdesk.database import Base, IdType


class BuyerStatus(enum.Enum):
    """Buyer status enum."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class Buyer(Base):
    """Buyer (counterparty an offer is sent to)."""

    __tablename__ = 'buyer'

    id = Column(IdType, primary_key=True, autoincrement=True)
    business_owner_id = Column(BigInteger, ForeignKey('business_owner.id'), nullable=False, index=True)
    company_name = Column(String(200), nullable=True)
    contact_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    registration_number = Column(String(100), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(120), nullable=True)
    state = Column(String(120), nullable=True)
    country = Column(String(120), nullable=False)
    postal_code = Column(String(20), nullable=True)
    status = Column(String(20), nullable=False, default=BuyerStatus.ACTIVE.value)
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    business_owner = relationship('BusinessOwner', back_populates='buyers')
    offers = relationship('Offer', back_populates='buyer')

    def __repr__(self):
        return f"<Buyer(id={self.id}, company='{self.company_name}', contact='{self.contact_name}')>"

    @property
    def display_name(self):
        """Company name, falling back to the contact name."""
        return self.company_name or self.contact_name

    @property
    def notification_email(self):
        """Address offer notifications are sent to."""
        return self.contact_email or self.email

    def to_summary(self):
        return {
            'id': self.id,
            'company_name': self.company_name,
            'contact_name': self.contact_name,
            'contact_email': self.notification_email,
            'country': self.country,
            'state': self.state,
            'city': self.city,
        }

    def to_dict(self):
        rv = self.to_summary()
        rv.update({
            'email': self.email,
            'contact_phone': self.contact_phone,
            'registration_number': self.registration_number,
            'address': self.address,
            'postal_code': self.postal_code,
            'status': self.status,
        })
        return rv
