"""Offer model - the buyer-addressed copy of a promoted draft."""
import enum
from sqlalchemy import Column, BigInteger, String, Numeric, DateTime, Date, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from offerdesk.database import Base, IdType


class OfferStatus(enum.Enum):
    """Offer status enum. Offers only move from OPEN to CLOSE."""
    OPEN = "open"
    CLOSE = "close"


class Offer(Base):
    """
    Offer sent to a buyer.

    Products and size breakups are copied from the draft at promotion time;
    there is no foreign key back to the draft.
    """

    __tablename__ = 'offer'

    id = Column(IdType, primary_key=True, autoincrement=True)
    business_owner_id = Column(BigInteger, ForeignKey('business_owner.id'), nullable=False, index=True)
    buyer_id = Column(BigInteger, ForeignKey('buyer.id'), nullable=False, index=True)
    offer_name = Column(String(200), nullable=False)
    business_name = Column(String(200), nullable=True)
    from_party = Column(String(200), nullable=False)
    to_party = Column(String(200), nullable=True)
    origin = Column(String(120), nullable=False)
    processor = Column(String(200), nullable=True)
    plant_approval_number = Column(String(100), nullable=False)
    destination = Column(String(200), nullable=False)
    brand = Column(String(120), nullable=False)
    draft_name = Column(String(200), nullable=True)
    offer_validity_date = Column(Date, nullable=True)
    shipment_date = Column(Date, nullable=True)
    quantity = Column(String(100), nullable=True)
    tolerance = Column(String(100), nullable=True)
    payment_terms = Column(Text, nullable=True)
    remark = Column(Text, nullable=True)
    grand_total = Column(Numeric(14, 3), nullable=True)
    status = Column(String(10), nullable=False, default=OfferStatus.OPEN.value)
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    business_owner = relationship('BusinessOwner')
    buyer = relationship('Buyer', back_populates='offers')
    products = relationship(
        'OfferProduct',
        back_populates='offer',
        order_by='OfferProduct.id',
        cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f"<Offer(id={self.id}, name='{self.offer_name}', status='{self.status}', total={self.grand_total})>"

    @property
    def is_open(self):
        return self.status == OfferStatus.OPEN.value

    def to_dict(self, include_buyer=True):
        rv = {
            'id': self.id,
            'business_owner_id': self.business_owner_id,
            'buyer_id': self.buyer_id,
            'offer_name': self.offer_name,
            'business_name': self.business_name,
            'from_party': self.from_party,
            'to_party': self.to_party,
            'origin': self.origin,
            'processor': self.processor,
            'plant_approval_number': self.plant_approval_number,
            'destination': self.destination,
            'brand': self.brand,
            'draft_name': self.draft_name,
            'offer_validity_date': self.offer_validity_date,
            'shipment_date': self.shipment_date,
            'quantity': self.quantity,
            'tolerance': self.tolerance,
            'payment_terms': self.payment_terms,
            'remark': self.remark,
            'grand_total': self.grand_total,
            'status': self.status,
            'is_deleted': self.is_deleted,
            'deleted_at': self.deleted_at,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'products': [product.to_dict() for product in self.products],
        }
        if include_buyer and self.buyer is not None:
            rv['buyer'] = self.buyer.to_summary()
        return rv
