"""Offer product model."""
from sqlalchemy import Column, BigInteger, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from offerdesk.database import Base, IdType


class OfferProduct(Base):
    """Product line of an offer (copied from the draft, written once)."""

    __tablename__ = 'offer_product'

    id = Column(IdType, primary_key=True, autoincrement=True)
    offer_id = Column(BigInteger, ForeignKey('offer.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(String(64), nullable=False)
    product_name = Column(String(200), nullable=False)
    species = Column(String(120), nullable=False)
    packing = Column(Text, nullable=True)
    size_details = Column(Text, nullable=True)
    breakup_details = Column(Text, nullable=True)
    price_details = Column(Text, nullable=True)
    condition_details = Column(Text, nullable=True)

    # Relationships
    offer = relationship('Offer', back_populates='products')
    size_breakups = relationship(
        'OfferSizeBreakup',
        back_populates='offer_product',
        order_by='OfferSizeBreakup.id',
        cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f"<OfferProduct(id={self.id}, offer_id={self.offer_id}, product='{self.product_name}')>"

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'product_name': self.product_name,
            'species': self.species,
            'packing': self.packing,
            'size_details': self.size_details,
            'breakup_details': self.breakup_details,
            'price_details': self.price_details,
            'condition_details': self.condition_details,
            'size_breakups': [breakup.to_dict() for breakup in self.size_breakups],
        }
