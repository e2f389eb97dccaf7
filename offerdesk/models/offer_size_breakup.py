"""Offer size breakup model."""
from sqlalchemy import Column, BigInteger, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from offerdesk.database import Base, IdType


class OfferSizeBreakup(Base):
    """Size breakup of an offer product."""

    __tablename__ = 'offer_size_breakup'

    id = Column(IdType, primary_key=True, autoincrement=True)
    offer_product_id = Column(BigInteger, ForeignKey('offer_product.id', ondelete='CASCADE'), nullable=False, index=True)
    size = Column(String(60), nullable=False)
    breakup = Column(Numeric(14, 3), nullable=False, default=0)
    price = Column(Numeric(14, 2), nullable=False, default=0)
    condition = Column(String(120), nullable=True)

    # Relationships
    offer_product = relationship('OfferProduct', back_populates='size_breakups')

    def __repr__(self):
        return f"<OfferSizeBreakup(id={self.id}, size='{self.size}', breakup={self.breakup})>"

    def to_dict(self):
        return {
            'id': self.id,
            'size': self.size,
            'breakup': self.breakup,
            'price': self.price,
            'condition': self.condition,
        }
