"""Offer draft size breakup model."""
from sqlalchemy import Column, BigInteger, String, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from offerdesk.database import Base, IdType


class OfferDraftSizeBreakup(Base):
    """One priced size line: quantity (``breakup``) at a unit ``price``."""

    __tablename__ = 'offer_draft_size_breakup'
    __table_args__ = (
        CheckConstraint('breakup >= 0', name='ck_offer_draft_size_breakup_breakup'),
        CheckConstraint('price >= 0', name='ck_offer_draft_size_breakup_price'),
    )

    id = Column(IdType, primary_key=True, autoincrement=True)
    draft_product_id = Column(BigInteger, ForeignKey('offer_draft_product.id', ondelete='CASCADE'), nullable=False, index=True)
    size = Column(String(60), nullable=False)
    breakup = Column(Numeric(14, 3), nullable=False)
    price = Column(Numeric(14, 2), nullable=False)
    condition = Column(String(120), nullable=True)

    # Relationships
    draft_product = relationship('OfferDraftProduct', back_populates='size_breakups')

    def __repr__(self):
        return f"<OfferDraftSizeBreakup(id={self.id}, size='{self.size}', breakup={self.breakup}, price={self.price})>"

    def to_dict(self):
        return {
            'id': self.id,
            'size': self.size,
            'breakup': self.breakup,
            'price': self.price,
            'condition': self.condition,
        }
