"""Offer draft product model."""
from sqlalchemy import Column, BigInteger, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from offerdesk.database import Base, IdType


class OfferDraftProduct(Base):
    """
    Product line of an offer draft.

    The ``*_details`` columns describe the breakups below in prose
    (e.g. units such as "per kg"); the numbers live in the breakups.
    """

    __tablename__ = 'offer_draft_product'

    id = Column(IdType, primary_key=True, autoincrement=True)
    draft_id = Column(BigInteger, ForeignKey('offer_draft.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(String(64), nullable=True)
    product_name = Column(String(200), nullable=False)
    species = Column(String(120), nullable=True)
    packing = Column(Text, nullable=True)
    size_details = Column(Text, nullable=True)
    breakup_details = Column(Text, nullable=True)
    price_details = Column(Text, nullable=True)
    condition_details = Column(Text, nullable=True)

    # Relationships
    draft = relationship('OfferDraft', back_populates='products')
    size_breakups = relationship(
        'OfferDraftSizeBreakup',
        back_populates='draft_product',
        order_by='OfferDraftSizeBreakup.id',
        cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f"<OfferDraftProduct(id={self.id}, draft_id={self.draft_id}, product='{self.product_name}')>"

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
