"""Offer draft model - a priced, multi-product document not yet sent to a buyer."""
from sqlalchemy import (
    Column, BigInteger, String, Numeric, DateTime, Date, Text, Boolean, ForeignKey,
    Index, UniqueConstraint, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from offerdesk.database import Base, IdType


class OfferDraft(Base):
    """
    Offer draft.

    ``draft_no`` is the tenant-facing identifier: sequential per business owner
    and never reused, since soft-deleted drafts keep their number. Draft names
    are unique per business owner among drafts that are not deleted.
    """

    __tablename__ = 'offer_draft'
    __table_args__ = (
        UniqueConstraint('business_owner_id', 'draft_no', name='uq_offer_draft_owner_draft_no'),
        Index(
            'uq_offer_draft_owner_active_name',
            'business_owner_id', 'draft_name',
            unique=True,
            postgresql_where=text('NOT is_deleted'),
            sqlite_where=text('is_deleted = 0'),
        ),
    )

    id = Column(IdType, primary_key=True, autoincrement=True)
    draft_no = Column(BigInteger, nullable=False)
    business_owner_id = Column(BigInteger, ForeignKey('business_owner.id'), nullable=False, index=True)
    from_party = Column(String(200), nullable=False)
    origin = Column(String(120), nullable=False)
    processor = Column(String(200), nullable=True)
    plant_approval_number = Column(String(100), nullable=False)
    brand = Column(String(120), nullable=False)
    draft_name = Column(String(200), nullable=True)
    offer_validity_date = Column(Date, nullable=True)
    shipment_date = Column(Date, nullable=True)
    quantity = Column(String(100), nullable=True)
    tolerance = Column(String(100), nullable=True)
    payment_terms = Column(Text, nullable=True)
    remark = Column(Text, nullable=True)
    grand_total = Column(Numeric(14, 3), nullable=False, default=0)
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    business_owner = relationship('BusinessOwner')
    products = relationship(
        'OfferDraftProduct',
        back_populates='draft',
        order_by='OfferDraftProduct.id',
        cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f"<OfferDraft(draft_no={self.draft_no}, owner={self.business_owner_id}, name='{self.draft_name}', total={self.grand_total})>"

    @property
    def breakup_total(self):
        """Sum of all size breakup quantities across products."""
        return sum((sb.breakup for p in self.products for sb in p.size_breakups), start=0)

    def to_dict(self):
        """Full draft with nested products and breakups (raw values)."""
        return {
            'draft_no': self.draft_no,
            'business_owner_id': self.business_owner_id,
            'from_party': self.from_party,
            'origin': self.origin,
            'processor': self.processor,
            'plant_approval_number': self.plant_approval_number,
            'brand': self.brand,
            'draft_name': self.draft_name,
            'offer_validity_date': self.offer_validity_date,
            'shipment_date': self.shipment_date,
            'quantity': self.quantity,
            'tolerance': self.tolerance,
            'payment_terms': self.payment_terms,
            'remark': self.remark,
            'grand_total': self.grand_total,
            'is_deleted': self.is_deleted,
            'deleted_at': self.deleted_at,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'products': [product.to_dict() for product in self.products],
        }
