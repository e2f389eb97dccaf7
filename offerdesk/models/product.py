"""Product catalog model."""
from sqlalchemy import Column, BigInteger, String, JSON, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from offerdesk.database import Base, IdType


class Product(Base):
    """
    Catalog product of a business owner.

    Drafts and offers keep a denormalized copy of the name and species, so
    later catalog edits never change a document that was already written.
    """

    __tablename__ = 'product'
    __table_args__ = (
        UniqueConstraint('business_owner_id', 'code', name='uq_product_owner_code'),
    )

    id = Column(IdType, primary_key=True, autoincrement=True)
    business_owner_id = Column(BigInteger, ForeignKey('business_owner.id'), nullable=False, index=True)
    code = Column(String(64), nullable=False)
    product_name = Column(String(200), nullable=False)
    species = Column(JSON, nullable=False, default=list)
    sizes = Column(JSON, nullable=False, default=list)
    sku = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Product(id={self.id}, code='{self.code}', name='{self.product_name}')>"
