"""Models package - exports all SQLAlchemy models."""
# Tenancy
from offerdesk.models.business_owner import BusinessOwner

# Catalog and counterparties
from offerdesk.models.product import Product
from offerdesk.models.buyer import Buyer, BuyerStatus

# Offer drafts
from offerdesk.models.offer_draft import OfferDraft
from offerdesk.models.offer_draft_product import OfferDraftProduct
from offerdesk.models.offer_draft_size_breakup import OfferDraftSizeBreakup

# Offers
from offerdesk.models.offer import Offer, OfferStatus
from offerdesk.models.offer_product import OfferProduct
from offerdesk.models.offer_size_breakup import OfferSizeBreakup

__all__ = [
    'BusinessOwner',
    'Product', 'Buyer', 'BuyerStatus',
    'OfferDraft', 'OfferDraftProduct', 'OfferDraftSizeBreakup',
    'Offer', 'OfferStatus', 'OfferProduct', 'OfferSizeBreakup',
]
