"""Buyer lookups used by the offer flow."""

from typing import Any

from sqlalchemy.orm import Session

from offerdesk.models import Buyer, BuyerStatus
from offerdesk.exceptions import NotFoundError
from offerdesk.services.tenant_service import TenantContext
from offerdesk.utils.pagination import Page, paginate


def _buyers_query(session: Session, tenant: TenantContext):
    return session.query(Buyer).filter(
        Buyer.business_owner_id == tenant.business_owner_id,
        Buyer.is_deleted == False  # noqa: E712
    )


def get_buyer(session: Session, tenant: TenantContext, buyer_id: Any) -> Buyer:
    """
    Get a non-deleted buyer of the tenant.

    Raises:
        NotFoundError: unknown id, another tenant's buyer or a deleted one.
    """
    try:
        buyer_id = int(buyer_id)
    except (TypeError, ValueError):
        raise NotFoundError('Buyer not found or access denied')

    buyer = _buyers_query(session, tenant).filter(Buyer.id == buyer_id).first()
    if not buyer:
        raise NotFoundError('Buyer not found or access denied')
    return buyer


def list_buyers_for_offer(session: Session, tenant: TenantContext, page: Page) -> Page:
    """Active buyers an offer can be addressed to, by company name."""
    query = _buyers_query(session, tenant).filter(
        Buyer.status == BuyerStatus.ACTIVE.value
    ).order_by(Buyer.company_name.asc(), Buyer.contact_name.asc(), Buyer.id.asc())
    return paginate(query, page)
