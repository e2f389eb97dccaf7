"""Offer service - read, update, close, soft delete, search and email offers (multi-tenant)."""

import logging
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from offerdesk.models import Buyer, Offer, OfferProduct, OfferStatus
from offerdesk.exceptions import DeliveryError, NotFoundError, ValidationError
from offerdesk.services import email_service
from offerdesk.services.draft_validator import validate_dates
from offerdesk.services.tenant_service import TenantContext
from offerdesk.utils.number_format import parse_date
from offerdesk.utils.pagination import Page, paginate
from offerdesk.utils.search import LIKE_ESCAPE, contains_pattern

logger = logging.getLogger(__name__)

UPDATABLE_OFFER_FIELDS = (
    'offer_name', 'to_party', 'destination', 'offer_validity_date',
    'shipment_date', 'payment_terms', 'remark',
)

_TRAILING_NUMBER = re.compile(r'(\d+)\s*$')


def _offers_query(session: Session, tenant: TenantContext):
    return session.query(Offer).filter(
        Offer.business_owner_id == tenant.business_owner_id,
        Offer.is_deleted == False  # noqa: E712
    )


def _with_details(query):
    return query.options(
        joinedload(Offer.buyer),
        selectinload(Offer.products).selectinload(OfferProduct.size_breakups)
    )


def find_offer(session: Session, tenant: TenantContext, offer_id: int) -> Optional[Offer]:
    """Tenant-scoped, non-deleted lookup with buyer and nested products."""
    return _with_details(_offers_query(session, tenant).filter(Offer.id == offer_id)).first()


def get_offer(session: Session, tenant: TenantContext, offer_id: Any) -> Offer:
    """Like :func:`find_offer` but raises NotFoundError."""
    try:
        offer_id = int(offer_id)
    except (TypeError, ValueError):
        raise NotFoundError('Offer not found or access denied')

    offer = find_offer(session, tenant, offer_id)
    if not offer:
        raise NotFoundError('Offer not found or access denied')
    return offer


def update_offer(session: Session, tenant: TenantContext, offer_id: Any, data: Dict[str, Any]) -> Offer:
    """
    Update an offer header.

    Only the editable fields with a non-empty value are applied; products and
    breakups of an offer are never edited. The validity date may already lie
    in the past, but the shipment date may not precede it.
    """
    offer = get_offer(session, tenant, offer_id)

    changes = {}
    for name in UPDATABLE_OFFER_FIELDS:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        changes[name] = value.strip() if isinstance(value, str) else value

    if 'offer_validity_date' in changes:
        changes['offer_validity_date'] = parse_date(changes['offer_validity_date'], 'offer_validity_date')
    if 'shipment_date' in changes:
        changes['shipment_date'] = parse_date(changes['shipment_date'], 'shipment_date')
    validate_dates(
        changes.get('offer_validity_date', offer.offer_validity_date),
        changes.get('shipment_date', offer.shipment_date),
        allow_past_validity=True
    )

    try:
        for name, value in changes.items():
            setattr(offer, name, value)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Offer {offer.id} updated for owner {tenant.business_owner_id}: {sorted(changes)}")
    return find_offer(session, tenant, offer.id)


def close_offer(session: Session, tenant: TenantContext, offer_id: Any) -> Offer:
    """Move an open offer to ``close``. Closed offers cannot be reopened."""
    offer = get_offer(session, tenant, offer_id)
    if not offer.is_open:
        raise ValidationError('Offer is already closed')

    try:
        offer.status = OfferStatus.CLOSE.value
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Offer {offer.id} closed for owner {tenant.business_owner_id}")
    return find_offer(session, tenant, offer.id)


def delete_offer(session: Session, tenant: TenantContext, offer_id: Any) -> None:
    """Soft delete an offer in any state."""
    offer = get_offer(session, tenant, offer_id)
    try:
        offer.is_deleted = True
        offer.deleted_at = datetime.now(timezone.utc)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info(f"Offer {offer.id} soft-deleted for owner {tenant.business_owner_id}")


def search_offers(
    session: Session,
    tenant: TenantContext,
    page: Page,
    offer_name: Optional[str] = None,
    business_name: Optional[str] = None,
    to_party: Optional[str] = None,
    buyer_name: Optional[str] = None,
    product_name: Optional[str] = None,
    status: Optional[str] = None
) -> Page:
    """
    List the tenant's non-deleted offers, newest first.

    Text filters are case-insensitive substring matches. ``buyer_name``
    matches the buyer's company or contact name; ``product_name`` matches
    offers with at least one such product.
    """
    query = _offers_query(session, tenant)

    if status:
        valid = [s.value for s in OfferStatus]
        if status not in valid:
            raise ValidationError(f'Invalid status "{status}". Expected one of: {", ".join(valid)}')
        query = query.filter(Offer.status == status)

    for column, value in ((Offer.offer_name, offer_name),
                          (Offer.business_name, business_name),
                          (Offer.to_party, to_party)):
        if value and value.strip():
            query = query.filter(column.ilike(contains_pattern(value.strip()), escape=LIKE_ESCAPE))

    if buyer_name and buyer_name.strip():
        pattern = contains_pattern(buyer_name.strip())
        query = query.join(Offer.buyer).filter(or_(
            Buyer.company_name.ilike(pattern, escape=LIKE_ESCAPE),
            Buyer.contact_name.ilike(pattern, escape=LIKE_ESCAPE)
        ))

    if product_name and product_name.strip():
        query = query.filter(Offer.products.any(
            OfferProduct.product_name.ilike(contains_pattern(product_name.strip()), escape=LIKE_ESCAPE)
        ))

    query = _with_details(query).order_by(Offer.created_at.desc(), Offer.id.desc())
    return paginate(query, page)


def get_next_offer_name(session: Session, tenant: TenantContext, today: Optional[date] = None) -> str:
    """
    Suggest the next offer name, e.g. ``OFFER-20250115-004``.

    The sequence continues from the trailing number of the tenant's latest
    offer name, or from its id when the name has none.
    """
    today = today or date.today()
    latest = session.query(Offer.id, Offer.offer_name).filter(
        Offer.business_owner_id == tenant.business_owner_id
    ).order_by(Offer.id.desc()).first()

    next_number = 1
    if latest:
        match = _TRAILING_NUMBER.search(latest.offer_name or '')
        next_number = int(match.group(1)) + 1 if match else latest.id + 1

    return f"OFFER-{today.strftime('%Y%m%d')}-{next_number:03d}"


def send_offer_email(
    session: Session,
    tenant: TenantContext,
    offer_id: Any,
    buyer_email: Optional[str],
    buyer_name: Optional[str],
    subject: Optional[str],
    message: Optional[str]
) -> Dict[str, Any]:
    """
    Email an offer summary to a buyer.

    Raises:
        ValidationError: no recipient or subject
        NotFoundError: unknown offer
        DeliveryError: the email could not be sent after retrying
    """
    if not buyer_email or not buyer_email.strip():
        raise ValidationError('Buyer email is required')
    if not subject or not subject.strip():
        raise ValidationError('Email subject is required')

    offer = get_offer(session, tenant, offer_id)
    result = email_service.send_offer_email_template(
        offer,
        buyer_email.strip(),
        buyer_name or offer.to_party,
        subject.strip(),
        message or ''
    )
    if not result.get('success'):
        raise DeliveryError(result.get('error') or 'Failed to send email')

    logger.info(f"Offer {offer.id} emailed to {buyer_email.strip()}")
    return {'offer_id': offer.id, 'sent_to': buyer_email.strip(), 'message': 'Email sent successfully'}
