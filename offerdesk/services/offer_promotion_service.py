"""
Offer promotion - turn an offer draft (or a synthesized stand-in) into an offer.

The draft is resolved into a :data:`DraftSource`: either the stored draft or,
when it cannot be found, a :class:`SynthesizedDraft` built from the caller's
overrides. Both are consumed the same way by the nested copy.

Nested copy policy (``OFFER_COPY_POLICY``):

* ``best_effort`` - the offer header is committed first, then every product
  and size breakup is committed on its own. A failing item is rolled back,
  logged and reported as a :class:`PartialWriteWarning`; the rest continues.
* ``atomic`` - header and every nested row are committed in one transaction.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, ClassVar, Dict, List, Optional, Union

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from offerdesk.blueprints.metrics import (
    offer_nested_copy_failures_total,
    offer_notifications_total,
    offers_promoted_total,
)
from offerdesk.exceptions import OfferDeskError, PartialWriteWarning, ValidationError
from offerdesk.models import Buyer, Offer, OfferDraft, OfferProduct, OfferSizeBreakup, OfferStatus
from offerdesk.services import email_service
from offerdesk.services.buyer_service import get_buyer
from offerdesk.services.offer_draft_service import find_offer_draft
from offerdesk.services.offer_service import find_offer
from offerdesk.services.tenant_service import TenantContext
from offerdesk.utils.number_format import PRICE_PLACES, QUANTITY_PLACES, parse_date, parse_int, to_decimal

logger = logging.getLogger(__name__)

COPY_POLICY_BEST_EFFORT = 'best_effort'
COPY_POLICY_ATOMIC = 'atomic'

# Placeholders for a synthesized draft
UNKNOWN_COMPANY = 'Unknown Company'
UNKNOWN_ORIGIN = 'Unknown Origin'
UNKNOWN_PLANT_APPROVAL = 'N/A'
UNKNOWN_BRAND = 'Unknown Brand'
UNKNOWN_PRODUCT_ID = 'unknown'
UNKNOWN_PRODUCT_NAME = 'Unknown Product'
UNKNOWN_SPECIES = 'Unknown'
UNKNOWN_SIZE = 'Unknown'

PRODUCT_DETAIL_FIELDS = ('packing', 'size_details', 'breakup_details', 'price_details', 'condition_details')


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class PersistedDraft:
    """A stored, non-deleted draft of the tenant."""

    draft: OfferDraft
    source: ClassVar[str] = 'persisted'

    @property
    def draft_no(self) -> int:
        return self.draft.draft_no

    def header(self) -> Dict[str, Any]:
        d = self.draft
        return {
            'from_party': d.from_party,
            'origin': d.origin,
            'processor': d.processor,
            'plant_approval_number': d.plant_approval_number,
            'brand': d.brand,
            'draft_name': d.draft_name,
            'quantity': d.quantity,
            'tolerance': d.tolerance,
            'offer_validity_date': d.offer_validity_date,
            'shipment_date': d.shipment_date,
            'payment_terms': d.payment_terms,
            'remark': d.remark,
            'grand_total': d.grand_total,
        }

    def products(self) -> List[Dict[str, Any]]:
        return [product.to_dict() for product in self.draft.products]


@dataclass(frozen=True)
class SynthesizedDraft:
    """
    Stand-in for a draft that could not be resolved.

    Fields come from the promotion overrides; anything still missing gets a
    placeholder.
    """

    draft_no: Optional[int]
    overrides: Dict[str, Any] = field(default_factory=dict)
    source: ClassVar[str] = 'synthesized'

    def header(self) -> Dict[str, Any]:
        o = self.overrides
        return {
            'from_party': _text(o.get('from_party')) or UNKNOWN_COMPANY,
            'origin': _text(o.get('origin')) or UNKNOWN_ORIGIN,
            'processor': _text(o.get('processor')),
            'plant_approval_number': _text(o.get('plant_approval_number')) or UNKNOWN_PLANT_APPROVAL,
            'brand': _text(o.get('brand')) or UNKNOWN_BRAND,
            'draft_name': f'Draft-{self.draft_no}' if self.draft_no is not None else None,
            'quantity': _text(o.get('quantity')),
            'tolerance': _text(o.get('tolerance')),
            'offer_validity_date': parse_date(o.get('offer_validity_date'), 'offer_validity_date'),
            'shipment_date': parse_date(o.get('shipment_date'), 'shipment_date'),
            'payment_terms': _text(o.get('payment_terms')),
            'remark': _text(o.get('remark')),
            'grand_total': to_decimal(o.get('grand_total') or 0, 'grand_total', QUANTITY_PLACES),
        }

    def products(self) -> List[Dict[str, Any]]:
        products = self.overrides.get('products') or []
        if not isinstance(products, (list, tuple)):
            return []
        return [product for product in products if isinstance(product, dict)]


DraftSource = Union[PersistedDraft, SynthesizedDraft]


@dataclass
class PromotionResult:
    """The promoted offer plus what happened on the way."""

    offer: Offer
    source: str
    warnings: List[PartialWriteWarning] = field(default_factory=list)
    notification: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        rv = {
            'offer': self.offer.to_dict(),
            'draft_source': self.source,
            'message': 'Offer created successfully',
        }
        if self.warnings:
            rv['warnings'] = [warning.to_dict() for warning in self.warnings]
        if self.notification is not None:
            rv['notification'] = self.notification
        return rv


def resolve_draft_source(session: Session, tenant: TenantContext, draft_no: Optional[int],
                         overrides: Dict[str, Any]) -> DraftSource:
    """
    Resolve the draft to promote.

    A missing, deleted or foreign draft, or a storage error while looking it
    up, yields a :class:`SynthesizedDraft` instead of failing.
    """
    draft = None
    if draft_no is not None:
        try:
            draft = find_offer_draft(session, tenant, draft_no)
        except SQLAlchemyError as e:
            session.rollback()
            logger.warning(f"Offer draft {draft_no} lookup failed for owner {tenant.business_owner_id}: {e}")

    if draft is not None:
        return PersistedDraft(draft)

    logger.warning(
        f"Offer draft {draft_no} not available for owner {tenant.business_owner_id}, "
        f"promoting from overrides"
    )
    return SynthesizedDraft(draft_no=draft_no, overrides=dict(overrides))


def _validate_overrides(overrides: Dict[str, Any]) -> None:
    if not _text(overrides.get('offer_name')):
        raise ValidationError('Offer name is required')
    if overrides.get('buyer_id') in (None, ''):
        raise ValidationError('Buyer selection is required')
    if not _text(overrides.get('destination')):
        raise ValidationError('Destination is required')


def _build_offer(tenant: TenantContext, buyer: Buyer, source: DraftSource, overrides: Dict[str, Any]) -> Offer:
    header = source.header()

    offer_validity_date = parse_date(overrides.get('offer_validity_date'), 'offer_validity_date')
    if offer_validity_date is None:
        offer_validity_date = header['offer_validity_date']
    if offer_validity_date is None:
        days = current_app.config.get('OFFER_DEFAULT_VALIDITY_DAYS', 30)
        offer_validity_date = date.today() + timedelta(days=days)

    shipment_date = parse_date(overrides.get('shipment_date'), 'shipment_date') or header['shipment_date']

    return Offer(
        business_owner_id=tenant.business_owner_id,
        buyer_id=buyer.id,
        offer_name=_text(overrides['offer_name']),
        business_name=tenant.business_name or header['from_party'],
        from_party=header['from_party'],
        to_party=_text(overrides.get('to_party')) or buyer.display_name,
        origin=header['origin'],
        processor=header['processor'],
        plant_approval_number=header['plant_approval_number'],
        destination=_text(overrides['destination']),
        brand=header['brand'],
        draft_name=header['draft_name'],
        offer_validity_date=offer_validity_date,
        shipment_date=shipment_date,
        quantity=header['quantity'],
        tolerance=header['tolerance'],
        payment_terms=_text(overrides.get('payment_terms')) or header['payment_terms'],
        remark=_text(overrides.get('remark')) or header['remark'],
        grand_total=header['grand_total'],
        status=OfferStatus.OPEN.value,
    )


def _new_offer_product(offer_id: int, product_data: Dict[str, Any]) -> OfferProduct:
    return OfferProduct(
        offer_id=offer_id,
        product_id=_text(product_data.get('product_id')) or UNKNOWN_PRODUCT_ID,
        product_name=_text(product_data.get('product_name')) or UNKNOWN_PRODUCT_NAME,
        species=_text(product_data.get('species')) or UNKNOWN_SPECIES,
        **{name: _text(product_data.get(name)) for name in PRODUCT_DETAIL_FIELDS}
    )


def _new_offer_size_breakup(offer_product_id: int, breakup_data: Dict[str, Any]) -> OfferSizeBreakup:
    return OfferSizeBreakup(
        offer_product_id=offer_product_id,
        size=_text(breakup_data.get('size')) or UNKNOWN_SIZE,
        breakup=to_decimal(breakup_data.get('breakup') or 0, 'breakup', QUANTITY_PLACES),
        price=to_decimal(breakup_data.get('price') or 0, 'price', PRICE_PLACES),
        condition=_text(breakup_data.get('condition')),
    )


def _breakups_of(product_data: Dict[str, Any]) -> List[Dict[str, Any]]:
    breakups = product_data.get('size_breakups') or []
    return [breakup for breakup in breakups if isinstance(breakup, dict)]


def _copy_products_atomic(session: Session, offer: Offer, products: List[Dict[str, Any]]) -> None:
    """Add every nested row; the caller commits once."""
    for product_data in products:
        offer_product = _new_offer_product(offer.id, product_data)
        session.add(offer_product)
        session.flush()
        for breakup_data in _breakups_of(product_data):
            session.add(_new_offer_size_breakup(offer_product.id, breakup_data))
    session.flush()


def _skip(session: Session, offer_id: int, product_name: str, error: Exception,
          size: Optional[str] = None) -> PartialWriteWarning:
    session.rollback()
    warning = PartialWriteWarning(offer_id, product_name, size=size, reason=str(error))
    logger.warning(warning.message)
    offer_nested_copy_failures_total.inc()
    return warning


def _copy_products_best_effort(session: Session, offer_id: int, products: List[Dict[str, Any]]) -> List[PartialWriteWarning]:
    """Commit each product and each size breakup on its own, collecting failures."""
    warnings = []
    for product_data in products:
        product_name = _text(product_data.get('product_name')) or UNKNOWN_PRODUCT_NAME
        try:
            offer_product = _new_offer_product(offer_id, product_data)
            session.add(offer_product)
            session.commit()
            offer_product_id = offer_product.id
        except (SQLAlchemyError, OfferDeskError) as e:
            warnings.append(_skip(session, offer_id, product_name, e))
            continue

        for breakup_data in _breakups_of(product_data):
            try:
                session.add(_new_offer_size_breakup(offer_product_id, breakup_data))
                session.commit()
            except (SQLAlchemyError, OfferDeskError) as e:
                size = _text(breakup_data.get('size')) or UNKNOWN_SIZE
                warnings.append(_skip(session, offer_id, product_name, e, size=size))
    return warnings


def _notify_buyer(offer: Offer, buyer: Buyer, notify: Callable[..., Dict[str, Any]]) -> Dict[str, Any]:
    """Send the new-offer notification. Never raises."""
    recipient = buyer.notification_email
    if not recipient:
        offer_notifications_total.labels(result='skipped').inc()
        return {'success': False, 'error': 'Buyer has no email address'}

    try:
        content = email_service.render_offer_notification(offer)
        result = notify(recipient, content['subject'], content['html'], content['text'])
    except Exception as e:
        logger.exception(f"Offer {offer.id} notification to {recipient} failed: {e}")
        offer_notifications_total.labels(result='failed').inc()
        return {'success': False, 'error': str(e) or 'Failed to send notification'}

    if result.get('success'):
        offer_notifications_total.labels(result='sent').inc()
    else:
        logger.warning(f"Offer {offer.id} notification to {recipient} not delivered: {result.get('error')}")
        offer_notifications_total.labels(result='failed').inc()
    return result


def promote_draft_to_offer(
    session: Session,
    tenant: TenantContext,
    draft_no: Any,
    overrides: Dict[str, Any],
    notify: Optional[Callable[..., Dict[str, Any]]] = None,
    copy_policy: Optional[str] = None
) -> PromotionResult:
    """
    Promote a draft to an offer addressed to a buyer.

    Args:
        session: Database session
        tenant: Acting business owner
        draft_no: Draft number to promote (None promotes from overrides only)
        overrides: Offer fields; ``offer_name``, ``buyer_id`` and
            ``destination`` are required
        notify: Email collaborator, defaults to :func:`email_service.notify`
        copy_policy: ``best_effort`` or ``atomic``, defaults to OFFER_COPY_POLICY

    Returns:
        PromotionResult with the hydrated offer

    Raises:
        ValidationError: a required override is missing or malformed
        NotFoundError: the buyer is unknown, deleted or belongs to another tenant
    """
    overrides = dict(overrides or {})
    _validate_overrides(overrides)
    notify = notify or email_service.notify
    copy_policy = copy_policy or current_app.config.get('OFFER_COPY_POLICY', COPY_POLICY_BEST_EFFORT)
    if copy_policy not in (COPY_POLICY_BEST_EFFORT, COPY_POLICY_ATOMIC):
        raise ValueError(f"Unknown offer copy policy: {copy_policy}")

    if draft_no in (None, ''):
        draft_no = None
    else:
        draft_no = parse_int(draft_no, 'draft_no')

    source = resolve_draft_source(session, tenant, draft_no, overrides)
    buyer = get_buyer(session, tenant, overrides['buyer_id'])
    offer = _build_offer(tenant, buyer, source, overrides)
    products = source.products()
    warnings: List[PartialWriteWarning] = []

    try:
        session.add(offer)
        session.flush()
        offer_id = offer.id
        if copy_policy == COPY_POLICY_ATOMIC:
            _copy_products_atomic(session, offer, products)
        session.commit()
    except Exception:
        session.rollback()
        raise

    if copy_policy == COPY_POLICY_BEST_EFFORT:
        warnings = _copy_products_best_effort(session, offer_id, products)

    offers_promoted_total.labels(source=source.source).inc()
    logger.info(
        f"Offer {offer_id} promoted from {source.source} draft {draft_no} for owner "
        f"{tenant.business_owner_id} ({len(products)} products, {len(warnings)} skipped)"
    )

    offer = find_offer(session, tenant, offer_id)
    notification = _notify_buyer(offer, buyer, notify)

    return PromotionResult(offer=offer, source=source.source, warnings=warnings, notification=notification)
