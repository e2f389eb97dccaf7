"""Offer draft service - create, update, soft delete and search drafts (multi-tenant)."""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from offerdesk.blueprints.metrics import offer_drafts_created_total
from offerdesk.models import OfferDraft, OfferDraftProduct, OfferDraftSizeBreakup, Product
from offerdesk.exceptions import NotFoundError, StructuralError, ValidationError
from offerdesk.services.draft_validator import (
    REQUIRED_DRAFT_FIELDS,
    validate_dates,
    validate_products_present,
    validate_required_fields,
    validate_size_breakups,
)
from offerdesk.services.tenant_service import TenantContext
from offerdesk.utils.number_format import PRICE_PLACES, QUANTITY_PLACES, parse_date, parse_int, to_decimal
from offerdesk.utils.pagination import Page, paginate
from offerdesk.utils.search import LIKE_ESCAPE, contains_pattern

logger = logging.getLogger(__name__)

UPDATABLE_DRAFT_FIELDS = (
    'from_party', 'origin', 'processor', 'plant_approval_number', 'brand', 'draft_name',
    'offer_validity_date', 'shipment_date', 'quantity', 'tolerance', 'payment_terms',
    'remark', 'grand_total',
)

PRODUCT_DETAIL_FIELDS = ('packing', 'size_details', 'breakup_details', 'price_details', 'condition_details')

# A concurrent create can take the same max + 1 number once
DRAFT_NO_ATTEMPTS = 2


def _clean(value: Any) -> Optional[str]:
    """Strip strings, mapping blanks to None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _drafts_query(session: Session, tenant: TenantContext):
    return session.query(OfferDraft).filter(
        OfferDraft.business_owner_id == tenant.business_owner_id,
        OfferDraft.is_deleted == False  # noqa: E712
    )


def _draft_name_taken(session: Session, tenant: TenantContext, draft_name: str, exclude_id: Optional[int] = None) -> bool:
    """Case-sensitive exact match among the tenant's non-deleted drafts."""
    query = _drafts_query(session, tenant).filter(OfferDraft.draft_name == draft_name)
    if exclude_id:
        query = query.filter(OfferDraft.id != exclude_id)
    return session.query(query.exists()).scalar()


def _duplicate_name_error(draft_name: str) -> ValidationError:
    return ValidationError(f'A draft with the name "{draft_name}" already exists.', status_code=409)


def _next_draft_no(session: Session, tenant: TenantContext) -> int:
    """Next sequential draft number for the tenant (deleted drafts keep theirs)."""
    last = session.query(func.max(OfferDraft.draft_no)).filter(
        OfferDraft.business_owner_id == tenant.business_owner_id
    ).scalar()
    return (last or 0) + 1


def _is_draft_no_conflict(error: IntegrityError) -> bool:
    """True when the unique draft number per tenant was violated."""
    message = str(error.orig)
    return 'uq_offer_draft_owner_draft_no' in message or 'offer_draft.draft_no' in message


def _insert_draft(session: Session, tenant: TenantContext, header: Dict[str, Any],
                  products: List[Dict[str, Any]], details: List[Dict[str, Any]]) -> OfferDraft:
    """Add the draft under the next free number plus its nested rows; the caller commits."""
    draft = OfferDraft(
        business_owner_id=tenant.business_owner_id,
        draft_no=_next_draft_no(session, tenant),
        **header
    )
    session.add(draft)
    session.flush()

    for product_data, product_details in zip(products, details):
        _add_draft_product(session, draft, product_data, product_details)
    return draft


def _catalog_details(session: Session, tenant: TenantContext, product_data: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """
    Fill a missing product name or species from the tenant's catalog.

    Only numeric product references can point at the catalog.
    """
    name = _clean(product_data.get('product_name'))
    species = _clean(product_data.get('species'))
    reference = _clean(product_data.get('product_id'))

    if (name and species) or not reference or not reference.isdigit():
        return {'product_name': name, 'species': species}

    product = session.query(Product).filter(
        Product.id == int(reference),
        Product.business_owner_id == tenant.business_owner_id
    ).first()
    if product:
        name = name or product.product_name
        if not species and product.species:
            species = ', '.join(product.species)
    return {'product_name': name, 'species': species}


def _add_draft_product(session: Session, draft: OfferDraft, product_data: Dict[str, Any], details: Dict[str, Optional[str]]) -> OfferDraftProduct:
    """Insert one draft product and its size breakups."""
    draft_product = OfferDraftProduct(
        draft_id=draft.id,
        product_id=_clean(product_data.get('product_id')),
        product_name=details['product_name'],
        species=details['species'],
        **{name: _clean(product_data.get(name)) for name in PRODUCT_DETAIL_FIELDS}
    )
    session.add(draft_product)
    session.flush()

    for breakup in product_data['size_breakups']:
        session.add(OfferDraftSizeBreakup(
            draft_product_id=draft_product.id,
            size=str(breakup['size']).strip(),
            breakup=to_decimal(breakup.get('breakup') or 0, 'breakup', QUANTITY_PLACES),
            price=to_decimal(breakup.get('price'), 'price', PRICE_PLACES),
            condition=_clean(breakup.get('condition')),
        ))
    session.flush()
    return draft_product


def find_offer_draft(session: Session, tenant: TenantContext, draft_no: int) -> Optional[OfferDraft]:
    """Tenant-scoped, non-deleted lookup by draft number."""
    return _drafts_query(session, tenant).filter(
        OfferDraft.draft_no == draft_no
    ).options(
        selectinload(OfferDraft.products).selectinload(OfferDraftProduct.size_breakups)
    ).first()


def get_offer_draft(session: Session, tenant: TenantContext, draft_no: Any) -> OfferDraft:
    """Like :func:`find_offer_draft` but raises NotFoundError."""
    draft = find_offer_draft(session, tenant, parse_int(draft_no, 'draft_no'))
    if not draft:
        raise NotFoundError('Offer draft not found')
    return draft


def create_offer_draft(session: Session, tenant: TenantContext, data: Dict[str, Any]) -> OfferDraft:
    """
    Create a draft with its products and size breakups in one transaction.

    All validation happens before the first insert. Either the draft and every
    nested row are committed, or nothing is.
    """
    validate_required_fields(data)
    products = validate_products_present(data.get('products'))
    validate_size_breakups(products, data.get('grand_total'))

    offer_validity_date = parse_date(data.get('offer_validity_date'), 'offer_validity_date')
    shipment_date = parse_date(data.get('shipment_date'), 'shipment_date')
    validate_dates(offer_validity_date, shipment_date)

    details = []
    for position, product_data in enumerate(products, start=1):
        product_details = _catalog_details(session, tenant, product_data)
        if not product_details['product_name']:
            raise StructuralError(f'Product #{position} must have a product name')
        details.append(product_details)

    draft_name = _clean(data.get('draft_name'))
    if draft_name and _draft_name_taken(session, tenant, draft_name):
        raise _duplicate_name_error(draft_name)

    header = dict(
        from_party=_clean(data['from_party']),
        origin=_clean(data['origin']),
        processor=_clean(data.get('processor')),
        plant_approval_number=_clean(data['plant_approval_number']),
        brand=_clean(data['brand']),
        draft_name=draft_name,
        offer_validity_date=offer_validity_date,
        shipment_date=shipment_date,
        quantity=_clean(data.get('quantity')),
        tolerance=_clean(data.get('tolerance')),
        payment_terms=_clean(data.get('payment_terms')),
        remark=_clean(data.get('remark')),
        grand_total=to_decimal(data.get('grand_total'), 'grand_total', QUANTITY_PLACES),
    )

    for attempt in range(1, DRAFT_NO_ATTEMPTS + 1):
        try:
            draft = _insert_draft(session, tenant, header, products, details)
            session.commit()
            break
        except IntegrityError as e:
            session.rollback()
            # Lost a race on the partial unique index for the name
            if draft_name and _draft_name_taken(session, tenant, draft_name):
                raise _duplicate_name_error(draft_name)
            if attempt < DRAFT_NO_ATTEMPTS and _is_draft_no_conflict(e):
                logger.warning(f"Draft number race for owner {tenant.business_owner_id}, retrying")
                continue
            raise
        except Exception:
            session.rollback()
            raise

    offer_drafts_created_total.inc()
    logger.info(f"Offer draft {draft.draft_no} created for owner {tenant.business_owner_id} ({len(products)} products)")
    return find_offer_draft(session, tenant, draft.draft_no)


def update_offer_draft(session: Session, tenant: TenantContext, draft_no: Any, data: Dict[str, Any]) -> OfferDraft:
    """
    Update only the draft fields present in ``data``.

    Dates are re-validated using the effective values (new value if given,
    stored value otherwise). Nested products are not touched, so a new
    ``grand_total`` must still match the stored breakups.
    """
    draft = get_offer_draft(session, tenant, draft_no)
    changes = {name: data[name] for name in UPDATABLE_DRAFT_FIELDS if name in data}

    if 'offer_validity_date' in changes:
        changes['offer_validity_date'] = parse_date(changes['offer_validity_date'], 'offer_validity_date')
    if 'shipment_date' in changes:
        changes['shipment_date'] = parse_date(changes['shipment_date'], 'shipment_date')
    validate_dates(
        changes.get('offer_validity_date', draft.offer_validity_date),
        changes.get('shipment_date', draft.shipment_date),
    )

    required_changes = [name for name in REQUIRED_DRAFT_FIELDS if name in changes]
    if required_changes:
        validate_required_fields(changes, required_changes)

    if 'draft_name' in changes:
        changes['draft_name'] = _clean(changes['draft_name'])
        new_name = changes['draft_name']
        if new_name and new_name != draft.draft_name and _draft_name_taken(session, tenant, new_name, exclude_id=draft.id):
            raise _duplicate_name_error(new_name)

    if 'grand_total' in changes:
        changes['grand_total'] = to_decimal(changes['grand_total'], 'grand_total', QUANTITY_PLACES)
        validate_size_breakups(
            [product.to_dict() for product in draft.products],
            changes['grand_total']
        )

    try:
        for name, value in changes.items():
            if isinstance(value, str):
                value = _clean(value)
            setattr(draft, name, value)
        session.commit()
    except IntegrityError:
        session.rollback()
        if changes.get('draft_name'):
            raise _duplicate_name_error(changes['draft_name'])
        raise
    except Exception:
        session.rollback()
        raise

    return find_offer_draft(session, tenant, draft.draft_no)


def delete_offer_draft(session: Session, tenant: TenantContext, draft_no: Any) -> None:
    """Soft delete: flag the draft, keep it and its nested rows in storage."""
    draft = get_offer_draft(session, tenant, draft_no)
    try:
        draft.is_deleted = True
        draft.deleted_at = datetime.now(timezone.utc)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info(f"Offer draft {draft.draft_no} soft-deleted for owner {tenant.business_owner_id}")


def search_offer_drafts(
    session: Session,
    tenant: TenantContext,
    page: Page,
    draft_no: Optional[Any] = None,
    draft_name: Optional[str] = None,
    product_name: Optional[str] = None
) -> Page:
    """
    List the tenant's non-deleted drafts, newest first.

    Filters: exact draft number, case-insensitive substring on the draft name
    and on the name of any nested product.
    """
    query = _drafts_query(session, tenant)

    if draft_no not in (None, ''):
        query = query.filter(OfferDraft.draft_no == parse_int(draft_no, 'draft_no'))

    draft_name = _clean(draft_name)
    if draft_name:
        query = query.filter(OfferDraft.draft_name.ilike(contains_pattern(draft_name), escape=LIKE_ESCAPE))

    product_name = _clean(product_name)
    if product_name:
        matching_ids = [
            row.draft_id for row in session.query(OfferDraftProduct.draft_id).join(OfferDraft).filter(
                OfferDraft.business_owner_id == tenant.business_owner_id,
                OfferDraftProduct.product_name.ilike(contains_pattern(product_name), escape=LIKE_ESCAPE)
            ).distinct()
        ]
        if not matching_ids:
            return page
        query = query.filter(OfferDraft.id.in_(matching_ids))

    query = query.options(
        selectinload(OfferDraft.products).selectinload(OfferDraftProduct.size_breakups)
    ).order_by(OfferDraft.created_at.desc(), OfferDraft.draft_no.desc())

    return paginate(query, page)


def get_latest_draft_no(session: Session, tenant: TenantContext) -> Optional[int]:
    """Highest draft number among the tenant's non-deleted drafts."""
    return session.query(func.max(OfferDraft.draft_no)).filter(
        OfferDraft.business_owner_id == tenant.business_owner_id,
        OfferDraft.is_deleted == False  # noqa: E712
    ).scalar()


def suggest_draft_name(session: Session, tenant: TenantContext, today: Optional[date] = None) -> str:
    """Suggested name for the next draft, e.g. ``"20/30-12-25"`` (sequence/DD-MM-YY)."""
    today = today or date.today()
    sequence = _next_draft_no(session, tenant)
    return f"{sequence}/{today.strftime('%d-%m-%y')}"


