"""
Public offer desk operations.

Every action takes the caller's bearer credential plus plain data and returns
an envelope instead of raising:

    {'success': True, 'data': ...}
    {'success': False, 'error': 'message'}

List actions add ``total_items``, ``total_pages``, ``page_index`` and
``page_size`` next to ``data``. Results are serialized once here: decimals
become numbers, dates ISO strings, and ``None`` fields are left out.
"""
import logging
from functools import wraps

from offerdesk.database import get_session
from offerdesk.exceptions import OfferDeskError
from offerdesk.services import (
    buyer_service,
    offer_draft_service,
    offer_promotion_service,
    offer_service,
)
from offerdesk.services.tenant_service import resolve_tenant
from offerdesk.utils.pagination import normalize_paging
from offerdesk.utils.serialization import serialize

logger = logging.getLogger(__name__)


class Result(dict):
    """Envelope dict that remembers the HTTP status it maps to."""

    def __init__(self, *args, status_code=200, **kwargs):
        super().__init__(*args, **kwargs)
        self.status_code = status_code


def success(data=None, **extra) -> Result:
    rv = Result(success=True, data=serialize(data))
    rv.update(serialize(extra))
    return rv


def failure(message: str, status_code: int = 400) -> Result:
    return Result(success=False, error=message, status_code=status_code)


def page_result(page, item_serializer) -> Result:
    body = page.to_dict(item_serializer)
    data = body.pop('data')
    return success(data, **body)


def _action(failure_message):
    """
    Resolve the tenant, run the operation and turn errors into envelopes.

    Anticipated errors keep their message; anything else is logged with its
    traceback and reported as ``failure_message``. The session is rolled back
    on every failure.
    """
    def decorator(f):
        @wraps(f)
        def wrapper(token, *args, **kwargs):
            session = get_session()
            try:
                tenant = resolve_tenant(token)
                return f(session, tenant, *args, **kwargs)
            except OfferDeskError as e:
                session.rollback()
                logger.info(f"{f.__name__} rejected [{e.status_code}]: {e.message}")
                return failure(e.message, e.status_code)
            except Exception:
                session.rollback()
                logger.exception(f"{f.__name__} failed")
                return failure(failure_message, 500)
        return wrapper
    return decorator


# Offer drafts

@_action('Failed to create offer draft')
def create_draft(session, tenant, data):
    draft = offer_draft_service.create_offer_draft(session, tenant, data or {})
    return success(draft.to_dict())


@_action('Failed to update offer draft')
def update_draft(session, tenant, draft_no, data):
    draft = offer_draft_service.update_offer_draft(session, tenant, draft_no, data or {})
    return success(draft.to_dict())


@_action('Failed to delete offer draft')
def delete_draft(session, tenant, draft_no):
    offer_draft_service.delete_offer_draft(session, tenant, draft_no)
    return success({'message': 'Offer draft deleted successfully'})


@_action('Failed to fetch offer draft')
def get_draft(session, tenant, draft_no):
    draft = offer_draft_service.get_offer_draft(session, tenant, draft_no)
    return success(draft.to_dict())


@_action('Failed to fetch offer drafts')
def search_drafts(session, tenant, draft_no=None, draft_name=None, product_name=None,
                  page_index=None, page_size=None):
    page = offer_draft_service.search_offer_drafts(
        session, tenant, normalize_paging(page_index, page_size),
        draft_no=draft_no, draft_name=draft_name, product_name=product_name
    )
    return page_result(page, lambda draft: draft.to_dict())


def list_drafts(token, page_index=None, page_size=None):
    return search_drafts(token, page_index=page_index, page_size=page_size)


@_action('Failed to fetch latest draft number')
def latest_draft_no(session, tenant):
    return success({'draft_no': offer_draft_service.get_latest_draft_no(session, tenant)})


@_action('Failed to suggest draft name')
def suggest_draft_name(session, tenant):
    return success({'draft_name': offer_draft_service.suggest_draft_name(session, tenant)})


# Offers

@_action('Failed to create offer')
def promote_draft_to_offer(session, tenant, draft_no, overrides, notify=None):
    result = offer_promotion_service.promote_draft_to_offer(
        session, tenant, draft_no, overrides or {}, notify=notify
    )
    return success(result.to_dict())


@_action('Failed to update offer')
def update_offer(session, tenant, offer_id, data):
    offer = offer_service.update_offer(session, tenant, offer_id, data or {})
    return success(offer.to_dict())


@_action('Failed to close offer')
def close_offer(session, tenant, offer_id):
    offer = offer_service.close_offer(session, tenant, offer_id)
    return success(offer.to_dict())


@_action('Failed to delete offer')
def delete_offer(session, tenant, offer_id):
    offer_service.delete_offer(session, tenant, offer_id)
    return success({'message': 'Offer deleted successfully'})


@_action('Failed to fetch offer')
def get_offer(session, tenant, offer_id):
    offer = offer_service.get_offer(session, tenant, offer_id)
    return success(offer.to_dict())


@_action('Failed to fetch offers')
def search_offers(session, tenant, offer_name=None, business_name=None, to_party=None,
                  buyer_name=None, product_name=None, status=None,
                  page_index=None, page_size=None):
    page = offer_service.search_offers(
        session, tenant, normalize_paging(page_index, page_size),
        offer_name=offer_name, business_name=business_name, to_party=to_party,
        buyer_name=buyer_name, product_name=product_name, status=status
    )
    return page_result(page, lambda offer: offer.to_dict())


def list_offers(token, status=None, page_index=None, page_size=None):
    return search_offers(token, status=status, page_index=page_index, page_size=page_size)


@_action('Failed to send offer email')
def send_offer_email(session, tenant, offer_id, buyer_email, buyer_name=None, subject=None, message=None):
    rv = offer_service.send_offer_email(session, tenant, offer_id, buyer_email, buyer_name, subject, message)
    return success(rv)


@_action('Failed to fetch buyers')
def list_buyers_for_offer(session, tenant, page_index=None, page_size=None):
    page = buyer_service.list_buyers_for_offer(session, tenant, normalize_paging(page_index, page_size))
    return page_result(page, lambda buyer: buyer.to_summary())


@_action('Failed to generate offer name')
def next_offer_name(session, tenant):
    return success({'offer_name': offer_service.get_next_offer_name(session, tenant)})
