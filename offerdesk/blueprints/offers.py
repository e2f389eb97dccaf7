"""Offers JSON API."""
from flask import Blueprint, request

from offerdesk import actions
from offerdesk.middleware import bearer_token, envelope_response, json_payload

offers_bp = Blueprint('offers', __name__, url_prefix='/api/offers')


@offers_bp.route('', methods=['GET'])
def list_offers():
    """
    Search offers.

    Query: offer_name, business_name, to_party, buyer_name, product_name,
    status, page_index, page_size.
    """
    result = actions.search_offers(
        bearer_token(),
        offer_name=request.args.get('offer_name'),
        business_name=request.args.get('business_name'),
        to_party=request.args.get('to_party'),
        buyer_name=request.args.get('buyer_name'),
        product_name=request.args.get('product_name'),
        status=request.args.get('status'),
        page_index=request.args.get('page_index'),
        page_size=request.args.get('page_size'),
    )
    return envelope_response(result)


@offers_bp.route('/next-name', methods=['GET'])
def next_offer_name():
    return envelope_response(actions.next_offer_name(bearer_token()))


@offers_bp.route('/buyers', methods=['GET'])
def list_buyers():
    result = actions.list_buyers_for_offer(
        bearer_token(),
        page_index=request.args.get('page_index'),
        page_size=request.args.get('page_size'),
    )
    return envelope_response(result)


@offers_bp.route('/<offer_id>', methods=['GET'])
def get_offer(offer_id):
    return envelope_response(actions.get_offer(bearer_token(), offer_id))


@offers_bp.route('/<offer_id>', methods=['PATCH', 'PUT'])
def update_offer(offer_id):
    return envelope_response(actions.update_offer(bearer_token(), offer_id, json_payload()))


@offers_bp.route('/<offer_id>', methods=['DELETE'])
def delete_offer(offer_id):
    return envelope_response(actions.delete_offer(bearer_token(), offer_id))


@offers_bp.route('/<offer_id>/close', methods=['POST'])
def close_offer(offer_id):
    return envelope_response(actions.close_offer(bearer_token(), offer_id))


@offers_bp.route('/<offer_id>/email', methods=['POST'])
def send_offer_email(offer_id):
    """Email the offer. Body: buyer_email, buyer_name, subject, message."""
    data = json_payload()
    result = actions.send_offer_email(
        bearer_token(),
        offer_id,
        data.get('buyer_email'),
        buyer_name=data.get('buyer_name'),
        subject=data.get('subject'),
        message=data.get('message'),
    )
    return envelope_response(result)
