"""Offer drafts JSON API."""
from flask import Blueprint, request

from offerdesk import actions
from offerdesk.middleware import bearer_token, envelope_response, json_payload

offer_drafts_bp = Blueprint('offer_drafts', __name__, url_prefix='/api/offer-drafts')


@offer_drafts_bp.route('', methods=['GET'])
def list_drafts():
    """Search drafts. Query: draft_no, draft_name, product_name, page_index, page_size."""
    result = actions.search_drafts(
        bearer_token(),
        draft_no=request.args.get('draft_no'),
        draft_name=request.args.get('draft_name'),
        product_name=request.args.get('product_name'),
        page_index=request.args.get('page_index'),
        page_size=request.args.get('page_size'),
    )
    return envelope_response(result)


@offer_drafts_bp.route('', methods=['POST'])
def create_draft():
    return envelope_response(actions.create_draft(bearer_token(), json_payload()))


@offer_drafts_bp.route('/latest-number', methods=['GET'])
def latest_draft_no():
    return envelope_response(actions.latest_draft_no(bearer_token()))


@offer_drafts_bp.route('/suggested-name', methods=['GET'])
def suggest_draft_name():
    return envelope_response(actions.suggest_draft_name(bearer_token()))


@offer_drafts_bp.route('/<draft_no>', methods=['GET'])
def get_draft(draft_no):
    return envelope_response(actions.get_draft(bearer_token(), draft_no))


@offer_drafts_bp.route('/<draft_no>', methods=['PATCH', 'PUT'])
def update_draft(draft_no):
    return envelope_response(actions.update_draft(bearer_token(), draft_no, json_payload()))


@offer_drafts_bp.route('/<draft_no>', methods=['DELETE'])
def delete_draft(draft_no):
    return envelope_response(actions.delete_draft(bearer_token(), draft_no))


@offer_drafts_bp.route('/<draft_no>/promote', methods=['POST'])
def promote_draft(draft_no):
    """Promote a draft to an offer. Body: offer_name, buyer_id, destination and overrides."""
    return envelope_response(actions.promote_draft_to_offer(bearer_token(), draft_no, json_payload()))
