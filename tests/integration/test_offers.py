"""
Integration tests for the offer store: read, update, close, delete, search and email.
"""

import pytest
from datetime import date, timedelta

from offerdesk import actions
from offerdesk.models import Buyer, BuyerStatus, Offer
from offerdesk.services import email_service, offer_service


def _silent(*args, **kwargs):
    return {'success': True}


@pytest.fixture
def offer(session, token1, buyer1, draft_payload):
    """An open offer promoted from a stored draft."""
    actions.create_draft(token1, draft_payload())
    result = actions.promote_draft_to_offer(token1, 1, {
        'offer_name': 'OFFER-20250301-001',
        'buyer_id': buyer1.id,
        'destination': 'Gothenburg, SE',
    }, notify=_silent)
    return result['data']['offer']


class TestGetOffer:
    """Tests for reading offers."""

    def test_get_offer(self, offer, token1):
        result = actions.get_offer(token1, offer['id'])

        assert result['success'] is True
        assert result['data'] == offer

    def test_unknown_offer(self, session, token1):
        result = actions.get_offer(token1, 12345)

        assert result == {'success': False, 'error': 'Offer not found or access denied'}
        assert result.status_code == 404

    def test_non_numeric_id(self, session, token1):
        assert actions.get_offer(token1, 'abc')['success'] is False


class TestUpdateOffer:
    """Tests for offer header updates."""

    def test_update_fields(self, offer, token1):
        result = actions.update_offer(token1, offer['id'], {
            'destination': 'Rotterdam, NL',
            'remark': 'Revised port',
            'payment_terms': '',
        })

        assert result['success'] is True
        assert result['data']['destination'] == 'Rotterdam, NL'
        assert result['data']['remark'] == 'Revised port'
        assert result['data']['payment_terms'] == 'CAD'

    def test_non_editable_fields_are_ignored(self, offer, token1):
        result = actions.update_offer(token1, offer['id'], {'grand_total': 1, 'status': 'close'})

        assert result['data']['grand_total'] == 18
        assert result['data']['status'] == 'open'

    def test_shipment_before_validity_rejected(self, offer, token1):
        too_early = (date.today() + timedelta(days=1)).isoformat()

        result = actions.update_offer(token1, offer['id'], {'shipment_date': too_early})

        assert result['success'] is False
        assert actions.get_offer(token1, offer['id'])['data']['shipment_date'] == offer['shipment_date']


class TestOfferLifecycle:
    """Tests for close and soft delete."""

    def test_close_offer(self, offer, token1):
        result = actions.close_offer(token1, offer['id'])

        assert result['success'] is True
        assert result['data']['status'] == 'close'

    def test_closed_offer_cannot_be_closed_again(self, offer, token1):
        actions.close_offer(token1, offer['id'])

        result = actions.close_offer(token1, offer['id'])

        assert result == {'success': False, 'error': 'Offer is already closed'}

    def test_delete_offer_is_soft(self, session, offer, token1):
        assert actions.delete_offer(token1, offer['id'])['success'] is True

        assert actions.get_offer(token1, offer['id'])['success'] is False
        assert actions.list_offers(token1)['total_items'] == 0
        stored = session.query(Offer).filter_by(id=offer['id']).one()
        assert stored.is_deleted is True
        assert len(stored.products) == 2

    def test_closed_offer_can_be_deleted(self, offer, token1):
        actions.close_offer(token1, offer['id'])

        assert actions.delete_offer(token1, offer['id'])['success'] is True


class TestSearchOffers:
    """Tests for offer search filters."""

    @pytest.fixture
    def offers(self, session, owner1, token1, buyer1, draft_payload):
        other_buyer = Buyer(business_owner_id=owner1.id, company_name='Kyoto Trading',
                            contact_name='Haruto Sato', email='haruto@kyoto.test', country='Japan')
        session.add(other_buyer)
        session.commit()

        actions.create_draft(token1, draft_payload())
        first = actions.promote_draft_to_offer(token1, 1, {
            'offer_name': 'Spring Vannamei', 'buyer_id': buyer1.id, 'destination': 'Gothenburg'
        }, notify=_silent)['data']['offer']
        second = actions.promote_draft_to_offer(token1, None, {
            'offer_name': 'Squid Clearance', 'buyer_id': other_buyer.id, 'destination': 'Osaka',
            'products': [{'product_name': 'Squid Rings', 'size_breakups': [{'size': 'M', 'breakup': 1, 'price': 2}]}],
        }, notify=_silent)['data']['offer']
        actions.close_offer(token1, second['id'])
        return first, second

    def test_filter_by_offer_name(self, offers, token1):
        result = actions.search_offers(token1, offer_name='squid')

        assert [o['offer_name'] for o in result['data']] == ['Squid Clearance']

    def test_filter_by_buyer_contact_name(self, offers, token1):
        result = actions.search_offers(token1, buyer_name='ERIK')

        assert [o['offer_name'] for o in result['data']] == ['Spring Vannamei']

    def test_filter_by_buyer_company_name(self, offers, token1):
        result = actions.search_offers(token1, buyer_name='kyoto')

        assert [o['offer_name'] for o in result['data']] == ['Squid Clearance']

    def test_filter_by_product_name(self, offers, token1):
        result = actions.search_offers(token1, product_name='tiger')

        assert [o['offer_name'] for o in result['data']] == ['Spring Vannamei']

    def test_filter_by_to_party(self, offers, token1):
        result = actions.search_offers(token1, to_party='nordic')

        assert result['total_items'] == 1

    def test_filter_by_status(self, offers, token1):
        open_offers = actions.list_offers(token1, status='open')
        closed_offers = actions.list_offers(token1, status='close')

        assert [o['offer_name'] for o in open_offers['data']] == ['Spring Vannamei']
        assert [o['offer_name'] for o in closed_offers['data']] == ['Squid Clearance']

    def test_invalid_status(self, offers, token1):
        result = actions.list_offers(token1, status='archived')

        assert result['success'] is False
        assert 'Invalid status' in result['error']

    def test_list_paging(self, offers, token1):
        result = actions.list_offers(token1, page_index=0, page_size=1)

        assert result['total_items'] == 2
        assert result['total_pages'] == 2
        assert len(result['data']) == 1

    def test_wildcards_match_literally(self, offers, token1):
        assert actions.search_offers(token1, offer_name='%')['total_items'] == 0
        assert actions.search_offers(token1, to_party='_')['total_items'] == 0
        assert actions.search_offers(token1, buyer_name='%')['total_items'] == 0
        assert actions.search_offers(token1, product_name='Squid_Rings')['total_items'] == 0


class TestNextOfferName:
    """Tests for offer name suggestions."""

    def test_first_offer(self, session, tenant1):
        name = offer_service.get_next_offer_name(session, tenant1, today=date(2025, 1, 15))

        assert name == 'OFFER-20250115-001'

    def test_continues_trailing_number(self, session, tenant1, token1, buyer1):
        actions.promote_draft_to_offer(token1, None, {
            'offer_name': 'OFFER-20250110-007', 'buyer_id': buyer1.id, 'destination': 'Gothenburg'
        }, notify=_silent)

        name = offer_service.get_next_offer_name(session, tenant1, today=date(2025, 1, 15))

        assert name == 'OFFER-20250115-008'

    def test_name_without_number_uses_id(self, session, tenant1, token1, buyer1):
        offer = actions.promote_draft_to_offer(token1, None, {
            'offer_name': 'Special lot', 'buyer_id': buyer1.id, 'destination': 'Gothenburg'
        }, notify=_silent)['data']['offer']

        name = offer_service.get_next_offer_name(session, tenant1, today=date(2025, 1, 15))

        assert name == f"OFFER-20250115-{offer['id'] + 1:03d}"

    def test_action(self, session, token1):
        assert actions.next_offer_name(token1)['data']['offer_name'].startswith('OFFER-')


class TestSendOfferEmail:
    """Tests for emailing an offer to a buyer."""

    def test_send(self, offer, token1, monkeypatch):
        sent = []

        def fake_send(to, subject, html=None, text=None, max_attempts=None):
            sent.append({'to': to, 'subject': subject, 'text': text})
            return {'success': True}
        monkeypatch.setattr(email_service, 'send_email_with_retry', fake_send)

        result = actions.send_offer_email(token1, offer['id'], 'erik@nordicfoods.test',
                                          buyer_name='Erik', subject='Our offer', message='Please review.')

        assert result['success'] is True
        assert sent[0]['to'] == 'erik@nordicfoods.test'
        assert 'Products: 2 items' in sent[0]['text']
        assert f"http://testserver/offers/{offer['id']}" in sent[0]['text']

    def test_delivery_failure_is_reported(self, offer, token1, monkeypatch):
        monkeypatch.setattr(email_service, 'send_email_with_retry',
                            lambda *args, **kwargs: {'success': False, 'error': 'SMTP down'})

        result = actions.send_offer_email(token1, offer['id'], 'erik@nordicfoods.test', subject='Our offer')

        assert result == {'success': False, 'error': 'SMTP down'}
        assert result.status_code == 502

    def test_recipient_required(self, offer, token1):
        result = actions.send_offer_email(token1, offer['id'], '', subject='Our offer')

        assert result == {'success': False, 'error': 'Buyer email is required'}


class TestBuyersForOffer:
    """Tests for the buyer picker."""

    def test_only_active_buyers_of_tenant(self, session, owner1, token1, buyer1, buyer2):
        session.add_all([
            Buyer(business_owner_id=owner1.id, company_name='Dormant Ltd', contact_name='A',
                  email='a@dormant.test', country='UK', status=BuyerStatus.INACTIVE.value),
            Buyer(business_owner_id=owner1.id, company_name='Gone Ltd', contact_name='B',
                  email='b@gone.test', country='UK', is_deleted=True),
        ])
        session.commit()

        result = actions.list_buyers_for_offer(token1)

        assert result['success'] is True
        assert [b['company_name'] for b in result['data']] == ['Nordic Foods AB']
        assert result['data'][0]['contact_email'] == 'purchasing@nordicfoods.test'
