"""
Integration tests for the JSON HTTP endpoints.
"""

import pytest


def _auth(token):
    return {'Authorization': f'Bearer {token}'}


class TestOfferDraftEndpoints:
    """Tests for /api/offer-drafts."""

    def test_requires_bearer_token(self, session, client, draft_payload):
        response = client.post('/api/offer-drafts', json=draft_payload())

        assert response.status_code == 401
        assert response.get_json() == {'success': False, 'error': 'Authentication required'}

    def test_create_and_fetch(self, session, client, token1, draft_payload):
        response = client.post('/api/offer-drafts', json=draft_payload(), headers=_auth(token1))

        assert response.status_code == 200
        assert response.get_json()['data']['draft_no'] == 1

        response = client.get('/api/offer-drafts/1', headers=_auth(token1))
        body = response.get_json()
        assert body['success'] is True
        assert body['data']['grand_total'] == 18

    def test_validation_error_status(self, session, client, token1, draft_payload):
        response = client.post('/api/offer-drafts', json=draft_payload(grand_total=17), headers=_auth(token1))

        assert response.status_code == 400
        assert '18' in response.get_json()['error']

    def test_search_with_query_parameters(self, session, client, token1, draft_payload):
        client.post('/api/offer-drafts', json=draft_payload(), headers=_auth(token1))

        response = client.get('/api/offer-drafts?product_name=tiger&page_size=5', headers=_auth(token1))

        body = response.get_json()
        assert body['total_items'] == 1
        assert body['page_size'] == 5

    def test_update_and_delete(self, session, client, token1, draft_payload):
        client.post('/api/offer-drafts', json=draft_payload(), headers=_auth(token1))

        response = client.patch('/api/offer-drafts/1', json={'remark': 'Updated'}, headers=_auth(token1))
        assert response.get_json()['data']['remark'] == 'Updated'

        response = client.delete('/api/offer-drafts/1', headers=_auth(token1))
        assert response.status_code == 200

        response = client.get('/api/offer-drafts/1', headers=_auth(token1))
        assert response.status_code == 404

    def test_numbering_helpers(self, session, client, token1, draft_payload):
        client.post('/api/offer-drafts', json=draft_payload(), headers=_auth(token1))

        assert client.get('/api/offer-drafts/latest-number', headers=_auth(token1)).get_json()['data'] == {'draft_no': 1}
        name = client.get('/api/offer-drafts/suggested-name', headers=_auth(token1)).get_json()['data']['draft_name']
        assert name.startswith('2/')


class TestOfferEndpoints:
    """Tests for promotion and /api/offers."""

    @pytest.fixture
    def offer_id(self, session, client, token1, buyer1, draft_payload):
        client.post('/api/offer-drafts', json=draft_payload(), headers=_auth(token1))
        response = client.post('/api/offer-drafts/1/promote', json={
            'offer_name': 'OFFER-20250301-001',
            'buyer_id': buyer1.id,
            'destination': 'Gothenburg, SE',
        }, headers=_auth(token1))
        assert response.status_code == 200
        return response.get_json()['data']['offer']['id']

    def test_get_and_list(self, client, token1, offer_id):
        assert client.get(f'/api/offers/{offer_id}', headers=_auth(token1)).get_json()['data']['status'] == 'open'

        body = client.get('/api/offers?status=open&buyer_name=nordic', headers=_auth(token1)).get_json()
        assert body['total_items'] == 1

    def test_close(self, client, token1, offer_id):
        response = client.post(f'/api/offers/{offer_id}/close', headers=_auth(token1))

        assert response.get_json()['data']['status'] == 'close'

    def test_other_tenant_gets_404(self, client, token2, offer_id):
        response = client.get(f'/api/offers/{offer_id}', headers=_auth(token2))

        assert response.status_code == 404

    def test_buyers_and_next_name(self, client, token1, offer_id):
        buyers = client.get('/api/offers/buyers', headers=_auth(token1)).get_json()
        assert buyers['data'][0]['company_name'] == 'Nordic Foods AB'

        name = client.get('/api/offers/next-name', headers=_auth(token1)).get_json()['data']['offer_name']
        assert name.endswith('-002')

    def test_email_requires_subject(self, client, token1, offer_id):
        response = client.post(f'/api/offers/{offer_id}/email',
                               json={'buyer_email': 'erik@nordicfoods.test'}, headers=_auth(token1))

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Email subject is required'


class TestMetrics:
    """Tests for the /metrics endpoint."""

    def test_metrics_exposes_domain_counters(self, session, client, token1, draft_payload):
        client.post('/api/offer-drafts', json=draft_payload(), headers=_auth(token1))

        response = client.get('/metrics')

        assert response.status_code == 200
        text = response.get_data(as_text=True)
        assert 'offer_drafts_created_total' in text
        assert 'http_requests_total' in text

    def test_unknown_route_is_json(self, client):
        response = client.get('/api/nothing-here')

        assert response.status_code == 404
        assert response.get_json() == {'success': False, 'error': 'Not Found'}
