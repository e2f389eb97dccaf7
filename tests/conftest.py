import pytest
from datetime import date, timedelta

from offerdesk import create_app
from offerdesk.database import create_schema, drop_schema, get_session
from offerdesk.models import BusinessOwner, Buyer
from offerdesk.services.tenant_service import TenantContext, issue_token


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite)."""
    app = create_app('config.TestingConfig')
    return app


@pytest.fixture(autouse=True)
def app_context(app):
    """Every test runs inside an application context."""
    with app.app_context():
        yield


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session():
    """Fresh schema and database session for each test."""
    create_schema()
    session = get_session()
    yield session
    session.rollback()
    session.remove()
    drop_schema()


@pytest.fixture(scope='function')
def owner1(session):
    """Create first business owner (tenant)."""
    owner = BusinessOwner(business_name='Coastal Seafoods', email='owner1@test.com', active=True)
    session.add(owner)
    session.commit()
    return owner


@pytest.fixture(scope='function')
def owner2(session):
    """Create second business owner for isolation tests."""
    owner = BusinessOwner(business_name='Harbor Exports', email='owner2@test.com', active=True)
    session.add(owner)
    session.commit()
    return owner


@pytest.fixture(scope='function')
def tenant1(owner1):
    return TenantContext(owner1.id, business_name=owner1.business_name, email=owner1.email)


@pytest.fixture(scope='function')
def tenant2(owner2):
    return TenantContext(owner2.id, business_name=owner2.business_name, email=owner2.email)


@pytest.fixture(scope='function')
def token1(owner1):
    """Bearer token for owner1."""
    return issue_token(owner1.id, business_name=owner1.business_name, email=owner1.email)


@pytest.fixture(scope='function')
def token2(owner2):
    """Bearer token for owner2."""
    return issue_token(owner2.id, business_name=owner2.business_name, email=owner2.email)


@pytest.fixture(scope='function')
def buyer1(session, owner1):
    """Active buyer of owner1."""
    buyer = Buyer(
        business_owner_id=owner1.id,
        company_name='Nordic Foods AB',
        contact_name='Erik Larsson',
        email='erik@nordicfoods.test',
        contact_email='purchasing@nordicfoods.test',
        country='Sweden',
        city='Gothenburg',
    )
    session.add(buyer)
    session.commit()
    return buyer


@pytest.fixture(scope='function')
def buyer2(session, owner2):
    """Active buyer of owner2."""
    buyer = Buyer(
        business_owner_id=owner2.id,
        company_name='Iberia Mariscos',
        contact_name='Lucia Ortega',
        email='lucia@iberia.test',
        country='Spain',
    )
    session.add(buyer)
    session.commit()
    return buyer


@pytest.fixture
def draft_payload():
    """
    Factory for a valid draft payload.

    Two products with breakups 10 + 5 and 3, so the grand total is 18.
    """
    def make(**overrides):
        payload = {
            'from_party': 'Coastal Seafoods',
            'origin': 'India',
            'processor': 'Coastal Processing Unit 2',
            'plant_approval_number': 'PA-1234',
            'brand': 'OceanPride',
            'draft_name': 'Vannamei March',
            'offer_validity_date': (date.today() + timedelta(days=10)).isoformat(),
            'shipment_date': (date.today() + timedelta(days=40)).isoformat(),
            'quantity': '1 FCL',
            'payment_terms': 'CAD',
            'grand_total': 18,
            'products': [
                {
                    'product_id': 'P-100',
                    'product_name': 'Vannamei Shrimp',
                    'species': 'Litopenaeus vannamei',
                    'packing': '10 x 1 kg',
                    'size_breakups': [
                        {'size': '16/20', 'breakup': 10, 'price': '8.50', 'condition': 'IQF'},
                        {'size': '21/25', 'breakup': 5, 'price': 7.25},
                    ],
                },
                {
                    'product_id': 'P-200',
                    'product_name': 'Black Tiger',
                    'species': 'Penaeus monodon',
                    'size_breakups': [
                        {'size': 'U/10', 'breakup': 3, 'price': 14},
                    ],
                },
            ],
        }
        payload.update(overrides)
        return payload
    return make
