from decimal import Decimal

import pytest
from protean.integrations.pytest import DomainFixture

from checkout.cart.product import Product, WarrantyTerms
from checkout.cart.service import CartService
from checkout.config import CheckoutSettings
from checkout.dropship.allocator import ShipmentAllocator
from checkout.gateways.fake_adapter import fake_gateways
from checkout.session.service import Actor, ActorRole, SessionService
from checkout.shared.customer import CustomerDetails
from checkout.submission.flow import CheckoutFlow


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout

    bed = DomainFixture(checkout)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    with checkout_bed.domain_context():
        yield


@pytest.fixture
def settings():
    return CheckoutSettings()


@pytest.fixture
def router():
    return Product(id="prod-router", name="Wi-Fi Router", base_price=Decimal("100.00"), retailer_price=Decimal("80.00"))


@pytest.fixture
def modem():
    return Product(
        id="prod-modem",
        name="LTE Modem",
        base_price=Decimal("250.00"),
        retailer_price=Decimal("200.00"),
        is_telecom=True,
        max_direct_purchase_qty=5,
    )


@pytest.fixture
def camera():
    return Product(
        id="prod-camera",
        name="Security Camera",
        base_price=Decimal("1000.00"),
        tax_percentage=Decimal("5"),
        warranty=WarrantyTerms(
            standard_months=12,
            extended_available=True,
            extended_months=24,
            extended_price=Decimal("150.00"),
        ),
    )


@pytest.fixture
def cable():
    return Product(id="prod-cable", name="Ethernet Cable", base_price=Decimal("9.99"))


@pytest.fixture
def user():
    return Actor(id="user-001", name="Asha Rao", email="asha@example.com", role=ActorRole.USER)


@pytest.fixture
def retailer():
    return Actor(id="ret-001", name="Kiran Traders", email="orders@kiran.example.com", role=ActorRole.RETAILER)


@pytest.fixture
def session_service(user):
    return SessionService(user)


@pytest.fixture
def cart_service():
    return CartService()


@pytest.fixture
def allocator(cart_service, session_service, settings):
    return ShipmentAllocator(cart_service, session_service, settings)


@pytest.fixture
def gateways():
    return fake_gateways()


@pytest.fixture
def flow(cart_service, session_service, allocator, gateways, settings):
    return CheckoutFlow(cart_service, session_service, allocator, gateways, settings)


@pytest.fixture
def address():
    return CustomerDetails(
        name="Asha Rao",
        email="asha@example.com",
        phone="9876543210",
        street="12 MG Road",
        landmark="Near City Mall",
        city="Pune",
        state="Maharashtra",
        postal_code="411001",
    )


@pytest.fixture
def recipient():
    return CustomerDetails(
        name="Vikram Shah",
        email="vikram@example.com",
        phone="9123456780",
        street="4 Park Street",
        city="Kolkata",
        state="West Bengal",
        postal_code="700016",
    )
