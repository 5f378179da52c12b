from decimal import Decimal

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from storefront.adapters.memory import InMemoryCatalogue, InMemoryOrderDesk, StaticCheckoutConfiguration
from storefront.cart.cart import Cart, CartOwner
from storefront.cart.store import CartStore
from storefront.catalogue import Product, ProductStatus
from storefront.shop import Storefront
from storefront.pricing.models import Coupon, DiscountType, ShippingMethod, TaxRule


@pytest.fixture()
def laptop():
    return Product(id="prod-laptop", title="Laptop", price=Decimal("1000"), stock=5, category_id="cat-computers")


@pytest.fixture()
def mouse():
    return Product(id="prod-mouse", title="Mouse", price=Decimal("25"), sale_price=Decimal("20"), stock=10)


@pytest.fixture()
def cable():
    return Product(id="prod-cable", title="Cable", price=Decimal("10"), stock=1)


@pytest.fixture()
def retired():
    return Product(id="prod-retired", title="Retired", price=Decimal("50"), stock=3, status=ProductStatus.INACTIVE)


@pytest.fixture()
def catalogue(laptop, mouse, cable, retired):
    return InMemoryCatalogue([laptop, mouse, cable, retired])


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


@pytest.fixture()
def carts():
    return current_domain.repository_for(Cart)


@pytest.fixture()
def guest():
    return CartOwner.guest("sess-001")


@pytest.fixture()
def user():
    return CartOwner.user("user-001")


@pytest.fixture()
def guest_store(guest, catalogue):
    return CartStore(guest, catalogue)


@pytest.fixture()
def user_store(user, catalogue):
    return CartStore(user, catalogue)


@pytest.fixture()
def coupons():
    return [
        Coupon(code="SAVE10", discount_type=DiscountType.PERCENTAGE, amount=Decimal("10")),
        Coupon(code="BIG100", discount_type=DiscountType.FIXED, amount=Decimal("100"), min_amount=Decimal("1500")),
        Coupon(
            code="HALF",
            discount_type=DiscountType.PERCENTAGE,
            amount=Decimal("50"),
            max_discount=Decimal("150"),
        ),
        Coupon(code="OLD", discount_type=DiscountType.FIXED, amount=Decimal("5"), active=False),
    ]


@pytest.fixture()
def tax_rules():
    return [
        TaxRule(min=Decimal("0"), max=Decimal("499.99"), rate=Decimal("0.10")),
        TaxRule(min=Decimal("500"), rate=Decimal("0.16")),
    ]


@pytest.fixture()
def shipping_methods():
    return [
        ShippingMethod(name="Standard", cost=Decimal("200")),
        ShippingMethod(name="Express", cost=Decimal("500")),
        ShippingMethod(name="Free Shipping", cost=Decimal("200"), min_free=Decimal("5000")),
    ]


@pytest.fixture()
def configuration(coupons, tax_rules, shipping_methods):
    return StaticCheckoutConfiguration(coupons=coupons, tax_rules=tax_rules, shipping_methods=shipping_methods)


@pytest.fixture()
def orders(catalogue):
    return InMemoryOrderDesk(catalogue)


@pytest.fixture()
def storefront(catalogue, configuration, orders):
    return Storefront.in_memory(catalogue=catalogue, configuration=configuration, orders=orders)
