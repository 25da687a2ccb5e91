import itertools
from datetime import datetime, timedelta, timezone

import pytest

from dominos_cart.cart import Cart
from dominos_cart.config import Customer, DominosConfig
from dominos_cart.menu import Catalog, MenuCache
from dominos_cart.models import Address
from dominos_cart.storage import JsonFileStore
from dominos_cart.user import Store, User

VARIANTS = {
    "14SCREEN": {
        "Name": 'Large (14") Hand Tossed Pizza',
        "ProductCode": "S_PIZZA",
        "SizeCode": "14",
        "ProductType": "Pizza",
        "Price": "17.99",
        "Description": "Hand tossed crust with robust tomato sauce",
        "Tags": {"DefaultToppings": "X=1,C=1"},
    },
    "12SCREEN": {
        "Name": 'Medium (12") Hand Tossed Pizza',
        "ProductCode": "S_PIZZA",
        "SizeCode": "12",
        "ProductType": "Pizza",
        "Price": "14.99",
        "Description": "Hand tossed crust with robust tomato sauce",
        "Tags": {"DefaultToppings": "X=1,C=1"},
    },
    "W08PHOTW": {
        "Name": "Hot Buffalo Wings",
        "ProductCode": "S_HOTWINGS",
        "SizeCode": "8PCW",
        "ProductType": "Wings",
        "Price": "9.99",
        "Description": "Marinated and oven-baked",
        "Tags": {},
    },
    "2LCOKE": {
        "Name": "Coke 2-Liter",
        "ProductCode": "2LCOKE",
        "ProductType": "Drinks",
        "Price": "3.49",
        "Tags": {},
    },
}


class FakeClient:
    """In-memory OrderingClient that counts calls and hands out new store ids."""

    def __init__(self, variants=None):
        self.variants = dict(VARIANTS if variants is None else variants)
        self.store_lookups = 0
        self.candidate_lookups = 0
        self.menu_fetches = 0
        self.remote_warnings = []
        self.priced = []
        self._ids = itertools.count(1000)

    def _store(self, address, service_method):
        return Store(
            store_id=str(next(self._ids)),
            address=address,
            service_method=service_method,
            data={
                "IsOnlineNow": True,
                "AddressDescription": "1 Main St\nToronto, ON ",
                "Phone": "416-555-0199",
            },
        )

    def find_nearest_store(self, address, service_method):
        self.store_lookups += 1
        return self._store(address, service_method)

    def get_store_candidates(self, address, service_method):
        self.candidate_lookups += 1
        return [self._store(address, service_method) for _ in range(3)]

    def fetch_menu(self, store):
        self.menu_fetches += 1
        return Catalog(store_id=store.store_id, variants=self.variants)

    def price_order(self, order, customer):
        self.priced.append(order.name)
        return {
            "subtotal": 17.99,
            "discount": 0,
            "surcharge": 0,
            "tax": 2.34,
            "delivery_fee": 4.99,
            "total": 25.32,
            "estimated_wait_minutes": "25-35",
        }

    def validate_order(self, order, customer):
        return list(self.remote_warnings)


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def address():
    return Address(street="100 Queen St W", city="Toronto", region="ON", postal_code="M5H 2N2")


@pytest.fixture
def other_address():
    return Address(street="1 Yonge St", city="Toronto", region="ON", postal_code="M5E 1E5")


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db(tmp_path):
    return JsonFileStore(str(tmp_path / "cart.json"))


@pytest.fixture
def user(client, address):
    return User(client, [address], "Delivery")


@pytest.fixture
def menu(db, user, client, clock):
    return MenuCache(timedelta(hours=1), db, user.nearest_store, client, clock=clock)


@pytest.fixture
def cart(db, user, menu):
    return Cart(db, user, menu)


@pytest.fixture
def config(address, tmp_path):
    return DominosConfig(
        customer=Customer(
            first_name="Jane",
            last_name="Doe",
            email="jane@example.com",
            phone="416-555-0100",
        ),
        addresses=[address],
        storage={"db_path": str(tmp_path / "server.json")},
    )
