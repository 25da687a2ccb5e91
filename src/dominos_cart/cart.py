import logging
from typing import Optional, Sequence

from pydantic import ValidationError

from dominos_cart.errors import (
    BadServiceMethod,
    DominosCartError,
    InvalidOrderName,
    ItemNotFound,
    NoAddress,
    NoCurrentOrder,
    OrderNotFound,
    StorageError,
)
from dominos_cart.menu import MenuCache
from dominos_cart.models import Order, ProductItem
from dominos_cart.storage import KeyValueStore
from dominos_cart.toppings import parse_topping
from dominos_cart.user import Store, User

logger = logging.getLogger(__name__)

ORDER_PREFIX = "user_order_"


def check_order_name(name: str) -> None:
    if not name:
        raise InvalidOrderName("Order name cannot be empty.")
    if ORDER_PREFIX in name:
        raise InvalidOrderName(f"Order name cannot contain '{ORDER_PREFIX}'.")


class Cart:
    """The user's saved orders, plus the order currently being edited.

    Orders live in ``db`` under ``user_order_<name>``. Edits only reach the
    store when the order is saved, and saving always overwrites.
    """

    def __init__(
        self,
        db: KeyValueStore,
        user: User,
        menu: MenuCache,
        preferred_store_id: Optional[str] = None,
    ):
        self.db = db
        self.user = user
        self.menu = menu
        self.preferred_store_id = preferred_store_id
        self.current_order: Optional[Order] = None

    def store(self) -> Store:
        """The store orders go to: the preferred store if set, else the nearest."""
        if not self.preferred_store_id:
            return self.user.nearest_store()
        address = self.user.default_address()
        if address is None:
            raise NoAddress()
        if self.user.service_method is None:
            raise BadServiceMethod(None)
        return Store(self.preferred_store_id, address, self.user.service_method)

    def new_order(self, name: str) -> Order:
        """Start an unsaved order for the user's default address."""
        check_order_name(name)
        store = self.store()
        return Order(
            name=name,
            address=store.address,
            service_method=store.service_method,
            store_id=store.store_id,
        )

    def create_order(
        self,
        name: str,
        products: Sequence[str] = (),
        toppings: Sequence[str] = (),
    ) -> Order:
        """Create and save a new order.

        ``toppings[i]`` is added to ``products[i]``; products without a
        matching topping keep their defaults.
        """
        order = self.new_order(name)
        for item in self._resolve_products(products, toppings):
            order.add_product(item)
        self.save_order(order)
        return order

    def _resolve_products(
        self,
        products: Sequence[str],
        toppings: Optional[Sequence[str]],
    ) -> list[ProductItem]:
        if toppings and not products:
            raise DominosCartError("Cannot add toppings without products.")
        if not products:
            return []
        self.menu.update_if_stale()
        specs = [parse_topping(spec) for spec in toppings or ()]
        items = [self.menu.get_variant(code) for code in products]
        for item, spec in zip(items, specs):
            item.add_topping(spec.code, spec.placement, spec.amount)
        return items

    def get_order(self, name: str) -> Order:
        raw = self.db.get(ORDER_PREFIX + name)
        if raw is None:
            raise OrderNotFound(name)
        try:
            order = Order.model_validate_json(raw)
        except ValidationError as e:
            raise StorageError(f"Saved order '{name}' could not be read: {e}") from e

        # The live default address always replaces the saved one.
        # TODO: confirm with product whether saved orders should keep their address.
        order.name = name
        order.address = self.user.default_address()
        return order

    def save_order(self, order: Order) -> None:
        check_order_name(order.name)
        self.db.put(ORDER_PREFIX + order.name, order.model_dump_json().encode())
        logger.info(f"Saved order '{order.name}' ({len(order.products)} products)")

    def delete_order(self, name: str) -> None:
        self.db.delete(ORDER_PREFIX + name)
        logger.info(f"Deleted order '{name}'")

    def list_orders(self) -> list[str]:
        return [
            key[len(ORDER_PREFIX):]
            for key in self.db.list_keys()
            if key.startswith(ORDER_PREFIX)
        ]

    def validate_order(self, name: str) -> list[str]:
        return self.get_order(name).validate()

    # current order

    def set_current_order(self, name: str) -> Order:
        self.current_order = self.get_order(name)
        return self.current_order

    def _require_current(self) -> Order:
        if self.current_order is None:
            raise NoCurrentOrder()
        return self.current_order

    def save(self) -> None:
        self.save_order(self._require_current())

    def save_and_reset(self) -> None:
        try:
            self.save()
        finally:
            self.current_order = None

    def validate(self) -> list[str]:
        order = self._require_current()
        logger.info(f"Validating order '{order.name}'")
        warnings = order.validate()
        for warning in warnings:
            logger.warning(f"Order '{order.name}': {warning}")
        return warnings

    def add_products(
        self,
        products: Sequence[str],
        toppings: Optional[Sequence[str]] = None,
    ) -> list[ProductItem]:
        """Resolve ``products`` against the menu and append them to the current order.

        ``toppings[i]`` is added to ``products[i]``. Nothing is added unless
        every code resolves and every topping parses.
        """
        order = self._require_current()
        items = self._resolve_products(products, toppings)
        for item in items:
            order.add_product(item)
        return items

    def add_toppings(self, product: str, toppings: Sequence[str]) -> ProductItem:
        order = self._require_current()
        self.menu.update_if_stale()
        specs = [parse_topping(spec) for spec in toppings]
        item = order.find_item(product)
        if item is None:
            raise ItemNotFound(product, order.name)
        for spec in specs:
            item.add_topping(spec.code, spec.placement, spec.amount)
        return item

    def remove_product(self, code: str) -> ProductItem:
        return self._require_current().remove_product(code)

    def remove_topping(self, product: str, topping: str) -> bool:
        order = self._require_current()
        item = order.find_item(product)
        if item is None:
            raise ItemNotFound(product, order.name)
        return item.remove_topping(topping)
