import logging
from typing import Any, Protocol

import requests
from pizzapi import Address as PizzaAddress
from pizzapi import Customer as PizzaCustomer
from pizzapi import Order as PizzaOrder
from pizzapi import Store as PizzaStore

from dominos_cart.config import Customer
from dominos_cart.errors import NoAddress, OrderingAPIError, OrderValidationError
from dominos_cart.menu import Catalog
from dominos_cart.models import Address, Order, ServiceMethod
from dominos_cart.user import Store

logger = logging.getLogger(__name__)


class OrderingClient(Protocol):
    def find_nearest_store(self, address: Address, service_method: ServiceMethod) -> Store: ...

    def get_store_candidates(self, address: Address, service_method: ServiceMethod) -> list[Store]: ...

    def fetch_menu(self, store: Store) -> Catalog: ...

    def price_order(self, order: Order, customer: Customer) -> dict[str, Any]: ...

    def validate_order(self, order: Order, customer: Customer) -> list[str]: ...


def _make_address(address: Address) -> PizzaAddress:
    return PizzaAddress(
        address.line_one,
        address.city,
        address.region,
        address.postal_code,
        country=address.country,
    )


def _order_section(pizza_order: PizzaOrder) -> dict[str, Any]:
    # Responses are merged either under "Order" or at the top level.
    return pizza_order.data.get("Order") or pizza_order.data


class PizzapiClient:
    """OrderingClient backed by the pizzapi library."""

    def __init__(self, max_candidates: int = 5):
        self.max_candidates = max_candidates

    def get_store_candidates(self, address: Address, service_method: ServiceMethod) -> list[Store]:
        try:
            results = _make_address(address).nearby_stores(service=service_method.value)
        except requests.RequestException as e:
            raise OrderingAPIError(f"Store lookup failed: {e}") from e
        except (KeyError, ValueError) as e:
            raise OrderingAPIError(f"Unexpected store lookup response: {e}") from e

        stores = []
        for store_obj in results[: self.max_candidates]:
            d = store_obj.data
            stores.append(
                Store(
                    store_id=str(d.get("StoreID", store_obj.id)),
                    address=address,
                    service_method=service_method,
                    data=d,
                )
            )
        return stores

    def find_nearest_store(self, address: Address, service_method: ServiceMethod) -> Store:
        stores = self.get_store_candidates(address, service_method)
        if not stores:
            raise OrderingAPIError("No local stores are currently open.")
        for store in stores:
            if store.is_open:
                return store
        return stores[0]

    def fetch_menu(self, store: Store) -> Catalog:
        country = store.address.country
        try:
            menu = PizzaStore(dict(store.data, StoreID=store.store_id), country=country).get_menu()
        except requests.RequestException as e:
            raise OrderingAPIError(f"Menu fetch failed for store {store.store_id}: {e}") from e

        variants = getattr(menu, "variants", None)
        if not isinstance(variants, dict):
            raw = getattr(menu, "data", {})
            variants = raw.get("Variants", {}) if isinstance(raw, dict) else {}
        variants = {code: item for code, item in variants.items() if isinstance(item, dict)}
        return Catalog(store_id=store.store_id, variants=variants)

    def _build_order(self, order: Order, customer: Customer) -> PizzaOrder:
        if order.address is None:
            raise NoAddress()
        if not order.store_id:
            raise OrderingAPIError(f"Order '{order.name}' has no store.")

        address = _make_address(order.address)
        pizza_customer = PizzaCustomer(
            customer.first_name,
            customer.last_name,
            customer.email,
            customer.phone,
            address,
        )
        store = PizzaStore({"StoreID": order.store_id}, country=order.address.country)
        pizza_order = PizzaOrder(store, pizza_customer, address, country=order.address.country)
        if order.service_method is not None:
            pizza_order.data["ServiceMethod"] = order.service_method.value

        for item in order.products:
            pizza_order.add_item(item.code, qty=item.quantity, options=item.options())
        return pizza_order

    def price_order(self, order: Order, customer: Customer) -> dict[str, Any]:
        try:
            pizza_order = self._build_order(order, customer)
            pizza_order.price()
        except requests.RequestException as e:
            raise OrderingAPIError(f"Pricing failed: {e}") from e

        section = _order_section(pizza_order)
        amounts = section.get("Amounts", {})
        return {
            "subtotal": amounts.get("Menu", 0),
            "discount": amounts.get("Discount", 0),
            "surcharge": amounts.get("Surcharge", 0),
            "tax": amounts.get("Tax", 0),
            "delivery_fee": amounts.get("DeliveryFee", 0),
            "total": amounts.get("Customer", 0),
            "estimated_wait_minutes": section.get("EstimatedWaitMinutes", ""),
        }

    def validate_order(self, order: Order, customer: Customer) -> list[str]:
        """Ask the ordering API to validate ``order``.

        Status items flagged with PulseCode 1 are errors, everything else is
        returned as a warning.
        """
        try:
            pizza_order = self._build_order(order, customer)
            pizza_order.validate()
        except requests.RequestException as e:
            raise OrderingAPIError(f"Validation request failed: {e}") from e

        status = pizza_order.data.get("Status", 0)
        status_items = _order_section(pizza_order).get("StatusItems", [])

        errors = []
        warnings = []
        for item in status_items:
            if isinstance(item, dict):
                code = item.get("Code", "")
                if item.get("PulseCode", 0) == 1:
                    errors.append(code)
                else:
                    warnings.append(code)

        if status < 0 and not errors:
            errors.append(f"Ordering API rejected the order (status {status}).")
        if errors:
            raise OrderValidationError(errors)
        logger.debug(f"Order '{order.name}' validated with {len(warnings)} warning(s)")
        return warnings
