import logging
from typing import Any

from dominos_cart.errors import DominosCartError
from dominos_cart.models import Address, ServiceMethod
from dominos_cart.state import ServerState
from dominos_cart.user import Store

logger = logging.getLogger(__name__)


def _store_summary(store: Store) -> dict[str, Any]:
    d = store.data
    service_info = d.get("ServiceMethodEstimatedWaitMinutes", {})
    wait = service_info.get(store.service_method.value, {})
    return {
        "store_id": store.store_id,
        "address": d.get("AddressDescription", "").strip(),
        "phone": d.get("Phone", ""),
        "is_open": store.is_open,
        "service_method": store.service_method.value,
        "wait_minutes_min": wait.get("Min", None),
        "wait_minutes_max": wait.get("Max", None),
        "minimum_delivery_order_amount": d.get("MinimumDeliveryOrderAmount", None),
    }


async def find_nearby_stores(
    state: ServerState,
    street: str = "",
    city: str = "",
    region: str = "",
    postal_code: str = "",
    order_type: str = "",
) -> dict[str, Any]:
    """Find stores near the default address, or near a new address if one is given.

    A new address becomes the default address and a new order type becomes
    the current service method, but only if the lookup succeeds.
    """
    user = state.user
    previous = (list(user.addresses), user.service_method)
    try:
        method = ServiceMethod.parse(order_type) if order_type else None
        address = None
        if street:
            current = user.default_address()
            address = Address(
                street=street,
                city=city or (current.city if current else ""),
                region=region or (current.region if current else ""),
                postal_code=postal_code or (current.postal_code if current else ""),
                country=current.country if current else "ca",
            )

        if method is not None:
            user.set_service_method(method)
        if address is not None:
            user.set_default_address(address)
        stores = [_store_summary(s) for s in user.stores_near_me()]
        nearest = user.nearest_store()

        return {
            "success": True,
            "stores": stores,
            "selected_store_id": nearest.store_id,
        }

    except DominosCartError as e:
        user.addresses[:], user.service_method = previous
        return {"success": False, "error": str(e), "code": e.code}
    except Exception as e:
        logger.exception("Error finding nearby stores")
        user.addresses[:], user.service_method = previous
        return {"success": False, "error": str(e), "code": "STORE_LOOKUP_FAILED"}


async def get_menu(
    state: ServerState,
    category: str = "All",
) -> dict[str, Any]:
    """Get the menu for the nearest store. Returns categorized menu items."""
    try:
        state.menu.update_if_stale()
        catalog = state.menu.menu()
        menu_data = catalog.categories()

        if category != "All":
            menu_data = {category: menu_data.get(category, [])}

        return {"success": True, "store_id": catalog.store_id, "categories": menu_data}

    except DominosCartError as e:
        return {"success": False, "error": str(e), "code": e.code}
    except Exception as e:
        logger.exception("Error fetching menu")
        return {"success": False, "error": str(e), "code": "MENU_FETCH_FAILED"}


async def search_menu_items(
    state: ServerState,
    query: str,
) -> dict[str, Any]:
    """Search the nearest store's menu by name or description."""
    try:
        state.menu.update_if_stale()
        results = state.menu.menu().search(query)
        return {"success": True, "results": results, "result_count": len(results)}

    except DominosCartError as e:
        return {"success": False, "error": str(e), "code": e.code}
    except Exception as e:
        logger.exception("Error searching menu")
        return {"success": False, "error": str(e), "code": "SEARCH_FAILED"}
