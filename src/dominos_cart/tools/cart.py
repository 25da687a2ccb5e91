import logging
from typing import Any, Optional

from dominos_cart.errors import DominosCartError
from dominos_cart.models import Order
from dominos_cart.state import ServerState

logger = logging.getLogger(__name__)


def _order_view(order: Order) -> dict[str, Any]:
    items = []
    for i, item in enumerate(order.products):
        items.append(
            {
                "index": i,
                "code": item.code,
                "name": item.name,
                "size": item.size,
                "quantity": item.quantity,
                "options": item.options(),
            }
        )
    return {
        "name": order.name,
        "store_id": order.store_id,
        "service_method": order.service_method.value if order.service_method else None,
        "address": order.address.model_dump() if order.address else None,
        "items": items,
        "item_count": len(order.products),
    }


async def list_orders(state: ServerState) -> dict[str, Any]:
    """List the names of all saved orders."""
    try:
        names = sorted(state.cart.list_orders())
        return {"success": True, "orders": names, "order_count": len(names)}
    except DominosCartError as e:
        return {"success": False, "error": str(e), "code": e.code}


async def get_order(state: ServerState, name: str) -> dict[str, Any]:
    """View a saved order."""
    try:
        order = state.cart.get_order(name)
        return {"success": True, "order": _order_view(order)}
    except DominosCartError as e:
        return {"success": False, "error": str(e), "code": e.code}


async def create_order(
    state: ServerState,
    name: str,
    products: Optional[list[str]] = None,
    toppings: Optional[list[str]] = None,
) -> dict[str, Any]:
    """Create and save a new named order."""
    try:
        order = state.cart.create_order(name, products or [], toppings or [])
        return {"success": True, "order": _order_view(order)}
    except DominosCartError as e:
        return {"success": False, "error": str(e), "code": e.code}
    except Exception as e:
        logger.exception("Error creating order")
        return {"success": False, "error": str(e), "code": "CREATE_FAILED"}


async def add_products(
    state: ServerState,
    name: str,
    products: list[str],
    toppings: Optional[list[str]] = None,
) -> dict[str, Any]:
    """Add menu items to a saved order. ``toppings[i]`` goes on ``products[i]``."""
    cart = state.cart
    try:
        cart.set_current_order(name)
        added = cart.add_products(products, toppings)
        order = cart.current_order
        cart.save_and_reset()
        return {
            "success": True,
            "added": [item.code for item in added],
            "order": _order_view(order),
        }
    except DominosCartError as e:
        return {"success": False, "error": str(e), "code": e.code}
    except Exception as e:
        logger.exception("Error adding products")
        return {"success": False, "error": str(e), "code": "ADD_FAILED"}
    finally:
        cart.current_order = None


async def add_toppings(
    state: ServerState,
    name: str,
    product: str,
    toppings: list[str],
) -> dict[str, Any]:
    """Add toppings to a product in a saved order."""
    cart = state.cart
    try:
        cart.set_current_order(name)
        item = cart.add_toppings(product, toppings)
        cart.save_and_reset()
        return {"success": True, "product": item.code, "options": item.options()}
    except DominosCartError as e:
        return {"success": False, "error": str(e), "code": e.code}
    except Exception as e:
        logger.exception("Error adding toppings")
        return {"success": False, "error": str(e), "code": "ADD_FAILED"}
    finally:
        cart.current_order = None


async def remove_product(state: ServerState, name: str, product: str) -> dict[str, Any]:
    """Remove the first matching product from a saved order."""
    cart = state.cart
    try:
        cart.set_current_order(name)
        removed = cart.remove_product(product)
        remaining = len(cart.current_order.products)
        cart.save_and_reset()
        return {"success": True, "removed_item": removed.code, "order_total_items": remaining}
    except DominosCartError as e:
        return {"success": False, "error": str(e), "code": e.code}
    except Exception as e:
        logger.exception("Error removing product")
        return {"success": False, "error": str(e), "code": "REMOVE_FAILED"}
    finally:
        cart.current_order = None


async def remove_topping(
    state: ServerState,
    name: str,
    product: str,
    topping: str,
) -> dict[str, Any]:
    """Remove a topping from a product in a saved order."""
    cart = state.cart
    try:
        cart.set_current_order(name)
        removed = cart.remove_topping(product, topping)
        cart.save_and_reset()
        return {"success": True, "removed": removed}
    except DominosCartError as e:
        return {"success": False, "error": str(e), "code": e.code}
    except Exception as e:
        logger.exception("Error removing topping")
        return {"success": False, "error": str(e), "code": "REMOVE_FAILED"}
    finally:
        cart.current_order = None


async def delete_order(state: ServerState, name: str) -> dict[str, Any]:
    """Delete a saved order. Deleting an unknown order is not an error."""
    try:
        state.cart.delete_order(name)
        return {"success": True, "message": f"{name} successfully deleted."}
    except DominosCartError as e:
        return {"success": False, "error": str(e), "code": e.code}
