import logging
from typing import Any

from dominos_cart.errors import DominosCartError, OrderValidationError
from dominos_cart.state import ServerState

logger = logging.getLogger(__name__)


async def validate_order(
    state: ServerState,
    name: str,
    remote: bool = True,
) -> dict[str, Any]:
    """Validate a saved order locally and, if ``remote``, with the ordering API."""
    try:
        order = state.cart.get_order(name)
        warnings = order.validate()
        if remote:
            warnings += state.client.validate_order(order, state.config.customer)

        return {"success": True, "valid": True, "warnings": warnings, "errors": []}

    except OrderValidationError as e:
        return {"success": True, "valid": False, "warnings": [], "errors": e.errors}
    except DominosCartError as e:
        return {"success": False, "error": str(e), "code": e.code}
    except Exception as e:
        logger.exception("Error validating order")
        return {"success": True, "valid": False, "errors": [str(e)], "warnings": []}


async def price_order(state: ServerState, name: str) -> dict[str, Any]:
    """Get the pricing breakdown for a saved order. Does not place the order."""
    try:
        order = state.cart.get_order(name)
        if not order.products:
            return {
                "success": False,
                "error": f"Order '{name}' is empty. Add items first.",
                "code": "EMPTY_ORDER",
            }

        pricing = state.client.price_order(order, state.config.customer)
        wait = pricing.pop("estimated_wait_minutes", "")
        return {
            "success": True,
            "pricing": pricing,
            "estimated_wait_minutes": wait,
            "store_id": order.store_id,
        }

    except DominosCartError as e:
        return {"success": False, "error": str(e), "code": e.code}
    except Exception as e:
        logger.exception("Error pricing order")
        return {"success": False, "error": str(e), "code": "PRICE_FAILED"}
