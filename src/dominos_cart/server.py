import json
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

from mcp.server.fastmcp import FastMCP, Context

from dominos_cart.config import load_config
from dominos_cart.state import ServerState
from dominos_cart.tools import cart, order, store

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(server: FastMCP):
    """Load config and open the cart database on startup."""
    logger.info("Starting Domino's cart server...")

    try:
        config = load_config()
        logger.info("Config loaded successfully")
    except FileNotFoundError as e:
        logger.error(str(e))
        raise

    state = ServerState(config)

    yield {"state": state}

    logger.info("Shutting down Domino's cart server")


host = os.environ.get("HOST", "0.0.0.0")
port = int(os.environ.get("PORT", "8000"))

mcp = FastMCP(
    "Domino's Cart Server",
    lifespan=lifespan,
    host=host,
    port=port,
)


def _get_state(ctx) -> ServerState:
    return ctx.request_context.lifespan_context["state"]


# --- Store Tools ---


@mcp.tool()
async def tool_find_nearby_stores(
    ctx: Context,
    street: str = "",
    city: str = "",
    region: str = "",
    postal_code: str = "",
    order_type: str = "",
) -> str:
    """Find Domino's stores near your address and select the closest one.
    Passing a street makes it your default address. order_type is 'Delivery' or 'Carryout'
    and becomes your service method. Omit both to use the saved address and method."""
    result = await store.find_nearby_stores(
        _get_state(ctx), street, city, region, postal_code, order_type
    )
    return json.dumps(result)


@mcp.tool()
async def tool_get_menu(ctx: Context, category: str = "All") -> str:
    """Get the menu for the selected store.
    Categories: Pizza, Wings, Pasta, Bread, Drinks, Desserts, Other, All."""
    result = await store.get_menu(_get_state(ctx), category)
    return json.dumps(result)


@mcp.tool()
async def tool_search_menu_items(ctx: Context, query: str) -> str:
    """Search the selected store's menu by name or description, e.g. 'pepperoni pizza'."""
    result = await store.search_menu_items(_get_state(ctx), query)
    return json.dumps(result)


# --- Cart Tools ---


@mcp.tool()
async def tool_list_orders(ctx: Context) -> str:
    """List the names of your saved orders."""
    result = await cart.list_orders(_get_state(ctx))
    return json.dumps(result)


@mcp.tool()
async def tool_get_order(ctx: Context, name: str) -> str:
    """View a saved order and its items."""
    result = await cart.get_order(_get_state(ctx), name)
    return json.dumps(result)


@mcp.tool()
async def tool_create_order(
    ctx: Context,
    name: str,
    products: Optional[list[str]] = None,
    toppings: Optional[list[str]] = None,
) -> str:
    """Create and save a new named order. products are menu item codes
    (use search_menu_items). toppings[i] is added to products[i] using the
    format name[:side[:amount]], e.g. 'P', 'O:left' or 'X:right:1.5'."""
    result = await cart.create_order(_get_state(ctx), name, products, toppings)
    return json.dumps(result)


@mcp.tool()
async def tool_add_products(
    ctx: Context,
    name: str,
    products: list[str],
    toppings: Optional[list[str]] = None,
) -> str:
    """Add menu items to a saved order by item code.
    Optional toppings pair by position: toppings[i] goes on products[i]."""
    result = await cart.add_products(_get_state(ctx), name, products, toppings)
    return json.dumps(result)


@mcp.tool()
async def tool_add_toppings(
    ctx: Context,
    name: str,
    product: str,
    toppings: list[str],
) -> str:
    """Add toppings to a product in a saved order.
    Topping format: name[:side[:amount]] where side is left, right or full."""
    result = await cart.add_toppings(_get_state(ctx), name, product, toppings)
    return json.dumps(result)


@mcp.tool()
async def tool_remove_product(ctx: Context, name: str, product: str) -> str:
    """Remove a product (by item code) from a saved order."""
    result = await cart.remove_product(_get_state(ctx), name, product)
    return json.dumps(result)


@mcp.tool()
async def tool_remove_topping(ctx: Context, name: str, product: str, topping: str) -> str:
    """Remove a topping from a product in a saved order."""
    result = await cart.remove_topping(_get_state(ctx), name, product, topping)
    return json.dumps(result)


@mcp.tool()
async def tool_delete_order(ctx: Context, name: str) -> str:
    """Delete a saved order."""
    result = await cart.delete_order(_get_state(ctx), name)
    return json.dumps(result)


# --- Order Tools ---


@mcp.tool()
async def tool_validate_order(ctx: Context, name: str) -> str:
    """Validate a saved order without placing it. Returns errors and warnings.
    Warnings do not prevent the order from being placed."""
    result = await order.validate_order(_get_state(ctx), name)
    return json.dumps(result)


@mcp.tool()
async def tool_price_order(ctx: Context, name: str) -> str:
    """Get the full pricing breakdown for a saved order including taxes and fees.
    Does NOT place the order."""
    result = await order.price_order(_get_state(ctx), name)
    return json.dumps(result)


if __name__ == "__main__":
    logger.info(f"Starting MCP server on {host}:{port}")
    mcp.run(transport="streamable-http")
