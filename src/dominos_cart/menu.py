import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Callable, Optional

from pydantic import BaseModel, Field, ValidationError

from dominos_cart.errors import VariantNotFound
from dominos_cart.models import ProductItem
from dominos_cart.storage import KeyValueStore
from dominos_cart.toppings import parse_default_toppings
from dominos_cart.user import Store

if TYPE_CHECKING:
    from dominos_cart.client import OrderingClient

logger = logging.getLogger(__name__)

MENU_KEY = "menu"

CATEGORY_KEYWORDS = {
    "Pizza": ["Pizza"],
    "Wings": ["Wings", "Wing"],
    "Pasta": ["Pasta"],
    "Bread": ["Bread", "Breadsticks"],
    "Drinks": ["Drinks", "Beverage", "Coke", "Sprite"],
    "Desserts": ["Desserts", "Dessert"],
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Catalog(BaseModel):
    store_id: str
    variants: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def _find(self, code: str) -> Optional[tuple[str, dict[str, Any]]]:
        if code in self.variants:
            return code, self.variants[code]

        wanted = code.upper()
        for key, variant in self.variants.items():
            if key.upper() == wanted:
                return key, variant

        # PRODUCT:SIZE, e.g. "S_PIZZA:14"
        product, _, size = wanted.partition(":")
        if size:
            for key, variant in self.variants.items():
                if (
                    str(variant.get("ProductCode", "")).upper() == product
                    and str(variant.get("SizeCode", "")).upper() == size
                ):
                    return key, variant
        return None

    def get_variant(self, code: str) -> ProductItem:
        """Build a ProductItem for ``code``, including its default toppings."""
        found = self._find(code)
        if found is None:
            raise VariantNotFound(code, self.store_id)
        key, variant = found

        item = ProductItem(
            code=key,
            name=variant.get("Name", ""),
            product_code=variant.get("ProductCode", ""),
            size=variant.get("SizeCode", ""),
        )
        tags = variant.get("Tags", {})
        if isinstance(tags, dict) and tags.get("DefaultToppings"):
            for topping in parse_default_toppings(str(tags["DefaultToppings"])):
                item.add_topping(topping.code, topping.placement, topping.amount)
        return item

    def categories(self) -> dict[str, list[dict[str, Any]]]:
        categories: dict[str, list[dict[str, Any]]] = {}
        for code, item in self.variants.items():
            name = item.get("Name", "")
            product_type = item.get("ProductType", "")
            tags = item.get("Tags", {})

            item_category = "Other"
            for cat_name, keywords in CATEGORY_KEYWORDS.items():
                if any(
                    kw.lower() in product_type.lower()
                    or kw.lower() in name.lower()
                    or kw.lower() in str(tags).lower()
                    for kw in keywords
                ):
                    item_category = cat_name
                    break

            categories.setdefault(item_category, []).append(
                {
                    "code": code,
                    "name": name,
                    "price": item.get("Price", ""),
                    "description": item.get("Description", ""),
                }
            )
        return categories

    def search(self, query: str, limit: int = 20) -> list[dict[str, Any]]:
        results = []
        query_lower = query.lower()
        for code, item in self.variants.items():
            name = item.get("Name", "")
            description = item.get("Description", "")
            if query_lower in name.lower() or query_lower in description.lower():
                results.append(
                    {
                        "code": code,
                        "name": name,
                        "category": item.get("ProductType", ""),
                        "price": item.get("Price", ""),
                        "description": description,
                    }
                )
                if len(results) >= limit:
                    break
        return results


class MenuCacheEntry(BaseModel):
    store_id: str
    refreshed_at: datetime
    catalog: Catalog


class MenuCache:
    """Keeps the current store's catalog in the key-value store.

    The catalog is refetched when it is older than ``decay`` or was fetched
    for a different store.
    """

    def __init__(
        self,
        decay: timedelta,
        db: KeyValueStore,
        store_getter: Callable[[], Store],
        client: "OrderingClient",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.decay = decay
        self.db = db
        self.store_getter = store_getter
        self.client = client
        self.clock = clock
        self._entry: Optional[MenuCacheEntry] = None

    @property
    def refreshed_at(self) -> Optional[datetime]:
        return self._entry.refreshed_at if self._entry else None

    def menu(self) -> Catalog:
        """Catalog for the currently resolved store, fetched if not held."""
        if self._entry is None or self._entry.store_id != self.store_getter().store_id:
            self.update_if_stale()
        return self._entry.catalog

    def update_if_stale(self, key: str = MENU_KEY) -> bool:
        """Refetch the catalog if needed. Returns True when it was refetched."""
        store = self.store_getter()
        now = self.clock()
        entry = self._read(key)
        if (
            entry is not None
            and entry.store_id == store.store_id
            and now - entry.refreshed_at <= self.decay
        ):
            self._entry = entry
            return False

        logger.info(f"Refreshing menu for store {store.store_id}")
        catalog = self.client.fetch_menu(store)
        entry = MenuCacheEntry(store_id=store.store_id, refreshed_at=now, catalog=catalog)
        self.db.put(key, entry.model_dump_json().encode())
        self._entry = entry
        return True

    def get_variant(self, code: str) -> ProductItem:
        return self.menu().get_variant(code)

    def _read(self, key: str) -> Optional[MenuCacheEntry]:
        raw = self.db.get(key)
        if raw is None:
            return None
        try:
            return MenuCacheEntry.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable menu cache entry: {e}")
            return None
