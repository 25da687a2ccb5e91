"""Tests for the catalog and the menu cache."""

from datetime import timedelta

import pytest

from dominos_cart.errors import VariantNotFound
from dominos_cart.menu import MENU_KEY, Catalog, MenuCache, MenuCacheEntry
from dominos_cart.toppings import TOPPING_FULL

from conftest import VARIANTS


@pytest.fixture
def catalog():
    return Catalog(store_id="1000", variants=VARIANTS)


class TestCatalog:
    def test_get_variant(self, catalog):
        item = catalog.get_variant("14SCREEN")
        assert item.code == "14SCREEN"
        assert item.product_code == "S_PIZZA"
        assert item.size == "14"
        assert item.quantity == 1

    def test_variant_has_default_toppings(self, catalog):
        item = catalog.get_variant("14SCREEN")
        assert item.options() == {"X": {TOPPING_FULL: "1"}, "C": {TOPPING_FULL: "1"}}

    def test_get_variant_ignores_case(self, catalog):
        assert catalog.get_variant("14screen").code == "14SCREEN"

    def test_get_variant_by_product_and_size(self, catalog):
        assert catalog.get_variant("S_PIZZA:12").code == "12SCREEN"

    def test_get_variant_returns_new_items(self, catalog):
        first = catalog.get_variant("14SCREEN")
        first.add_topping("P")
        assert "P" not in catalog.get_variant("14SCREEN").toppings

    @pytest.mark.parametrize("code", ["NOPE", "S_PIZZA:99", ""])
    def test_unknown_variant(self, catalog, code):
        with pytest.raises(VariantNotFound):
            catalog.get_variant(code)

    def test_categories(self, catalog):
        categories = catalog.categories()
        assert {i["code"] for i in categories["Pizza"]} == {"14SCREEN", "12SCREEN"}
        assert [i["code"] for i in categories["Wings"]] == ["W08PHOTW"]
        assert [i["code"] for i in categories["Drinks"]] == ["2LCOKE"]

    def test_search(self, catalog):
        results = catalog.search("wings")
        assert [r["code"] for r in results] == ["W08PHOTW"]
        assert results[0]["price"] == "9.99"

    def test_search_matches_description(self, catalog):
        assert len(catalog.search("tomato sauce")) == 2

    def test_search_limit(self, catalog):
        assert len(catalog.search("", limit=2)) == 2


class TestMenuCache:
    def test_menu_fetches_once(self, menu, client):
        first = menu.menu()
        second = menu.menu()
        assert first is second
        assert client.menu_fetches == 1

    def test_first_update_fetches(self, menu, client):
        assert menu.update_if_stale() is True
        assert client.menu_fetches == 1

    def test_fresh_entry_is_reused(self, menu, client, clock):
        menu.update_if_stale()
        clock.advance(minutes=59)
        assert menu.update_if_stale() is False
        clock.advance(minutes=1)
        assert menu.update_if_stale() is False
        assert client.menu_fetches == 1

    def test_stale_entry_is_refreshed(self, menu, client, clock):
        menu.update_if_stale()
        clock.advance(hours=1, seconds=1)
        assert menu.update_if_stale() is True
        assert client.menu_fetches == 2
        assert menu.refreshed_at == clock.now

    def test_entry_is_persisted(self, menu, db, clock):
        menu.update_if_stale()
        entry = MenuCacheEntry.model_validate_json(db.get(MENU_KEY))
        assert entry.refreshed_at == clock.now
        assert set(entry.catalog.variants) == set(VARIANTS)

    def test_persisted_entry_survives_new_cache(self, menu, db, user, client, clock):
        menu.update_if_stale()
        restarted = MenuCache(timedelta(hours=1), db, user.nearest_store, client, clock=clock)
        assert restarted.update_if_stale() is False
        assert restarted.get_variant("2LCOKE").name == "Coke 2-Liter"
        assert client.menu_fetches == 1

    def test_store_change_refreshes(self, menu, user, client):
        first = menu.menu()
        user.set_service_method("Carryout")
        assert menu.update_if_stale() is True
        assert menu.menu().store_id != first.store_id
        assert client.menu_fetches == 2

    def test_custom_key(self, menu, db):
        menu.update_if_stale("menu_alt")
        assert db.get("menu_alt") is not None
        assert db.get(MENU_KEY) is None

    def test_unreadable_entry_is_refetched(self, menu, db, client):
        db.put(MENU_KEY, b"not json")
        assert menu.update_if_stale() is True
        assert client.menu_fetches == 1

    def test_get_variant_unknown(self, menu):
        with pytest.raises(VariantNotFound):
            menu.get_variant("NOPE")

    def test_menu_follows_store_change_without_update(self, menu, user, client):
        menu.menu()
        user.set_service_method("Carryout")
        assert menu.menu().store_id == user.nearest_store().store_id
        assert client.menu_fetches == 2

    def test_get_variant_follows_store_change(self, menu, user, client):
        menu.get_variant("2LCOKE")
        user.set_service_method("Carryout")
        menu.get_variant("2LCOKE")
        assert menu.refreshed_at is not None
        assert menu.menu().store_id == user.nearest_store().store_id
        assert client.menu_fetches == 2
