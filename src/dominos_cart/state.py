from dataclasses import dataclass, field
from typing import Optional

from dominos_cart.cart import Cart
from dominos_cart.client import OrderingClient, PizzapiClient
from dominos_cart.config import DominosConfig
from dominos_cart.menu import MenuCache
from dominos_cart.storage import JsonFileStore, KeyValueStore
from dominos_cart.user import User


@dataclass
class ServerState:
    config: DominosConfig
    client: OrderingClient = field(default_factory=PizzapiClient)
    db: Optional[KeyValueStore] = None
    user: User = field(init=False)
    menu: MenuCache = field(init=False)
    cart: Cart = field(init=False)

    def __post_init__(self):
        if self.db is None:
            self.db = JsonFileStore(self.config.storage.db_path)
        prefs = self.config.preferences
        self.user = User(self.client, self.config.addresses, prefs.service_method)
        self.menu = MenuCache(
            prefs.menu_update_time, self.db, lambda: self.cart.store(), self.client
        )
        self.cart = Cart(self.db, self.user, self.menu, prefs.preferred_store_id)
