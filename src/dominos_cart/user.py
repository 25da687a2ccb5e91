import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Optional

from dominos_cart.errors import BadServiceMethod, NoAddress, NoServiceMethod
from dominos_cart.models import Address, ServiceMethod

if TYPE_CHECKING:
    from dominos_cart.client import OrderingClient

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Store:
    """A store as returned by the ordering API.

    ``address`` and ``service_method`` record the lookup that produced it;
    two stores are only interchangeable when both match.
    """

    store_id: str
    address: Address
    service_method: ServiceMethod
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_open(self) -> bool:
        return bool(self.data.get("IsOnlineNow", False))


@dataclass(frozen=True)
class StoreCacheEntry:
    address: Address
    service_method: ServiceMethod
    store: Store

    def matches(self, address: Address, service_method: ServiceMethod) -> bool:
        return self.address == address and self.service_method is service_method


class User:
    def __init__(
        self,
        client: "OrderingClient",
        addresses: Optional[Iterable[Address]] = None,
        service_method: Optional[str] = None,
    ):
        self.client = client
        self.addresses: list[Address] = list(addresses or [])
        self.service_method: Optional[ServiceMethod] = None
        self._store_cache: Optional[StoreCacheEntry] = None
        if service_method is not None:
            self.set_service_method(service_method)

    @property
    def store_cache(self) -> Optional[StoreCacheEntry]:
        return self._store_cache

    def default_address(self) -> Optional[Address]:
        return self.addresses[0] if self.addresses else None

    def add_address(self, address: Address) -> None:
        self.addresses.append(address)

    def set_default_address(self, address: Address) -> None:
        if address in self.addresses:
            self.addresses.remove(address)
        self.addresses.insert(0, address)

    def set_service_method(self, method: Any) -> ServiceMethod:
        self.service_method = ServiceMethod.parse(method)
        return self.service_method

    def nearest_store(self, service_method: Any = None) -> Store:
        """Closest store for the default address, looked up once per pair.

        The result is reused for as long as the default address and service
        method stay the same; a change to either triggers a new lookup.
        """
        address = self.default_address()
        if address is None:
            raise NoAddress()
        if service_method is None:
            method = self.service_method
            if method is None:
                raise BadServiceMethod(None)
        else:
            method = ServiceMethod.parse(service_method)

        entry = self._store_cache
        if entry is not None and entry.matches(address, method):
            return entry.store

        logger.info(f"Looking up nearest {method.value} store for {address.line_one}")
        store = self.client.find_nearest_store(address, method)
        self._store_cache = StoreCacheEntry(address, method, store)
        return store

    def stores_near_me(self) -> list[Store]:
        if self.service_method is None:
            raise NoServiceMethod()
        address = self.default_address()
        if address is None:
            raise NoAddress()
        return self.client.get_store_candidates(address, self.service_method)
