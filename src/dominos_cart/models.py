from enum import Enum
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel

from dominos_cart.errors import (
    BadServiceMethod,
    ItemNotFound,
    OrderValidationError,
    ProductNotFound,
)
from dominos_cart.toppings import DEFAULT_AMOUNT, PLACEMENTS, TOPPING_FULL, parse_topping

MAX_ITEM_QUANTITY = 10


class ServiceMethod(str, Enum):
    DELIVERY = "Delivery"
    CARRYOUT = "Carryout"

    @classmethod
    def parse(cls, value: Any) -> "ServiceMethod":
        """Case-insensitive lookup; anything else raises BadServiceMethod."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for method in cls:
                if method.value.lower() == value.lower():
                    return method
        raise BadServiceMethod(value)


class Address(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str
    unit: str = ""
    city: str
    region: str
    postal_code: str
    country: str = "ca"
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def line_one(self) -> str:
        if self.unit:
            return f"{self.street} #{self.unit}"
        return self.street

    @property
    def line_two(self) -> str:
        return f"{self.city}, {self.region}, {self.postal_code}"


class Topping(BaseModel):
    placement: str = TOPPING_FULL
    amount: str = DEFAULT_AMOUNT


class ToppingMap(RootModel):
    """Topping code -> placement for a single product.

    ``set`` replaces whatever was stored for that code. Placements never
    combine, so ``olive:left`` followed by ``olive:right`` leaves only the
    right half.
    """

    root: dict[str, Topping] = Field(default_factory=dict)

    def set(self, code: str, placement: str = TOPPING_FULL, amount: str = DEFAULT_AMOUNT) -> None:
        self.root[code] = Topping(placement=placement, amount=amount)

    def remove(self, code: str) -> bool:
        return self.root.pop(code, None) is not None

    def get(self, code: str) -> Optional[Topping]:
        return self.root.get(code)

    def items(self):
        return self.root.items()

    def __contains__(self, code: object) -> bool:
        return code in self.root

    def __getitem__(self, code: str) -> Topping:
        return self.root[code]

    def __iter__(self) -> Iterator[str]:
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)


class ProductItem(BaseModel):
    code: str
    name: str = ""
    product_code: str = ""
    size: str = ""
    quantity: int = 1
    toppings: ToppingMap = Field(default_factory=ToppingMap)

    def add_topping(self, code: str, placement: str = TOPPING_FULL, amount: str = DEFAULT_AMOUNT) -> None:
        self.toppings.set(code, placement, amount)

    def remove_topping(self, code: str) -> bool:
        return self.toppings.remove(code)

    def options(self) -> dict[str, dict[str, str]]:
        """Toppings in the ordering API's option format, e.g. {"P": {"1/1": "1.0"}}."""
        return {code: {t.placement: t.amount} for code, t in self.toppings.items()}


class Order(BaseModel):
    name: str = ""
    address: Optional[Address] = None
    service_method: Optional[ServiceMethod] = None
    store_id: Optional[str] = None
    products: list[ProductItem] = Field(default_factory=list)

    def add_product(self, item: ProductItem) -> None:
        self.products.append(item)

    def find_item(self, code: str) -> Optional[ProductItem]:
        for item in self.products:
            if item.code == code:
                return item
        return None

    def remove_product(self, code: str) -> ProductItem:
        for index, item in enumerate(self.products):
            if item.code == code:
                return self.products.pop(index)
        raise ProductNotFound(code, self.name)

    def apply_topping(self, code: str, spec: str) -> ProductItem:
        """Parse ``spec`` and set it on the first product matching ``code``."""
        topping = parse_topping(spec)
        item = self.find_item(code)
        if item is None:
            raise ItemNotFound(code, self.name)
        item.add_topping(topping.code, topping.placement, topping.amount)
        return item

    def validate(self) -> list[str]:
        """Check the order locally.

        Returns a list of warnings, which do not stop the order from being
        saved or submitted. Raises OrderValidationError listing every hard
        error found.
        """
        errors: list[str] = []
        warnings: list[str] = []

        if not self.products:
            errors.append("Order has no products.")
        if self.address is None:
            errors.append("Order has no address.")
        elif not self.address.street or not self.address.city:
            errors.append("Order address is missing a street or city.")
        if self.service_method is None:
            errors.append("Order has no service method.")

        for item in self.products:
            if item.quantity < 1:
                errors.append(f"{item.code}: quantity must be at least 1.")
            elif item.quantity > MAX_ITEM_QUANTITY:
                warnings.append(f"{item.code}: quantity {item.quantity} is unusually large.")

            for code, topping in item.toppings.items():
                if topping.placement not in PLACEMENTS:
                    warnings.append(
                        f"{item.code}: topping {code} has unknown placement {topping.placement!r}."
                    )
                try:
                    amount = float(topping.amount)
                except ValueError:
                    errors.append(
                        f"{item.code}: topping {code} has invalid amount {topping.amount!r}."
                    )
                    continue
                if not 0 < amount <= 2:
                    warnings.append(
                        f"{item.code}: topping {code} amount {topping.amount} is out of range."
                    )

        if errors:
            raise OrderValidationError(errors)
        return warnings
