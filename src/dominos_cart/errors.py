class DominosCartError(Exception):
    """Base class for every error raised by the cart engine."""

    code = "CART_ERROR"


class BadServiceMethod(DominosCartError, ValueError):
    code = "BAD_SERVICE_METHOD"

    def __init__(self, method: object = None):
        super().__init__(
            f"Invalid service method {method!r}. Use 'Delivery' or 'Carryout'."
        )
        self.method = method


class NoServiceMethod(DominosCartError):
    code = "NO_SERVICE_METHOD"

    def __init__(self):
        super().__init__("No service method has been set.")


class NoAddress(DominosCartError):
    code = "NO_ADDRESS"

    def __init__(self):
        super().__init__("No address on file. Add an address first.")


class OrderNotFound(DominosCartError, KeyError):
    code = "ORDER_NOT_FOUND"

    def __init__(self, name: str):
        super().__init__(f"Could not find order '{name}'.")
        self.name = name

    def __str__(self) -> str:
        return self.args[0]


class ProductNotFound(DominosCartError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product: str, order_name: str = ""):
        where = f" in the '{order_name}' order" if order_name else ""
        super().__init__(f"Cannot find product '{product}'{where}.")
        self.product = product


class ItemNotFound(ProductNotFound):
    code = "ITEM_NOT_FOUND"


class InvalidToppingFormat(DominosCartError, ValueError):
    code = "INVALID_TOPPING_FORMAT"

    def __init__(self, spec: str):
        super().__init__(
            f"Incorrect topping format {spec!r}. Expected name[:side[:amount]]."
        )
        self.spec = spec


class VariantNotFound(DominosCartError, KeyError):
    code = "VARIANT_NOT_FOUND"

    def __init__(self, code: str, store_id: str = ""):
        where = f" on the menu for store {store_id}" if store_id else ""
        super().__init__(f"Could not find variant '{code}'{where}.")
        self.variant_code = code

    def __str__(self) -> str:
        return self.args[0]


class InvalidOrderName(DominosCartError, ValueError):
    code = "INVALID_ORDER_NAME"


class NoCurrentOrder(DominosCartError):
    code = "NO_CURRENT_ORDER"

    def __init__(self):
        super().__init__("Cart has no current order set.")


class OrderValidationError(DominosCartError):
    code = "INVALID_ORDER"

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class OrderingAPIError(DominosCartError):
    code = "ORDERING_API_ERROR"


class StorageError(DominosCartError):
    code = "STORAGE_ERROR"
