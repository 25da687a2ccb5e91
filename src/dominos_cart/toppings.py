from typing import NamedTuple

from dominos_cart.errors import InvalidToppingFormat

# Coverage codes understood by the ordering API.
TOPPING_FULL = "1/1"
TOPPING_LEFT = "1/2"
TOPPING_RIGHT = "2/2"
PLACEMENTS = (TOPPING_FULL, TOPPING_LEFT, TOPPING_RIGHT)

DEFAULT_AMOUNT = "1.0"

_SIDES = {
    "left": TOPPING_LEFT,
    "right": TOPPING_RIGHT,
    "full": TOPPING_FULL,
}


class ToppingSpec(NamedTuple):
    code: str
    placement: str
    amount: str


def parse_topping(spec: str) -> ToppingSpec:
    """Parse a topping written as ``name[:side[:amount]]``.

    ``side`` may be ``left``, ``right`` or ``full`` in any case. Any other
    side is kept as given so callers can pass raw coverage codes such as
    ``1/2``. The amount is not checked here; see ``Order.validate``.
    """
    fields = spec.split(":")
    if not fields[0] or len(fields) > 3:
        raise InvalidToppingFormat(spec)

    placement = TOPPING_FULL
    if len(fields) >= 2:
        side = fields[1]
        placement = _SIDES.get(side.lower(), side)

    amount = fields[2] if len(fields) == 3 else DEFAULT_AMOUNT
    return ToppingSpec(fields[0], placement, amount)


def parse_default_toppings(tag: str) -> list[ToppingSpec]:
    """Parse a catalog default-topping tag such as ``"X=1,C=1"``."""
    toppings = []
    for part in tag.split(","):
        part = part.strip()
        if not part:
            continue
        code, _, amount = part.partition("=")
        if not code:
            continue
        toppings.append(ToppingSpec(code, TOPPING_FULL, amount or DEFAULT_AMOUNT))
    return toppings
