from typing import Annotated, Optional

from pydantic import BeforeValidator, PlainSerializer


def _parse_quantity(value: object) -> object:
    if isinstance(value, str):
        value = value.strip()
        if value.startswith(("0x", "0X")):
            return int(value, 16) if len(value) > 2 else 0
        if value.isdigit():
            return int(value)
    return value


HexInt = Annotated[
    int,
    BeforeValidator(_parse_quantity),
]


# Wei and gas quantities, serialized as decimal strings in JSON.
HexStrInt = Annotated[
    int,
    BeforeValidator(_parse_quantity),
    PlainSerializer(lambda x: f"{x}", return_type=str, when_used="json"),
]


OptionalHexStrInt = Optional[HexStrInt]
