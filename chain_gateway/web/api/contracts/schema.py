from typing import Any, List

from pydantic import BaseModel

from chain_gateway.utils.custom_types import HexInt


class PrepareTxRequest(BaseModel):
    """
    Body of a prepare-tx request.

    Attributes:
        args (List[Any]): Positional arguments of the contract function.
        value (int): Wei to attach, given as a hex or decimal quantity.
    """

    args: List[Any] = []
    value: HexInt = 0
