from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from chain_gateway.utils.custom_types import HexInt


class EstimateGasRequest(BaseModel):
    """
    Body of a gas estimation request.

    Attributes:
        to (Optional[str]): Recipient address, required.
        data (Optional[str]): Call data, required.
        value (int): Wei to attach, hex or decimal quantity.
        from_ (Optional[str]): Sender address.
        chain_id (Optional[Union[str, int]]): Chain to estimate on.
    """

    model_config = ConfigDict(populate_by_name=True)

    to: Optional[str] = None
    data: Optional[str] = None
    value: HexInt = 0
    from_: Optional[str] = Field(None, alias="from")
    chain_id: Optional[Union[str, int]] = Field(None, alias="chainId")
