from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from chain_gateway.utils.custom_types import HexInt, HexStrInt, OptionalHexStrInt


class RPCModel(BaseModel):
    """Base model for JSON-RPC payloads: camelCase aliases, unknown keys kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class Transaction(RPCModel):
    """
    Transaction as returned by ``eth_getTransactionByHash``.

    Attributes:
        hash (str): The transaction hash.
        block_number (Optional[int]): Block the transaction was mined in, None
                                      while pending.
        from_ (str): Sender address.
        to (Optional[str]): Recipient address, None for contract creation.
        value (int): Value transferred in wei.
    """

    hash: str
    block_number: Optional[HexInt] = Field(None, alias="blockNumber")
    block_hash: Optional[str] = Field(None, alias="blockHash")
    from_: str = Field(..., alias="from")
    to: Optional[str] = None
    value: HexStrInt = 0
    gas: OptionalHexStrInt = None
    gas_price: OptionalHexStrInt = Field(None, alias="gasPrice")
    nonce: Optional[HexInt] = None
    input: str = "0x"


class Log(RPCModel):
    address: str
    topics: List[str] = []
    data: str = "0x"
    log_index: Optional[HexInt] = Field(None, alias="logIndex")


class Receipt(RPCModel):
    """
    Transaction receipt as returned by ``eth_getTransactionReceipt``.

    ``status`` is 1 for success and 0 for a reverted transaction.
    """

    transaction_hash: str = Field(..., alias="transactionHash")
    block_number: HexInt = Field(..., alias="blockNumber")
    block_hash: Optional[str] = Field(None, alias="blockHash")
    from_: Optional[str] = Field(None, alias="from")
    to: Optional[str] = None
    contract_address: Optional[str] = Field(None, alias="contractAddress")
    status: Optional[HexInt] = None
    gas_used: HexStrInt = Field(..., alias="gasUsed")
    cumulative_gas_used: OptionalHexStrInt = Field(None, alias="cumulativeGasUsed")
    effective_gas_price: OptionalHexStrInt = Field(None, alias="effectiveGasPrice")
    logs: List[Log] = []

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class TransactionStatusView(RPCModel):
    """
    Status of a transaction derived from its lookup and, once mined, its receipt.

    Attributes:
        hash (str): The transaction hash.
        status (str): "pending", "success" or "failed".
        block_number (Optional[int]): Block the transaction was mined in.
        confirmations (int): Blocks mined on top of and including that block.
        gas_used (Optional[int]): Gas consumed, from the receipt.
        effective_gas_price (Optional[int]): Price paid per gas, from the receipt.
    """

    hash: str
    status: Literal["pending", "success", "failed"]
    block_number: Optional[int] = Field(None, alias="blockNumber")
    confirmations: int = 0
    from_: str = Field(..., alias="from")
    to: Optional[str] = None
    value: HexStrInt = 0
    gas_used: OptionalHexStrInt = Field(None, alias="gasUsed")
    effective_gas_price: OptionalHexStrInt = Field(None, alias="effectiveGasPrice")


class TransactionRequest(RPCModel):
    """Call object sent to ``eth_estimateGas`` and ``eth_call``."""

    to: str
    data: str = "0x"
    value: HexInt = 0
    from_: Optional[str] = Field(None, alias="from")

    def to_rpc(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "to": self.to,
            "data": self.data,
            "value": hex(self.value),
        }
        if self.from_:
            params["from"] = self.from_
        return params
