from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict

from chain_gateway.utils.abi import human_readable_signature


def _function(
    name: str,
    inputs: List[Dict[str, str]],
    outputs: List[Dict[str, str]],
    mutability: str = "view",
) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": outputs,
        "stateMutability": mutability,
    }


def _param(type_: str, name: str = "", indexed: Optional[bool] = None) -> Dict[str, Any]:
    param: Dict[str, Any] = {"name": name, "type": type_}
    if indexed is not None:
        param["indexed"] = indexed
    return param


ERC20_ABI: List[Dict[str, Any]] = [
    _function("name", [], [_param("string")]),
    _function("symbol", [], [_param("string")]),
    _function("decimals", [], [_param("uint8")]),
    _function("totalSupply", [], [_param("uint256")]),
    _function("balanceOf", [_param("address", "account")], [_param("uint256")]),
    _function(
        "transfer",
        [_param("address", "to"), _param("uint256", "amount")],
        [_param("bool")],
        "nonpayable",
    ),
    _function(
        "allowance",
        [_param("address", "owner"), _param("address", "spender")],
        [_param("uint256")],
    ),
    _function(
        "approve",
        [_param("address", "spender"), _param("uint256", "amount")],
        [_param("bool")],
        "nonpayable",
    ),
    _function(
        "transferFrom",
        [_param("address", "from"), _param("address", "to"), _param("uint256", "amount")],
        [_param("bool")],
        "nonpayable",
    ),
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            _param("address", "from", True),
            _param("address", "to", True),
            _param("uint256", "value", False),
        ],
    },
    {
        "type": "event",
        "name": "Approval",
        "anonymous": False,
        "inputs": [
            _param("address", "owner", True),
            _param("address", "spender", True),
            _param("uint256", "value", False),
        ],
    },
]


class InterfaceDescriptor(BaseModel):
    """
    The callable function and event signatures exposed by a contract.

    Attributes:
        name (str): Label of the interface, e.g. "ERC20".
        abi (List[Dict[str, Any]]): JSON ABI entries.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    abi: List[Dict[str, Any]]

    @property
    def functions(self) -> List[Dict[str, Any]]:
        return [entry for entry in self.abi if entry.get("type") == "function"]

    @property
    def events(self) -> List[Dict[str, Any]]:
        return [entry for entry in self.abi if entry.get("type") == "event"]

    def get_function(self, name: str) -> Optional[Dict[str, Any]]:
        """
        Look up a function entry by name.

        Args:
            name (str): The function name.

        Returns:
            Optional[Dict[str, Any]]: The ABI entry, None when the interface does
                                      not declare the function.
        """
        for entry in self.functions:
            if entry["name"] == name:
                return entry
        return None

    def signatures(self) -> List[str]:
        return [human_readable_signature(entry) for entry in self.abi]


class InterfaceSource(Protocol):
    """Resolves the interface a contract exposes on a given chain."""

    async def resolve_interface(
        self,
        address: str,
        chain_id: str,
    ) -> InterfaceDescriptor: ...


class StaticInterfaceSource:
    """Serves the same descriptor for every contract on every chain."""

    def __init__(self, descriptor: Optional[InterfaceDescriptor] = None) -> None:
        self.descriptor = descriptor or InterfaceDescriptor(name="ERC20", abi=ERC20_ABI)

    async def resolve_interface(
        self,
        address: str,
        chain_id: str,
    ) -> InterfaceDescriptor:
        return self.descriptor
