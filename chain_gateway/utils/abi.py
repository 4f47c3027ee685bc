from typing import Any, Dict, List, Sequence

from eth_abi import decode, encode
from eth_utils import decode_hex, encode_hex, keccak, to_checksum_address


def canonical_type(param: Dict[str, Any]) -> str:
    """
    Returns the canonical ABI type of a parameter, expanding tuples.

    Parameters:
        param (dict): An ABI input/output entry.

    Returns:
        str: e.g. "uint256", "address[]" or "(address,uint256)[]".
    """
    type_ = param["type"]
    if type_.startswith("tuple"):
        inner = ",".join(canonical_type(c) for c in param.get("components", []))
        return f"({inner}){type_[len('tuple'):]}"
    return type_


def function_signature(function_abi: Dict[str, Any]) -> str:
    types = ",".join(canonical_type(p) for p in function_abi.get("inputs", []))
    return f"{function_abi['name']}({types})"


def function_selector(function_abi: Dict[str, Any]) -> bytes:
    return keccak(text=function_signature(function_abi))[:4]


def human_readable_signature(entry: Dict[str, Any]) -> str:
    """
    Renders an ABI entry the way it would be declared in Solidity.

    Parameters:
        entry (dict): A function or event ABI entry.

    Returns:
        str: e.g. "function balanceOf(address account) view returns (uint256)".
    """

    def _params(params: List[Dict[str, Any]]) -> str:
        rendered = []
        for p in params:
            parts = [canonical_type(p)]
            if p.get("indexed"):
                parts.append("indexed")
            if p.get("name"):
                parts.append(p["name"])
            rendered.append(" ".join(parts))
        return ", ".join(rendered)

    kind = entry.get("type", "function")
    text = f"{kind} {entry.get('name', '')}({_params(entry.get('inputs', []))})"
    mutability = entry.get("stateMutability")
    if mutability in ("view", "pure", "payable"):
        text += f" {mutability}"
    if entry.get("outputs"):
        text += f" returns ({_params(entry['outputs'])})"
    return text


def is_read_only(function_abi: Dict[str, Any]) -> bool:
    if function_abi.get("stateMutability") in ("view", "pure"):
        return True
    return bool(function_abi.get("constant", False))


def _coerce(type_: str, value: Any) -> Any:
    """Converts JSON-friendly argument values into what eth_abi expects."""
    if type_.endswith("]"):
        base = type_[: type_.rindex("[")]
        if not isinstance(value, (list, tuple)):
            raise TypeError(f"Expected a list for {type_}")
        return [_coerce(base, item) for item in value]
    if type_.startswith(("uint", "int")) and isinstance(value, str):
        return int(value, 0)
    if type_.startswith("bytes") and isinstance(value, str):
        return decode_hex(value)
    if type_ == "bool" and isinstance(value, str):
        if value.lower() not in ("true", "false"):
            raise ValueError(f"Invalid bool value: {value}")
        return value.lower() == "true"
    return value


def encode_call(function_abi: Dict[str, Any], args: Sequence[Any]) -> str:
    """
    Encodes a function call into transaction input data.

    Parameters:
        function_abi (dict): The ABI of the function.
        args (Sequence): Positional arguments, JSON-friendly values allowed
                         (numeric strings for integers, hex strings for bytes).

    Returns:
        str: 0x-prefixed selector followed by the encoded arguments.

    Raises:
        TypeError, ValueError or eth_abi EncodingError: If the arguments do not
        match the function inputs.
    """
    inputs = function_abi.get("inputs", [])
    if len(args) != len(inputs):
        raise ValueError(
            f"{function_abi['name']} expects {len(inputs)} arguments, got {len(args)}",
        )
    types = [canonical_type(p) for p in inputs]
    values = [_coerce(t, a) for t, a in zip(types, args)]
    return encode_hex(function_selector(function_abi) + encode(types, values))


def _postprocess(type_: str, value: Any) -> Any:
    if type_.endswith("]"):
        base = type_[: type_.rindex("[")]
        return [_postprocess(base, item) for item in value]
    if type_ == "address":
        return to_checksum_address(value)
    return value


def decode_output(function_abi: Dict[str, Any], output_data: str) -> Any:
    """
    Decodes ``eth_call`` return data using the function ABI.

    Parameters:
        function_abi (dict): The ABI of the function.
        output_data (str): The 0x-prefixed return data.

    Returns:
        The single decoded value, a list of values for multiple outputs, or None
        for a function without outputs.

    Raises:
        eth_abi DecodingError: If the data does not match the outputs.
    """
    outputs = function_abi.get("outputs", [])
    if not outputs:
        return None
    types = [canonical_type(p) for p in outputs]
    decoded = decode(types, decode_hex(output_data))
    values = [_postprocess(t, v) for t, v in zip(types, decoded)]
    return values[0] if len(values) == 1 else values


def to_json_value(value: Any) -> Any:
    """Makes decoded ABI values JSON safe: ints become decimal strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return encode_hex(value)
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    return value
