import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import is_address, to_checksum_address
from loguru import logger
from pydantic import ValidationError

from chain_gateway.exceptions import InvalidInput, NotFound, UpstreamError
from chain_gateway.interfaces import InterfaceDescriptor, InterfaceSource
from chain_gateway.models import (
    Receipt,
    Transaction,
    TransactionRequest,
    TransactionStatusView,
)
from chain_gateway.rpc_client import JsonRpcTransport
from chain_gateway.utils.abi import decode_output, encode_call, is_read_only

TX_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


@dataclass(frozen=True)
class ContractHandle:
    """A contract address bound to its interface on one chain."""

    address: str
    chain_id: str
    descriptor: InterfaceDescriptor


class ChainClient:
    """
    Single point of contact with one upstream network endpoint.

    Wraps a JSON-RPC transport and exposes read operations with normalized error
    semantics: malformed input raises InvalidInput, absent transactions raise
    NotFound and every transport or protocol failure raises UpstreamError. Calls
    are single attempts; retry policy belongs to the caller.
    """

    def __init__(
        self,
        chain_id: str,
        endpoint: str,
        transport: JsonRpcTransport,
        interface_source: InterfaceSource,
    ) -> None:
        self.chain_id = chain_id
        self.endpoint = endpoint
        self.transport = transport
        self.interface_source = interface_source

    def __repr__(self) -> str:
        return f"ChainClient(chain_id={self.chain_id!r})"

    async def connect(self) -> None:
        """
        Probe the endpoint with ``eth_chainId``.

        When the client is bound to a numeric chain identifier the node must
        report the same chain, otherwise the endpoint is misconfigured.

        Raises:
            UpstreamError: If the node is unreachable or serves another chain.
        """
        remote_chain_id = await self.transport.get_chain_id()
        if self.chain_id.isdigit() and int(self.chain_id) != remote_chain_id:
            raise UpstreamError(
                f"Endpoint for chain {self.chain_id} serves chain {remote_chain_id}",
                chain_id=self.chain_id,
                remote_chain_id=remote_chain_id,
            )
        logger.info(f"Connected to chain {self.chain_id} (node chain id {remote_chain_id})")

    async def close(self) -> None:
        await self.transport.close()

    def _validate_hash(self, tx_hash: str) -> str:
        if not isinstance(tx_hash, str) or not TX_HASH_PATTERN.match(tx_hash):
            raise InvalidInput(
                f"Invalid transaction hash: {tx_hash}",
                tx_hash=tx_hash,
                chain_id=self.chain_id,
            )
        return tx_hash.lower()

    def _validate_address(self, address: str, field: str = "address") -> str:
        if not isinstance(address, str) or not is_address(address):
            raise InvalidInput(
                f"Invalid {field}: {address}",
                address=address,
                chain_id=self.chain_id,
            )
        return to_checksum_address(address)

    def get_contract(
        self,
        address: str,
        descriptor: InterfaceDescriptor,
    ) -> ContractHandle:
        """
        Bind a contract address and its interface to this chain.

        Args:
            address (str): The contract address.
            descriptor (InterfaceDescriptor): The interface the contract exposes.

        Returns:
            ContractHandle: Handle usable with call_read_function.

        Raises:
            InvalidInput: If the address is malformed.
        """
        checksum_address = self._validate_address(address, "contract address")
        return ContractHandle(
            address=checksum_address,
            chain_id=self.chain_id,
            descriptor=descriptor,
        )

    async def load_contract(self, address: str) -> ContractHandle:
        """Resolve the contract interface through the interface source and bind it."""
        checksum_address = self._validate_address(address, "contract address")
        descriptor = await self.interface_source.resolve_interface(
            checksum_address,
            self.chain_id,
        )
        return self.get_contract(checksum_address, descriptor)

    def _function_abi(self, handle: ContractHandle, function_name: str) -> Dict[str, Any]:
        function_abi = handle.descriptor.get_function(function_name)
        if function_abi is None:
            raise InvalidInput(
                f"Function {function_name} not found in contract",
                address=handle.address,
                function=function_name,
                chain_id=self.chain_id,
            )
        return function_abi

    def encode_function_call(
        self,
        handle: ContractHandle,
        function_name: str,
        args: Sequence[Any],
    ) -> str:
        """
        Encode call data for a function declared by the contract interface.

        Raises:
            InvalidInput: If the function is unknown or the arguments do not
                          match its inputs.
        """
        function_abi = self._function_abi(handle, function_name)
        try:
            return encode_call(function_abi, args)
        except (EncodingError, TypeError, ValueError) as exc:
            raise InvalidInput(
                f"Invalid arguments for {function_name}: {exc}",
                address=handle.address,
                function=function_name,
                chain_id=self.chain_id,
            ) from exc

    async def call_read_function(
        self,
        handle: ContractHandle,
        function_name: str,
        args: Sequence[Any] = (),
    ) -> Any:
        """
        Call a view or pure contract function and decode its result.

        Args:
            handle (ContractHandle): The bound contract.
            function_name (str): Name of the function to call.
            args (Sequence[Any]): Positional arguments.

        Returns:
            Any: The decoded value, a list for multiple outputs.

        Raises:
            InvalidInput: If the function is absent, not read-only, or the
                          arguments do not encode.
            UpstreamError: If the node fails or returns undecodable data.
        """
        function_abi = self._function_abi(handle, function_name)
        if not is_read_only(function_abi):
            raise InvalidInput(
                f"Function {function_name} is not a read-only function",
                address=handle.address,
                function=function_name,
                chain_id=self.chain_id,
            )
        data = self.encode_function_call(handle, function_name, args)

        output = await self.transport.call({"to": handle.address, "data": data})
        try:
            return decode_output(function_abi, output)
        except (DecodingError, ValueError) as exc:
            raise UpstreamError(
                f"Could not decode result of {function_name}: {exc}",
                address=handle.address,
                function=function_name,
                chain_id=self.chain_id,
            ) from exc

    def _parse(self, model: Any, payload: Dict[str, Any], tx_hash: str) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise UpstreamError(
                f"Malformed {model.__name__.lower()} for {tx_hash}",
                tx_hash=tx_hash,
                chain_id=self.chain_id,
            ) from exc

    async def get_transaction(self, tx_hash: str) -> Optional[Transaction]:
        tx_hash = self._validate_hash(tx_hash)
        payload = await self.transport.get_transaction(tx_hash)
        if payload is None:
            return None
        return self._parse(Transaction, payload, tx_hash)

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Receipt]:
        tx_hash = self._validate_hash(tx_hash)
        payload = await self.transport.get_transaction_receipt(tx_hash)
        if payload is None:
            return None
        return self._parse(Receipt, payload, tx_hash)

    async def get_block_number(self) -> int:
        return await self.transport.get_block_number()

    async def estimate_gas(self, tx: TransactionRequest) -> int:
        """
        Estimate the gas a transaction would consume.

        Raises:
            InvalidInput: If the recipient or sender address is malformed.
        """
        self._validate_address(tx.to, "recipient address")
        if tx.from_:
            self._validate_address(tx.from_, "sender address")
        return await self.transport.estimate_gas(tx.to_rpc())

    async def get_transaction_status(self, tx_hash: str) -> TransactionStatusView:
        """
        Derive the status of a transaction.

        The transaction is looked up first. A pending transaction is reported
        without further calls; a mined one is followed by a receipt lookup and
        then a block number lookup to count confirmations.

        Args:
            tx_hash (str): The transaction hash.

        Returns:
            TransactionStatusView: The combined status.

        Raises:
            NotFound: If the node does not know the transaction.
        """
        tx = await self.get_transaction(tx_hash)
        if tx is None:
            raise NotFound(
                f"Transaction {tx_hash} not found",
                tx_hash=tx_hash,
                chain_id=self.chain_id,
            )

        view = TransactionStatusView(
            hash=tx_hash,
            status="pending",
            block_number=tx.block_number,
            confirmations=0,
            from_=tx.from_,
            to=tx.to,
            value=tx.value,
        )
        if tx.block_number is None:
            return view

        receipt = await self.get_transaction_receipt(tx_hash)
        current_block = await self.get_block_number()
        view.confirmations = max(current_block - tx.block_number + 1, 1)
        if receipt is not None:
            view.status = "success" if receipt.succeeded else "failed"
            view.gas_used = receipt.gas_used
            view.effective_gas_price = receipt.effective_gas_price
        return view
