"""Multi-chain JSON-RPC gateway for contract reads and transaction status."""
