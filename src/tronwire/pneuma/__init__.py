"""
Pneuma - On-chain interaction layer for tronwire.

Provides ABI parameter encoding, transaction assembly and the full-node
HTTP client.

Uses httpx + eth-abi + eth-hash instead of a heavyweight SDK.
"""
