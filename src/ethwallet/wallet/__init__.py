"""Ethereum wallet core.

Encrypted keystore document, password-gated unlocking with eth-account, and a
web3 provider for balances and transfers.
"""
