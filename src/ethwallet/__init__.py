"""ethwallet - a rudimentary command-line Ethereum wallet.

Keeps accounts in an encrypted local keystore document, checks balances and
sends signed transfers through a remote node's JSON-RPC endpoint.
"""

__version__ = "1.0.0"
