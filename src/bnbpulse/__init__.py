"""
BNB Pulse: aggregation backend for the BNB analytics dashboard.

Fetches supply, burn, backing, yield and lock-up data from chain RPC, DefiLlama,
Binance, Etherscan and CoinGecko, reconciles it into one payload per metric and
serves the payloads over HTTP.
"""

__version__ = "0.1.0"
