"""Coin alias resolution.

Maps user-typed names and ticker symbols to CoinGecko coin ids. Unknown
names pass through lower-cased; the data source decides whether they exist.
"""

COIN_ALIASES: dict[str, str] = {
    "btc": "bitcoin",
    "bitcoin": "bitcoin",
    "eth": "ethereum",
    "ethereum": "ethereum",
    "ada": "cardano",
    "cardano": "cardano",
    "dot": "polkadot",
    "polkadot": "polkadot",
    "link": "chainlink",
    "chainlink": "chainlink",
    "bnb": "binancecoin",
    "binance": "binancecoin",
    "sol": "solana",
    "solana": "solana",
    "matic": "matic-network",
    "polygon": "matic-network",
    "avax": "avalanche-2",
    "avalanche": "avalanche-2",
    "luna": "terra-luna",
    "doge": "dogecoin",
    "dogecoin": "dogecoin",
    "shib": "shiba-inu",
    "shiba": "shiba-inu",
    "xrp": "ripple",
    "ripple": "ripple",
    "ltc": "litecoin",
    "litecoin": "litecoin",
    "uni": "uniswap",
    "uniswap": "uniswap",
    "atom": "cosmos",
    "cosmos": "cosmos",
    "near": "near",
    "arb": "arbitrum",
    "arbitrum": "arbitrum",
    "op": "optimism",
    "optimism": "optimism",
    "apt": "aptos",
    "aptos": "aptos",
    "fil": "filecoin",
    "filecoin": "filecoin",
    "sui": "sui",
    "pepe": "pepe",
}


def resolve_coin_id(name: str) -> str:
    """Return the canonical coin id for a user-typed name or symbol."""
    key = name.lower()
    return COIN_ALIASES.get(key, key)
