"""
Fixed distribution policy for holder dividends.

These values define the public rules of every distribution.
Changing them changes payouts and MUST be publicly announced.
"""

# 500k whole tokens = 1 share
TOKENS_PER_SHARE = 500_000

# Whale cap: balance above this many shares is ignored
MAX_SHARES_PER_WALLET = 50

# Pump.fun tokens use 6 decimals
DEFAULT_TOKEN_DECIMALS = 6

# Creator allocation limits (percent)
DEFAULT_PLATFORM_FEE_PERCENT = "2"
MAX_PLATFORM_FEE_PERCENT = 10

# Solana burn address (all 1s, 32 zero bytes)
SOLANA_BURN_ADDRESS = "11111111111111111111111111111111"

# Remainder left by floor division stays with the distributing wallet
DUST_POLICY = "retained_by_distributor"
