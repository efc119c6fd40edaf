"""Common configuration constants used across the application."""

# Chain Constants
DEFAULT_TOKEN_DECIMALS = 12
"""Default number of decimals of the native token (1 token = 10**12 planck)"""

# Pallet (section) names
STAKING_SECTION = "staking"
"""Staking pallet"""

BALANCES_SECTION = "balances"
"""Balances pallet"""

UTILITY_SECTION = "utility"
"""Utility pallet (batch calls)"""

PROXY_SECTION = "proxy"
"""Proxy pallet (proxied calls)"""

# Call names
PAYOUT_STAKERS_CALLS = ("payoutStakers",)
"""Calls that pay out a validator's stakers for one era"""

BATCH_CALLS = ("batch", "batchAll")
"""Utility calls that wrap a list of inner calls"""

PROXY_CALLS = ("proxy",)
"""Proxy calls that dispatch an inner call on behalf of another account"""

# Event names
REWARD_EVENTS = ("Reward", "Rewarded")
"""Staking reward events (older runtimes emit Reward)"""

SLASH_EVENTS = ("Slash", "Slashed")
"""Slash events emitted by both the staking and balances pallets"""

PAYOUT_STARTED_EVENTS = ("PayoutStarted",)
"""Marker emitted at the start of each payout_stakers call, data = (era, validator)"""

# Concurrency Limits
DEFAULT_PARALLEL_BATCHES = 5
"""Default number of blocks processed in parallel during a replay"""

DEFAULT_MAX_CONCURRENT_WRITES = 10
"""Default number of sink calls an engine keeps in flight (SQLAlchemy pool: 5 + 10 overflow)"""


__all__ = [
    "BALANCES_SECTION",
    "BATCH_CALLS",
    "DEFAULT_MAX_CONCURRENT_WRITES",
    "DEFAULT_PARALLEL_BATCHES",
    "DEFAULT_TOKEN_DECIMALS",
    "PAYOUT_STAKERS_CALLS",
    "PAYOUT_STARTED_EVENTS",
    "PROXY_CALLS",
    "PROXY_SECTION",
    "REWARD_EVENTS",
    "SLASH_EVENTS",
    "STAKING_SECTION",
    "UTILITY_SECTION",
]
