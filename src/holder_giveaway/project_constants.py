"""
Project-wide immutable parameters for the holder giveaway.

These values define the public rules of the leaderboard and the milestone draw.
Changing them changes entries and MUST be publicly announced.
"""

# Entries
BASE_ENTRIES = 500
MAX_ENTRIES = 10_000_000
MAX_MULTIPLIER = 10.0

# Market-cap tiers for the minimum holding that earns entries (USD, upper bound exclusive)
MIN_TOKEN_TIERS = (
    (200_000, 100),
    (2_000_000, 10),
)
MIN_TOKENS_FLOOR = 1

# Milestones (USD market cap)
GIVEAWAY_COMMIT_CAP = 200_000_000
AIRDROP_SNAPSHOT_CAP = 300_000_000

# Slots ahead of the finalized slot used as the draw seed at $200M
SLOT_OFFSET = 500

# Refresh cadence
UPDATE_INTERVAL_MINUTES = 15

# getTokenAccounts page size
HOLDER_PAGE_SIZE = 1000

# Served leaderboard length
LEADERBOARD_TOP_N = 250

# Wallets that never appear on the leaderboard (burn, treasury, LP vault)
DEFAULT_BLACKLIST = frozenset(
    {
        "11111111111111111111111111111111",
        "YourTreasuryWalletHere",
        "LPVaultWalletHere",
    }
)

# Price providers, tried in this order
PUMPFUN_API = "https://frontend-api.pump.fun"
DEXSCREENER_API = "https://api.dexscreener.com"
JUPITER_API = "https://price.jup.ag"

# Public RPC used for the finalized slot commitment
DEFAULT_SLOT_RPC_URL = "https://api.mainnet-beta.solana.com"

# Milestone files (live + manual test variants)
COMMIT_200M_FILE = "200M_commit.json"
SNAPSHOT_200M_FILE = "200M_snapshot.json"
SNAPSHOT_300M_FILE = "300M_snapshot.json"
COMMIT_200M_TEST_FILE = "200M_commit_test.json"
SNAPSHOT_200M_TEST_FILE = "200M_snapshot_test.json"
SNAPSHOT_300M_TEST_FILE = "300M_snapshot_test.json"

MILESTONE_FILES = (
    COMMIT_200M_FILE,
    SNAPSHOT_200M_FILE,
    SNAPSHOT_300M_FILE,
    COMMIT_200M_TEST_FILE,
    SNAPSHOT_200M_TEST_FILE,
    SNAPSHOT_300M_TEST_FILE,
)
