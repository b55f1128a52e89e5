# Static defaults for the buy / claim contracts the leaderboard is built from.

# --- Event signatures (human-readable ABI) ---
# Buy: userTotalBuys is the buyer's all-time count at emission (running total)
ACTIVITY_EVENT = (
    "event Buy(address indexed user, uint256 ethPaid, uint64 userTotalBuys, uint32 buysInCurrentWindow)"
)
ACTIVITY_PARTICIPANT_FIELD = "user"
ACTIVITY_VALUE_FIELD = "userTotalBuys"

# Claim: allocationsClaimed is per transaction (delta)
SETTLEMENT_EVENT = "event Claim(address indexed user, uint256 allocationsClaimed, uint256 tokensPaid)"
SETTLEMENT_PARTICIPANT_FIELD = "user"
SETTLEMENT_VALUE_FIELD = "allocationsClaimed"

# --- Enrichment read (evaluated against "latest") ---
ENRICHMENT_FUNCTION = "function bonusPercent(address user) view returns (uint16)"

# --- Scan / output limits ---
CHUNK_SIZE_BLOCKS = 200_000  # keeps eth_getLogs under the node's 10k log ceiling
MIN_CHUNK_SIZE_BLOCKS = 128  # floor when halving an oversized chunk
DEPLOY_BLOCK = 0
UNIT_VALUE_USD = "0.1"  # $ value per buy
ROW_CAP = 100

# --- RPC ---
RPC_TIMEOUT_S = 30
RPC_MAX_RETRIES = 6
ENRICHMENT_WORKERS = 8
