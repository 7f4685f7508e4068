"""Internal constants shared across the library."""

BASE_URL = "http://localhost:6397"
USER_AGENT = "pylmu/0.1"

SESSION_INFO_PATH = "/rest/watch/sessionInfo"
STANDINGS_PATH = "/rest/watch/standings"
FOCUS_PATH = "/rest/watch/focus"

DEFAULT_POLL_INTERVAL: float = 0.2
DEFAULT_PROBE_TIMEOUT: float = 3.0
DEFAULT_REQUEST_TIMEOUT: float = 5.0
DEFAULT_ERROR_COOLDOWN: float = 3.0

#: ``maximumLaps`` value the simulator sends for "no lap limit" (``UINT32_MAX``).
NO_LAP_LIMIT = 4_294_967_295

UNKNOWN_TRACK = "Unknown Track"
PENDING_PENALTY_REASON = "pending"
