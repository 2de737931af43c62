import os

def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val

API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")

# Oldest entries are dropped first once the log grows past this size.
EVENT_HISTORY_LIMIT = 200

MAX_SETS = 7
TEAMS = ("a", "b")
PLAYERS = ("a", "b", "c", "d")

# Overtime receiver orders only exist for these targets.
SUPPORTED_WIN_POINTS = (15, 21)


def parse_allowed_origins(raw):
    """Split the comma-separated origins of the display and overlay pages.

    Raises ``ValueError`` when no origin is given or when ``*`` is used, so a
    misconfigured deployment fails at startup.
    """
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    if not origins:
        raise ValueError(
            "ALLOWED_ORIGINS must list the scoreboard display origins, comma-separated."
        )
    if "*" in origins:
        raise ValueError("ALLOWED_ORIGINS cannot include '*'; list each display origin.")
    return origins
