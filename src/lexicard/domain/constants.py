"""Centralized constants for the lexicard application.

All magic numbers and scheduling tables live here so every layer
imports from a single source of truth.
"""

# ---------- Time ----------
MS_PER_DAY = 24 * 60 * 60 * 1000

# ---------- Scheduler ----------
# Review intervals in days, indexed by review count.
INTERVAL_TABLES: dict[str, tuple[int, ...]] = {
    "standard": (1, 2, 4, 7, 15, 30),
    "fast": (1, 2, 3, 5, 7, 14),
    "slow": (1, 3, 7, 14, 30, 60),
}
DEFAULT_PACE = "standard"

# Interval multipliers keyed by difficulty (0 = new, 5 = mastered).
DIFFICULTY_FACTORS: dict[int, float] = {
    0: 2.5,
    1: 2.2,
    2: 1.8,
    3: 1.3,
    4: 1.0,
    5: 0.8,
}
MIN_DIFFICULTY = 0
MAX_DIFFICULTY = 5
MIN_FAILED_DIFFICULTY = 1

# Incorrect answers never schedule further out than this.
MAX_INCORRECT_DAYS = 3
# Cumulative failures beyond this restart the interval table.
RESTART_AFTER_FAILURES = 2
# Incorrect answers step back this many positions in the table.
FAILURE_STEP_BACK = 2

MASTERED_DIFFICULTY = 4
LEARNING_REVIEW_LIMIT = 3

# ---------- Sessions ----------
DEFAULT_DAILY_GOAL = 20
DEFAULT_SCHEDULE_DAYS = 7
MIN_DAILY_GOAL = 10
MAX_DAILY_GOAL = 50
DAILY_GOAL_STEP = 5

# ---------- Mastery prediction ----------
MASTERY_REVIEWS = 5
AVERAGE_REVIEW_GAP_DAYS = 7

# ---------- Settings keys ----------
SETTING_PACE = "reviewInterval"
SETTING_DAILY_GOAL = "dailyGoal"
SETTING_LAST_SESSION = "lastSessionDate"
SETTING_CURRENT_STREAK = "currentStreak"
SETTING_GITHUB_TOKEN = "github_token"
SETTING_GITHUB_OWNER = "github_owner"
SETTING_GITHUB_REPO = "github_repo"
SETTING_GITHUB_BRANCH = "github_branch"
SETTING_LAST_SYNC_TIME = "last_sync_time"
SETTING_LAST_SYNC_SHA = "last_sync_sha"

# Never exported in a snapshot and kept across a destructive import.
DEVICE_LOCAL_SETTINGS = frozenset(
    {
        SETTING_GITHUB_TOKEN,
        SETTING_GITHUB_OWNER,
        SETTING_GITHUB_REPO,
        SETTING_GITHUB_BRANCH,
        SETTING_LAST_SYNC_TIME,
        SETTING_LAST_SYNC_SHA,
    }
)

# ---------- Dataset / Sync ----------
DATASET_VERSION = 1
DATA_FILE_PATH = "data/vocabulary-data.json"
DEFAULT_BRANCH = "main"
GITHUB_API_URL = "https://api.github.com"
REQUEST_TIMEOUT = 30.0
