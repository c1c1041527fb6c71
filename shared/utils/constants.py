"""Assignment lifecycle constants - all magic numbers centralized."""

# Understanding levels (total score bands, 0-100)
STRONG_THRESHOLD = 70  # 70-100: strong understanding
DEVELOPING_THRESHOLD = 40  # 40-69: developing understanding
# 0-39: needs support

# Coach usage
SIGNIFICANT_HINT_RATIO = 0.5  # Hinted responses / responses above this flags a student

# Per-question analysis (criterion score bands, 0-100)
QUESTION_SUCCESS_SCORE = 70  # Criterion score counted as a success
HINT_EFFECTIVE_SCORE = 60  # Criterion score after a hint counted as "hint helped"
STRENGTH_SUCCESS_RATE = 0.7
MASTERED_SUCCESS_RATE = 0.85
CHALLENGE_SUCCESS_RATE = 0.5
HINT_USAGE_RATE_FLOOR = 0.3  # Hint rate needed before judging hint effectiveness
EFFECTIVE_HINT_RATE = 0.6
INEFFECTIVE_HINT_RATE = 0.4
MAX_INSIGHTS_PER_BUCKET = 3
QUESTION_LABEL_LENGTH = 50

# Lifecycle timing
DEFAULT_RECENT_ACTIVITY_WINDOW_HOURS = 48
DEFAULT_AUTO_ARCHIVE_THRESHOLD_DAYS = 7

# Default/fallback values
UNKNOWN_STUDENT_NAME = "Unknown"
UNKNOWN_ASSIGNMENT_TITLE = "Unknown"
DEFAULT_STATE_FILE = "data/assignment-states.json"

# Session statuses reported by the session collaborator
SESSION_STATUS_COMPLETED = "completed"
