"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE = 0
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_SORT_FIELD = "id"

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
MIN_AGE = 18
MAX_AGE = 100
CLASS_NAME_MAX_LENGTH = 50
MAX_SUBJECTS = 20
EMAIL_MAX_LENGTH = 100
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6
