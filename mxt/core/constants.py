APP_NAME = "MixTables"
APP_VERSION = "0.3.0"

# Tables créées avec chaque nouvel événement (id -> nom)
DEFAULT_TABLE_NAMES = ["일", "이", "삼", "사", "오", "육", "칠", "팔", "구", "십"]
DEFAULT_TABLE_SEATS = 1

DB_FILENAME = "mixtables.db"
AVATAR_FALLBACK_URL = "https://ui-avatars.com/api/?name={name}"
