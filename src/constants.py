# ハッシュのシード値。変更すると全ユーザーの割り当てが変わるため固定。
SEED_VALUE = 1

MAX_TRAFFIC_PERCENT = 100
MAX_TRAFFIC_VALUE = 10_000
MAX_HASH_VALUE = 2 ** 32

STATUS_RUNNING = "RUNNING"

GOAL_TYPE_REVENUE = "REVENUE_TRACKING"
GOAL_TYPE_CUSTOM = "CUSTOM_GOAL"

PLATFORM = "server"
API_VERSION = 2
SDK_NAME = "python"
SDK_VERSION = "1.0.0"

BASE_URL = "dev.visualwebsiteoptimizer.com"
ACCOUNT_SETTINGS_PATH = "/server-side/settings"
TRACK_USER_PATH = "/server-side/track-user"
TRACK_GOAL_PATH = "/server-side/track-goal"
