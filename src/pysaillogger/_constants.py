"""Internal constants shared across the library."""

BASE_URL = "https://saillogger.com/api/v1/collector"
USER_AGENT = "pysaillogger"
COLLECTOR_ID_HEADER = "X-Collector-Id"
DATABASE_FILENAME = "saillogger.sqlite3"

# ------------------------------------------------------------------
# Unit conversion factors
# ------------------------------------------------------------------

MS_TO_KNOTS = 1.94384
RAD_TO_DEG = 57.2958
KELVIN_OFFSET = 273.15

# Degrees of arc -> statute miles -> nautical miles.
ARC_DEGREE_MILES = 60 * 1.1515
STATUTE_TO_NAUTICAL = 0.8684

# ------------------------------------------------------------------
# Significance defaults
# ------------------------------------------------------------------

MIN_DISTANCE_NM = 0.50
MAX_INTERVAL_S = 15 * 60
MOVING_INTERVAL_S = 5 * 60
SPEED_THRESHOLD_KN = 1.0
TURN_THRESHOLD_DEG = 25.0
MIN_PERSIST_INTERVAL_S = 60.0
ANOMALY_DISTANCE_NM = 5.0
ANOMALY_WINDOW_S = 2 * 60.0
SPEED_BAND_MULTIPLIERS: tuple[int, ...] = (1, 2, 3)

SPEED_WINDOW_SIZE = 3
COURSE_WINDOW_SIZE = 6

# ------------------------------------------------------------------
# Delivery defaults
# ------------------------------------------------------------------

PUSH_BATCH_LIMIT = 60
TARGET_DETAIL_EVERY = 30

# Signal K paths consumed by sample ingest.
PATH_POSITION = "navigation.position"
PATH_SPEED_OVER_GROUND = "navigation.speedOverGround"
PATH_COURSE_OVER_GROUND = "navigation.courseOverGroundTrue"
PATH_WIND_SPEED_APPARENT = "environment.wind.speedApparent"
PATH_WIND_ANGLE_APPARENT = "environment.wind.angleApparent"

SAMPLE_PATHS: tuple[str, ...] = (
    PATH_POSITION,
    PATH_SPEED_OVER_GROUND,
    PATH_COURSE_OVER_GROUND,
    PATH_WIND_SPEED_APPARENT,
    PATH_WIND_ANGLE_APPARENT,
)
