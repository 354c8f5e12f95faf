from pathlib import Path

DEFAULT_DATA_DIR = (Path(__file__).parent.parent.resolve() / "data").absolute().resolve()
DEFAULT_SCREENSHOT_DIR = DEFAULT_DATA_DIR / "screenshots"

# Environment variable names
ENV_LLM_API_KEY = "LLM_API_KEY"
ENV_LLM_MODEL = "LLM_MODEL"
ENV_FIRECRAWL_API_KEY = "FIRECRAWL_API_KEY"
ENV_FIRECRAWL_API_BASE = "FIRECRAWL_API_BASE"
ENV_USE_FIRECRAWL = "USE_FIRECRAWL"
ENV_LIGHTHOUSE_COMMAND = "LIGHTHOUSE_COMMAND"
ENV_LIGHTHOUSE_TIMEOUT = "LIGHTHOUSE_TIMEOUT"
ENV_DATA_DIR = "STOREFRONT_AUDIT_DATA_DIR"
ENV_RULES_PATH = "STOREFRONT_AUDIT_RULES"
ENV_PLATFORM_SIGNALS_PATH = "STOREFRONT_AUDIT_PLATFORM_SIGNALS"

# Vision grader
DEFAULT_LLM_MODEL = "gpt-4o"
LLM_MAX_RETRIES = 2
LLM_RETRY_BASE_DELAY = 1.0  # Linear back-off: delay * (attempt + 1)
LLM_MAX_TOKENS = 4000
LLM_TEMPERATURE = 0.3
HTML_TRUNCATE_CHARS = 20_000

# Hosted scrape API
FIRECRAWL_DEFAULT_API_BASE = "https://api.firecrawl.dev/v1"
FIRECRAWL_WAIT_FOR_MS = 2000
FIRECRAWL_RETRY_WAIT_FOR_MS = 3000

# Timeouts (seconds)
SCRAPE_TIMEOUT = 60
SCREENSHOT_TIMEOUT = 45
LIGHTHOUSE_TIMEOUT = 40
FETCH_TIMEOUT = 15
GRADER_TIMEOUT = 120
UPLOAD_TIMEOUT = 30
PROGRESS_TIMEOUT = 5
REGION_CAPTURE_TIMEOUT = 30
STAGE_TIMEOUT_MARGIN = 10  # Outer wait on top of a collaborator's own timeout

# Mobile device profile
MOBILE_VIEWPORT_WIDTH = 375
MOBILE_VIEWPORT_HEIGHT = 812
MOBILE_DEVICE_SCALE_FACTOR = 2
MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 14_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/14.0 Mobile/15E148 Safari/604.1"
)
SCREENSHOT_MAX_RETRIES = 3
REGION_PADDING_PX = 80

# Progress milestones (percent, monotonic)
PROGRESS_START = 10
PROGRESS_PLATFORM_HINT = 15
PROGRESS_COLLECTED = 30
PROGRESS_MEASURED = 50
PROGRESS_GRADING = 55
PROGRESS_GRADED = 70
PROGRESS_EVIDENCE = 72
PROGRESS_SCORING = 75
PROGRESS_SCORED = 80
PROGRESS_REPORTING = 85
PROGRESS_DONE = 100

# Platform classifier
PLATFORM_ACCEPT_THRESHOLD = 0.5

# Scoring
HYBRID_DAMPING = 0.7
MAX_IMPROVEMENTS = 3
