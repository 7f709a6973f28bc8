import re
from datetime import UTC, datetime
from pathlib import Path

# Input/output locations
DATA_DIR = Path("data")
SAMPLE_DIR = Path("data_sample")
INPUT_FILE = Path("input/heritrix_seeds.json")  # JSON array dump of the heritrix database
SCHOOL_LIST_FILE = DATA_DIR / "skoler_og_universiteter.json"
OUTPUT_DIR = Path("output")
ACCEPTED_FILE_NAME = "veidemann_seeds.jsonl"  # Import file for veidemannctl
REJECTED_FILE_NAME = "failed_heritrix_seeds.jsonl"  # Seeds missing entityName or uri
ERROR_URL_FILE_NAME = "failed_heritrix_url.txt"  # Free-text url parse diagnostics

# Run logging and telemetry
RUN_ID = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
REPORTS_DIR = Path("reports")
SUMMARY_FILE = REPORTS_DIR / f"migration_summary_{RUN_ID}.json"
PROGRESS_LOG_EVERY = 50000

# Label vocabulary of the target system
PROVENANCE_LABEL = {"key": "source", "value": "heritrix"}
CATEGORY_LABEL_KEY = "næring"
PROFILE_LABEL_KEY = "heritrix_profile"

# Heritrix profile flags, in declaration order
PROFILE_FIELDS = ("p1", "p2", "p3", "p4", "p5", "p6", "p7", "p8", "p9", "p10", "p99")

# URL parsing
DEFAULT_SCHEME_PREFIX = "http://"
HOSTNAME_PATTERN = re.compile(r"^[\w~%-]+(?:\.[\w~%-]*)*$")
IPV6_HOST_PATTERN = re.compile(r"^[0-9a-f:.]+$")
DOTLESS_HOST_NAME = " "  # Placeholder name for hosts without a dot
URL_AUTO_ESCAPE_CHARS = " \"'<>`{}|\\^"
