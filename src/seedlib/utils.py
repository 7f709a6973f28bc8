import codecs
import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import ijson

logger = logging.getLogger(__name__)


def utc_now_iso():
    """Return a UTC timestamp string in ISO 8601 format (second precision)."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def read_json(path):
    """Read JSON from disk and return the decoded payload."""
    with open(Path(path), "r", encoding="utf-8") as fh:
        return json.load(fh)


def _json_default(obj):
    """JSON serializer fallback for Decimal and Path."""
    if isinstance(obj, Decimal):
        return int(obj) if obj.is_finite() and obj == obj.to_integral_value() else float(obj)
    if isinstance(obj, Path):
        return str(obj)
    return str(obj)


def dump_jsonl_line(record):
    """Serialize one record as a single JSON line (newline included)."""
    return json.dumps(record, ensure_ascii=False, default=_json_default) + "\n"


def _open_json_bytes(path):
    """Open a JSON file for ijson, positioned after a UTF-8 BOM if present."""
    fh = open(path, "rb")
    if fh.read(len(codecs.BOM_UTF8)) != codecs.BOM_UTF8:
        fh.seek(0)
    return fh


def _ensure_json_array(path):
    with open(path, "r", encoding="utf-8-sig") as fh:
        start = fh.read(2048)
    first = next((c for c in start if not c.isspace()), "")
    if first != "[":
        raise ValueError(f"Expected a JSON array in {path}, found {first or 'nothing'!r}")


def iter_seeds(path):
    """
    Return an iterator over heritrix seed objects from a JSON array dump.

    The file is checked up front; the array itself is streamed with ijson so
    the dump never has to fit in memory. Items that are not objects are skipped.
    """
    path = Path(path)
    _ensure_json_array(path)
    return _stream_seeds(path)


def _stream_seeds(path):
    skipped = 0
    with _open_json_bytes(path) as fh:
        for obj in ijson.items(fh, "item"):
            if isinstance(obj, dict):
                yield obj
            else:
                skipped += 1
    if skipped:
        logger.warning("[!] Skipped %s non-object items in %s", skipped, path)


def count_seeds(path):
    """Return count of items in a JSON array file (best-effort)."""
    try:
        with _open_json_bytes(Path(path)) as fh:
            return sum(1 for _ in ijson.items(fh, "item"))
    except (OSError, ijson.JSONError):
        return None


def _ensure(condition, message):
    if not condition:
        raise ValueError(message)


def load_school_list(path):
    """
    Load the ordered school/university lookup list.

    Every entry must be an object with non-empty string `url` and
    `institusjon` fields; an empty url would otherwise match every seed.
    """
    schools = read_json(path)
    _ensure(isinstance(schools, list), f"School list in {path} must be a JSON array, got {type(schools).__name__}.")
    for idx, school in enumerate(schools):
        _ensure(isinstance(school, dict), f"School #{idx} in {path} must be an object.")
        for field in ("url", "institusjon"):
            value = school.get(field)
            _ensure(
                isinstance(value, str) and value != "",
                f"School #{idx} in {path} missing non-empty string field {field}.",
            )
    logger.info("[*] Loaded %s schools from %s", len(schools), path)
    return [{"url": s["url"], "institusjon": s["institusjon"]} for s in schools]


def format_elapsed(seconds):
    """Return compact HH:MM:SS elapsed display."""
    total = max(0, int(seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
