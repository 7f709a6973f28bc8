#!/usr/bin/env python3
"""
migrate_seeds.py -- heritrix to Veidemann seed migration

Reads:
  - input/heritrix_seeds.json            (JSON array dump of the heritrix database)
  - data/skoler_og_universiteter.json    (school/university lookup list)

Writes:
  - output/veidemann_seeds.jsonl         (entities and seeds to import with veidemannctl)
  - output/failed_heritrix_seeds.jsonl   (records without a valid entityName or uri)
  - output/failed_heritrix_url.txt       (urls that could not be parsed)
  - reports/migration_summary_<run_id>.json
"""

import argparse
import io
import json
import logging
import sys
import time
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

import ijson
from tqdm import tqdm

from seedlib.config import (
    ACCEPTED_FILE_NAME,
    ERROR_URL_FILE_NAME,
    INPUT_FILE,
    OUTPUT_DIR,
    PROGRESS_LOG_EVERY,
    REJECTED_FILE_NAME,
    RUN_ID,
    SAMPLE_DIR,
    SCHOOL_LIST_FILE,
    SUMMARY_FILE,
)
from seedlib.labels import get_entity_label, has_profiles
from seedlib.sinks import SeedSinks
from seedlib.transform import is_valid, missing_fields, transform
from seedlib.urls import get_entity_name, get_uri
from seedlib.utils import _json_default, count_seeds, format_elapsed, iter_seeds, load_school_list, utc_now_iso

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

COUNTER_KEYS = ("checked", "accepted", "rejected", "missing_name", "missing_uri", "skipped_missing_url")


@dataclass(frozen=True)
class MigrationPaths:
    input_path: Path
    schools_path: Path
    output_dir: Path
    summary_path: Optional[Path] = None

    def sinks(self) -> SeedSinks:
        return SeedSinks.in_directory(self.output_dir, ACCEPTED_FILE_NAME, REJECTED_FILE_NAME, ERROR_URL_FILE_NAME)


def new_stats() -> Counter:
    return Counter({key: 0 for key in COUNTER_KEYS})


def migrate_seeds(
    seeds: Iterable[Mapping[str, Any]],
    schools: Sequence[Mapping[str, str]],
    sinks: SeedSinks,
    stats: Optional[Counter] = None,
) -> Counter:
    """
    Transform every seed with a url and route it to the accepted or the
    rejected output. Seeds without a url are only counted.
    """
    if stats is None:
        stats = new_stats()
    for seed in seeds:
        stats["checked"] += 1
        if not seed.get("url"):
            stats["skipped_missing_url"] += 1
            continue

        record = transform(seed, schools, sinks.error_log)
        if is_valid(record):
            stats["accepted"] += 1
            sinks.write_accepted(record)
        else:
            missing = missing_fields(record)
            if "entityName" in missing:
                stats["missing_name"] += 1
            if "uri" in missing:
                stats["missing_uri"] += 1
            stats["rejected"] += 1
            sinks.write_rejected(record)

        if stats["checked"] % PROGRESS_LOG_EVERY == 0:
            logger.info(
                "[*] Checked %s seeds: %s accepted, %s rejected.",
                stats["checked"],
                stats["accepted"],
                stats["rejected"],
            )
    return stats


def print_summary(stats: Counter, rejected_path: Path, elapsed: float) -> None:
    rule = "*" * 100
    print(rule)
    print(f"Checked {stats['checked']} seeds from heritrix")
    print(f"Created {stats['accepted']} seeds for Veidemann")
    print(f"Found {stats['missing_uri']} seeds with invalid uri and {stats['missing_name']} with invalid entity name")
    print(f"Skipped {stats['skipped_missing_url']} seeds without url")
    print(f"Rejected seeds are not part of the import, see: {rejected_path}")
    print(rule)
    print(f"The migration took {elapsed:.3f} seconds ({format_elapsed(elapsed)})")
    print(rule)


def write_summary(path: Path, payload: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(payload, fh, ensure_ascii=False, indent=2, default=_json_default)


def run(paths: MigrationPaths, show_progress: bool = True) -> Counter:
    """Run the whole migration for the given paths and return the counters."""
    schools = load_school_list(paths.schools_path)
    seeds = iter_seeds(paths.input_path)
    total = count_seeds(paths.input_path) if show_progress else None

    started_at = utc_now_iso()
    t0 = time.perf_counter()
    with paths.sinks() as sinks:
        with tqdm(
            seeds,
            desc="Migrating",
            unit="seeds",
            total=total,
            disable=not (show_progress and sys.stderr.isatty()),
        ) as progress:
            stats = migrate_seeds(progress, schools, sinks)
    elapsed = time.perf_counter() - t0

    print_summary(stats, sinks.rejected_path, elapsed)
    if paths.summary_path is not None:
        write_summary(
            paths.summary_path,
            {
                "run_id": RUN_ID,
                "started_at_utc": started_at,
                "elapsed_seconds": round(elapsed, 3),
                "inputs": {"seeds": str(paths.input_path), "schools": str(paths.schools_path)},
                "outputs": sinks.paths(),
                "counts": dict(stats),
            },
        )
        logger.info("[+] Wrote run summary to %s", paths.summary_path)
    return stats


def _run_self_tests() -> None:
    error_log = io.StringIO()
    assert get_uri("example.org/path", error_log) == "http://example.org/path", "scheme not inferred"
    assert get_uri("not a url!!", error_log) is None, "invalid host accepted"
    assert len(error_log.getvalue().splitlines()) == 1, "expected one diagnostic line"

    assert get_entity_name("http://www.kommune-x.no", error_log) == "Kommune-x", "www label not dropped"
    assert get_entity_name("http://www.x", error_log) == "", "www.x should collapse to an empty name"
    assert get_entity_name("http://localhost", error_log) == " ", "dotless host placeholder changed"

    assert has_profiles({"p1": 1, "p3": 1, "p99": 1, "p2": 0}) == "p1,p3,p99", "profiles not joined in order"
    assert has_profiles({"p1": True, "p2": "1", "p3": 2}) is None, "non-numeric profile flag counted"

    labels = get_entity_label({"url": "http://kommune.no", "description": "Lokalt museum"})
    values = [label["value"] for label in labels]
    assert values == ["heritrix", "kommune", "museum"], f"unexpected entity labels {values}"

    record = transform({"url": "http://www.x", "description": None}, [], error_log)
    assert not is_valid(record), "empty entity name must not validate"
    assert missing_fields(record) == ["entityName"], "only entityName should be missing"


def main() -> int:
    ap = argparse.ArgumentParser(description="Convert a heritrix seed dump to veidemannctl import records.")
    ap.add_argument("--sample", action="store_true", help="Use data_sample/ inputs/outputs instead of the defaults")
    ap.add_argument("--self-test", action="store_true", help="Run minimal self-tests and exit")
    ap.add_argument("--input", type=Path, help="JSON array dump of heritrix seeds")
    ap.add_argument("--schools", type=Path, help="School/university lookup list (JSON array)")
    ap.add_argument("--output-dir", type=Path, help="Directory for accepted/rejected/error-url files")
    ap.add_argument("--summary", type=Path, help="Where to write the JSON run summary")
    ap.add_argument("--no-progress", action="store_true", help="Disable the progress bar and the counting pass")
    args = ap.parse_args()

    if args.self_test:
        _run_self_tests()
        logger.info("[+] Self-tests passed.")
        return 0

    input_path, output_dir = INPUT_FILE, OUTPUT_DIR
    if args.sample:
        input_path = SAMPLE_DIR / INPUT_FILE.name
        output_dir = SAMPLE_DIR / OUTPUT_DIR.name
    paths = MigrationPaths(
        input_path=args.input or input_path,
        schools_path=args.schools or SCHOOL_LIST_FILE,
        output_dir=args.output_dir or output_dir,
        summary_path=args.summary or SUMMARY_FILE,
    )

    try:
        run(paths, show_progress=not args.no_progress)
    except (OSError, ValueError, ijson.JSONError) as exc:
        logger.error("[!] Migration aborted: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
