import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

import ijson

from migrate_seeds import MigrationPaths, migrate_seeds, new_stats, print_summary, run
from seedlib.sinks import SeedSinks
from seedlib.utils import count_seeds, iter_seeds, load_school_list

SEEDS = [
    {"url": "http://www.nrk.no", "description": "Norsk rikskringkasting", "p1": 1},
    {"url": "www.bergen.kommune.no", "description": None, "p2": 1, "p99": 1},
    {"url": "http://www.x", "description": ""},
    {"url": "not a url!!", "description": "Ugyldig"},
    {"url": "", "description": "Tom url"},
    {"description": "Mangler url", "p1": 1},
    {"url": "http://www.uio.no", "description": "Universitetet i Oslo"},
]
SCHOOLS = [{"url": "uio.no", "institusjon": "universitet"}]


def read_jsonl(path):
    with open(path, "r", encoding="utf-8") as fh:
        return [json.loads(line) for line in fh if line.strip()]


class MigrationTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def write_json(self, name, payload) -> Path:
        path = self.tmp / name
        path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        return path


class MigrateSeedsTests(MigrationTestCase):
    def _migrate(self, seeds):
        sinks = SeedSinks(self.tmp / "out" / "ok.jsonl", self.tmp / "out" / "bad.jsonl", self.tmp / "out" / "urls.txt")
        with sinks:
            stats = migrate_seeds(iter(seeds), SCHOOLS, sinks)
        return stats, sinks

    def test_routing_and_counters(self) -> None:
        stats, sinks = self._migrate(SEEDS)
        self.assertEqual(stats["checked"], 7)
        self.assertEqual(stats["skipped_missing_url"], 2)
        self.assertEqual(stats["accepted"], 3)
        self.assertEqual(stats["rejected"], 2)
        self.assertEqual(stats["missing_name"], 2)
        self.assertEqual(stats["missing_uri"], 1)
        self.assertEqual(stats["checked"], stats["accepted"] + stats["rejected"] + stats["skipped_missing_url"])

        accepted = read_jsonl(sinks.accepted_path)
        rejected = read_jsonl(sinks.rejected_path)
        self.assertEqual([r["uri"] for r in accepted], ["http://www.nrk.no/", "http://www.bergen.kommune.no/", "http://www.uio.no/"])
        self.assertEqual([r["entityName"] for r in accepted], ["Nrk", "Bergen kommune", "Uio"])
        self.assertEqual(accepted[2]["entityLabel"][-1], {"key": "næring", "value": "universitet"})
        self.assertEqual(accepted[1]["seedLabel"][-1], {"key": "heritrix_profile", "value": "p2,p99"})
        self.assertEqual(len(rejected), 2)
        self.assertEqual(rejected[0]["entityName"], "")
        self.assertEqual(rejected[1]["entityDescription"], "Ugyldig")

        error_lines = sinks.error_url_path.read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(error_lines), 2)
        self.assertTrue(error_lines[0].startswith("Could not create entityname based on hostname from url: not a url!!"))
        self.assertTrue(error_lines[1].startswith("not a url!!: "))

    def test_sinks_are_closed(self) -> None:
        _, sinks = self._migrate(SEEDS[:1])
        self.assertIsNone(sinks.error_log)

    def test_sinks_are_closed_when_the_loop_raises(self) -> None:
        def seeds():
            yield SEEDS[0]
            raise RuntimeError("dump truncated")

        sinks = SeedSinks(self.tmp / "ok.jsonl", self.tmp / "bad.jsonl", self.tmp / "urls.txt")
        with self.assertRaises(RuntimeError):
            with sinks:
                migrate_seeds(seeds(), SCHOOLS, sinks)
        self.assertIsNone(sinks.error_log)
        self.assertEqual([r["entityName"] for r in read_jsonl(sinks.accepted_path)], ["Nrk"])

    def test_existing_stats_are_extended(self) -> None:
        stats = new_stats()
        stats["checked"] = 5
        with SeedSinks(self.tmp / "a", self.tmp / "b", self.tmp / "c") as sinks:
            migrate_seeds(SEEDS[:2], SCHOOLS, sinks, stats)
        self.assertEqual(stats["checked"], 7)
        self.assertEqual(stats["accepted"], 2)


class RecordSourceTests(MigrationTestCase):
    def test_streams_objects_only(self) -> None:
        path = self.write_json("seeds.json", [{"url": "http://nb.no", "p1": 1}, 3, "x", {"url": "http://nrk.no"}])
        seeds = list(iter_seeds(path))
        self.assertEqual([s["url"] for s in seeds], ["http://nb.no", "http://nrk.no"])
        self.assertEqual(seeds[0]["p1"], 1)
        self.assertEqual(count_seeds(path), 4)

    def test_skips_utf8_bom(self) -> None:
        path = self.tmp / "seeds.json"
        path.write_bytes(b"\xef\xbb\xbf" + json.dumps([{"url": "http://nb.no"}]).encode("utf-8"))
        self.assertEqual([s["url"] for s in iter_seeds(path)], ["http://nb.no"])
        self.assertEqual(count_seeds(path), 1)

    def test_rejects_non_array(self) -> None:
        path = self.write_json("seeds.json", {"url": "http://nb.no"})
        with self.assertRaises(ValueError):
            iter_seeds(path)

    def test_count_of_missing_file(self) -> None:
        self.assertIsNone(count_seeds(self.tmp / "missing.json"))


class SchoolListTests(MigrationTestCase):
    def test_loads_entries(self) -> None:
        path = self.write_json("schools.json", [{"url": "uio.no", "institusjon": "universitet", "extra": 1}])
        self.assertEqual(load_school_list(path), [{"url": "uio.no", "institusjon": "universitet"}])

    def test_rejects_empty_url(self) -> None:
        path = self.write_json("schools.json", [{"url": "", "institusjon": "universitet"}])
        with self.assertRaises(ValueError):
            load_school_list(path)

    def test_rejects_non_list(self) -> None:
        path = self.write_json("schools.json", {"uio.no": "universitet"})
        with self.assertRaises(ValueError):
            load_school_list(path)

    def test_bundled_list_is_valid(self) -> None:
        bundled = Path(__file__).resolve().parents[1] / "data" / "skoler_og_universiteter.json"
        self.assertTrue(load_school_list(bundled))


class RunTests(MigrationTestCase):
    def test_console_summary(self) -> None:
        stats = new_stats()
        stats.update(checked=7, accepted=3, rejected=2, missing_name=2, missing_uri=1, skipped_missing_url=2)
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            print_summary(stats, Path("output/failed_heritrix_seeds.jsonl"), 2.5)
        text = out.getvalue()
        self.assertIn("Checked 7 seeds from heritrix", text)
        self.assertIn("Created 3 seeds for Veidemann", text)
        self.assertIn("Found 1 seeds with invalid uri and 2 with invalid entity name", text)
        self.assertIn("Skipped 2 seeds without url", text)
        self.assertIn("output/failed_heritrix_seeds.jsonl", text)
        self.assertIn("2.500 seconds (00:00:02)", text)

    def test_end_to_end(self) -> None:
        paths = MigrationPaths(
            input_path=self.write_json("seeds.json", SEEDS),
            schools_path=self.write_json("schools.json", SCHOOLS),
            output_dir=self.tmp / "output",
            summary_path=self.tmp / "reports" / "summary.json",
        )
        stats = run(paths, show_progress=False)
        self.assertEqual(stats["accepted"], 3)

        summary = json.loads(paths.summary_path.read_text(encoding="utf-8"))
        self.assertEqual(summary["counts"]["checked"], 7)
        self.assertEqual(summary["counts"]["rejected"], 2)
        self.assertIn("elapsed_seconds", summary)
        self.assertEqual(Path(summary["outputs"]["accepted"]).parent, self.tmp / "output")
        self.assertEqual(len(read_jsonl(self.tmp / "output" / "veidemann_seeds.jsonl")), 3)
        self.assertEqual(len(read_jsonl(self.tmp / "output" / "failed_heritrix_seeds.jsonl")), 2)

    def test_truncated_dump_closes_outputs(self) -> None:
        input_path = self.tmp / "seeds.json"
        input_path.write_text('[{"url": "http://www.nrk.no"}, {"url": "http://nb', encoding="utf-8")
        paths = MigrationPaths(
            input_path=input_path,
            schools_path=self.write_json("schools.json", SCHOOLS),
            output_dir=self.tmp / "output",
        )
        with self.assertRaises(ijson.JSONError):
            run(paths, show_progress=False)
        accepted = read_jsonl(self.tmp / "output" / "veidemann_seeds.jsonl")
        self.assertIn([r["uri"] for r in accepted], ([], ["http://www.nrk.no/"]))
        self.assertTrue((self.tmp / "output" / "failed_heritrix_url.txt").exists())

    def test_invalid_input_creates_no_output(self) -> None:
        paths = MigrationPaths(
            input_path=self.write_json("seeds.json", {"not": "an array"}),
            schools_path=self.write_json("schools.json", SCHOOLS),
            output_dir=self.tmp / "output",
        )
        with self.assertRaises(ValueError):
            run(paths, show_progress=False)
        self.assertFalse((self.tmp / "output").exists())


if __name__ == "__main__":
    unittest.main()
