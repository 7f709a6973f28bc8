import logging
from pathlib import Path

from .utils import dump_jsonl_line

logger = logging.getLogger(__name__)


class SeedSinks:
    """
    Append-only outputs of a migration run: accepted records, rejected
    records (both JSONL) and the free-text error-url log.

    Files are opened once on enter and closed on exit.
    """

    def __init__(self, accepted_path, rejected_path, error_url_path):
        self.accepted_path = Path(accepted_path)
        self.rejected_path = Path(rejected_path)
        self.error_url_path = Path(error_url_path)
        self._accepted = None
        self._rejected = None
        self.error_log = None

    @classmethod
    def in_directory(cls, output_dir, accepted_name, rejected_name, error_url_name):
        output_dir = Path(output_dir)
        return cls(output_dir / accepted_name, output_dir / rejected_name, output_dir / error_url_name)

    def __enter__(self):
        handles = []
        try:
            for path in (self.accepted_path, self.rejected_path, self.error_url_path):
                path.parent.mkdir(parents=True, exist_ok=True)
                handles.append(open(path, "w", encoding="utf-8"))
        except OSError:
            for fh in handles:
                fh.close()
            raise
        self._accepted, self._rejected, self.error_log = handles
        logger.info("[*] Writing accepted seeds to %s, rejected seeds to %s", self.accepted_path, self.rejected_path)
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self):
        for fh in (self._accepted, self._rejected, self.error_log):
            if fh is not None:
                fh.close()
        self._accepted = self._rejected = self.error_log = None

    def write_accepted(self, record):
        self._accepted.write(dump_jsonl_line(record))

    def write_rejected(self, record):
        self._rejected.write(dump_jsonl_line(record))

    def paths(self):
        return {
            "accepted": str(self.accepted_path),
            "rejected": str(self.rejected_path),
            "error_urls": str(self.error_url_path),
        }
