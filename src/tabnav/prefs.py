import csv
import logging
import os

logger = logging.getLogger(__name__)

FIELDS = ["key", "value"]


class Preferences:
    """Local key/value store persisted as a two-column CSV file.

    ``path=None`` keeps everything in memory. Each key has a single owning
    writer (theme: the navigator, auth_token: the HTTP client).
    """

    def __init__(self, path: str | None = None):
        self.path = path
        self._values: dict[str, str] = {}
        if path:
            self.ensure_csv()
            self._values = self.load_rows()

    # ----------------------------
    # Storage helpers
    # ----------------------------
    def ensure_csv(self):
        """Create file with header if missing."""
        if not os.path.exists(self.path):
            with open(self.path, "w", newline="", encoding="utf-8") as f:
                csv.DictWriter(f, fieldnames=FIELDS).writeheader()

    def load_rows(self) -> dict[str, str]:
        with open(self.path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        return {r["key"]: r.get("value") or "" for r in rows if r.get("key")}

    def save_rows(self):
        if not self.path:
            return
        with open(self.path, "w", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=FIELDS)
            w.writeheader()
            for k, v in sorted(self._values.items()):
                w.writerow({"key": k, "value": v})

    # ----------------------------
    # Mapping API
    # ----------------------------
    def get(self, key: str, default: str | None = None) -> str | None:
        return self._values.get(key, default)

    def set(self, key: str, value: str):
        if self._values.get(key) == value:
            return
        self._values[key] = value
        self.save_rows()
        logger.debug("Preference %s updated", key)

    def delete(self, key: str):
        if self._values.pop(key, None) is not None:
            self.save_rows()
            logger.debug("Preference %s removed", key)

    def __contains__(self, key):
        return key in self._values
