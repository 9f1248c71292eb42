import os
from dataclasses import dataclass


def _env_flag(name: str, default: str = "") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    api_url: str = ""
    demo: bool = True
    admin_user: str = "admin"
    admin_pass: str = "password"
    secret_key: str = "dev-change-me"
    prefs_path: str = "tabnav_prefs.csv"
    timeout: float = 10.0
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 5000

    @classmethod
    def from_env(cls) -> "Settings":
        api_url = os.environ.get("TABNAV_API_URL", "").strip()
        return cls(
            api_url=api_url,
            demo=_env_flag("TABNAV_DEMO") or not api_url,
            admin_user=os.environ.get("ADMIN_USER", "admin"),
            admin_pass=os.environ.get("ADMIN_PASS", "password"),
            secret_key=os.environ.get("FLASK_SECRET", "dev-change-me"),
            prefs_path=os.environ.get("TABNAV_PREFS", "tabnav_prefs.csv"),
            timeout=float(os.environ.get("TABNAV_TIMEOUT", "10") or 10),
            log_level=os.environ.get("TABNAV_LOG_LEVEL", "INFO").upper(),
            host=os.environ.get("TABNAV_HOST", "127.0.0.1"),
            port=int(os.environ.get("TABNAV_PORT", "5000") or 5000),
        )

    def make_client(self, prefs=None):
        """Directory client chosen at startup: remote API or the in-memory demo."""
        from .client import HttpDirectoryClient, MemoryDirectoryClient
        if self.demo:
            return MemoryDirectoryClient.seeded(self.admin_user, self.admin_pass)
        return HttpDirectoryClient(self.api_url, timeout=self.timeout, credentials=prefs)
