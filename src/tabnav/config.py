import logging

from .css import sanitize_css
from .errors import NavError, ParseError, ValidationError
from .session import ViewMode
from .urls import is_secure_url

logger = logging.getLogger(__name__)

DEFAULT_CONFIGS: dict[str, str] = {
    "site.title": "Start Page",
    "site.name": "Start Page",
    "site.customCss": "",
    "site.backgroundImage": "",
    "site.backgroundOpacity": "0.15",
    "site.iconApi": "https://www.faviconextractor.com/favicon/{domain}?larger=true",
    "site.searchBoxEnabled": "true",
    "site.searchBoxGuestEnabled": "true",
}

BOOL_KEYS = ("site.searchBoxEnabled", "site.searchBoxGuestEnabled")


def merge_configs(remote: dict[str, str] | None) -> dict[str, str]:
    """Remote values over the defaults, key by key; unknown remote keys are kept."""
    merged = dict(DEFAULT_CONFIGS)
    merged.update(remote or {})
    return merged

def check_remote(raw) -> dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ParseError("Configuration must be a mapping of strings.")
    for k, v in raw.items():
        if not isinstance(k, str) or not isinstance(v, str):
            raise ParseError(f"Configuration value for {k!r} is not a string.")
    return dict(raw)

def validate(configs: dict[str, str]):
    opacity = configs.get("site.backgroundOpacity", "")
    try:
        value = float(opacity)
    except (TypeError, ValueError):
        raise ValidationError(f"Background opacity must be a number between 0 and 1, got {opacity!r}.")
    if not 0.0 <= value <= 1.0:
        raise ValidationError(f"Background opacity must be between 0 and 1, got {opacity}.")
    for key in BOOL_KEYS:
        if configs.get(key) not in ("true", "false"):
            raise ValidationError(f"{key} must be 'true' or 'false'.")
    icon_api = configs.get("site.iconApi", "")
    if icon_api and "{domain}" not in icon_api:
        raise ValidationError("Icon API must contain a {domain} placeholder.")


class ConfigResolver:
    """Site-wide configuration: live map for rendering, draft map for the settings dialog."""

    def __init__(self, client):
        self.client = client
        self.live: dict[str, str] = dict(DEFAULT_CONFIGS)
        self._draft: dict[str, str] = dict(DEFAULT_CONFIGS)

    async def load(self):
        remote = check_remote(await self.client.get_configs())
        self.live = merge_configs(remote)
        self._draft = dict(self.live)
        logger.info("Loaded configuration (%d remote key(s))", len(remote))

    # ----------------------------
    # Draft editing
    # ----------------------------
    @property
    def draft(self) -> dict[str, str]:
        return dict(self._draft)

    def edit_draft(self, key: str, value: str):
        self._draft[key] = "" if value is None else str(value)

    def reset_draft(self):
        self._draft = dict(self.live)

    async def set_many(self, draft: dict[str, str] | None = None):
        """Write every changed key; the live map only changes if all writes succeed.

        A partial draft is laid over the live map, so keys it omits keep their values.

        A failure midway leaves the keys already written applied remotely but
        the local live map untouched; the whole batch should be retried.
        """
        target = {**self.live, **(self._draft if draft is None else draft)}
        validate(target)
        changed = [(k, v) for k, v in target.items() if self.live.get(k) != v]
        for k, v in changed:
            try:
                await self.client.set_config(k, v)
            except NavError:
                logger.warning("Saving configuration key %s failed; live configuration unchanged", k)
                raise
        self.live = target
        self._draft = dict(target)
        logger.info("Saved %d configuration key(s)", len(changed))
        return len(changed)

    # ----------------------------
    # Resolved values
    # ----------------------------
    def get(self, key: str, default: str = "") -> str:
        return self.live.get(key, default)

    @property
    def title(self) -> str:
        return self.get("site.title") or DEFAULT_CONFIGS["site.title"]

    @property
    def site_name(self) -> str:
        return self.get("site.name")

    @property
    def custom_css(self) -> str:
        return sanitize_css(self.get("site.customCss"))

    @property
    def background_image(self) -> str:
        url = self.get("site.backgroundImage").strip()
        if url and not is_secure_url(url):
            logger.debug("Ignoring non-https background image")
            return ""
        return url

    @property
    def background_opacity(self) -> float:
        try:
            value = float(self.get("site.backgroundOpacity"))
        except ValueError:
            value = float(DEFAULT_CONFIGS["site.backgroundOpacity"])
        return max(0.0, min(1.0, value))

    @property
    def icon_api(self) -> str:
        return self.get("site.iconApi")

    def search_box_visible(self, view_mode: ViewMode) -> bool:
        if self.get("site.searchBoxEnabled") != "true":
            return False
        return view_mode is ViewMode.EDIT or self.get("site.searchBoxGuestEnabled") == "true"
