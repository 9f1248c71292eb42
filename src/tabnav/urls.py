import re
from urllib.parse import urlparse

SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")


def normalize_url(u: str) -> str:
    if not u: return ""
    u = u.strip()
    if not u: return ""
    if not SCHEME_RE.match(u):
        u = "https://" + u
    return u

def extract_domain(u: str) -> str:
    """Host part of an absolute URL without credentials or port; "" if there is none."""
    try:
        pr = urlparse(u or "")
        host = pr.hostname or ""
    except ValueError:
        return ""
    if not pr.scheme:
        return ""
    return host

def is_absolute_url(u: str) -> bool:
    try:
        pr = urlparse(u or "")
    except ValueError:
        return False
    return bool(pr.scheme) and bool(pr.netloc) and bool(extract_domain(u))

def is_secure_url(u: str) -> bool:
    return is_absolute_url(u) and urlparse(u).scheme.lower() == "https"

def icon_url_for(url: str, template: str) -> str | None:
    """Icon URL for ``url`` built from an icon-API template with a ``{domain}`` slot.

    Returns None when the URL is malformed or the template has no slot, so the
    caller leaves the icon unset instead of failing.
    """
    if not template or "{domain}" not in template:
        return None
    domain = extract_domain(url)
    if not domain:
        return None
    return template.replace("{domain}", domain)
