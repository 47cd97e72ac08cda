import re

from .errors import InvalidIdentifier

SAFE_SEGMENT = re.compile(r"[A-Za-z0-9._-]+")

def is_safe_identifier(value) -> bool:
    """One path segment of [A-Za-z0-9._-]+, excluding '.' and '..'."""
    if not isinstance(value, str) or value in (".", ".."):
        return False
    return SAFE_SEGMENT.fullmatch(value) is not None

def require_safe_identifier(kind: str, value) -> str:
    if not is_safe_identifier(value):
        raise InvalidIdentifier(kind, value)
    return value

def title_url(host: str, port: int, title_type: str, title_id: str) -> str:
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    return f"http://{host}:{port}/{title_type}/{title_id}/"
