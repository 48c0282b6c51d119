import re

_STRIP = re.compile(r"[^a-zA-Z0-9\s]")
_SPACES = re.compile(r"\s+")


def slugify(name: str) -> str:
    """'Red Shoes, 42!' -> 'red-shoes-42'"""
    base = _STRIP.sub("", name or "").lower()
    base = _SPACES.sub("-", base).strip("-")
    return base or "item"
