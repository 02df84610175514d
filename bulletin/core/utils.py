"""
Shared utility functions.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone


_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def generate_id() -> str:
    """Generate a new UUID4 string id."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def slugify(text: str) -> str:
    """
    Kebab-case a title for use as a slug.

    "My First Post!" -> "my-first-post"
    "helloWorld" -> "hello-world"
    """
    text = _CAMEL_BOUNDARY.sub(r"\1 \2", text)
    return _NON_ALNUM.sub("-", text.lower()).strip("-")
