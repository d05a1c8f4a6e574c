"""Placeholder rendering for export descriptions."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def render_description(template: str, now: Optional[datetime] = None) -> str:
    """
    Render ``{timestamp}`` and ``{isotime}`` in a description template.

    Unknown placeholders are left as written.

    Args:
        template: Description template, e.g. "export-{timestamp}"
        now: Time to render (defaults to the current UTC time)
    """
    now = now or datetime.now(timezone.utc)
    values = {
        "timestamp": str(int(now.timestamp())),
        "isotime": now.strftime("%Y%m%d-%H%M%S"),
    }
    return _PLACEHOLDER.sub(lambda match: values.get(match.group(1), match.group(0)), template)
