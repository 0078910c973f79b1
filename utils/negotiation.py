from __future__ import annotations

from typing import Optional, Sequence

import mimeparse


def select_media_type(accept: Optional[str], media_types: Sequence[str]) -> Optional[str]:
    """
    Pick the configured media type the client prefers.

    A missing Accept header accepts anything, so the first configured type wins.
    Ties on quality are broken by the configured order. A malformed header
    accepts nothing.
    """
    if not media_types:
        return None
    if not accept:
        return media_types[0]

    try:
        qualities = [mimeparse.quality(media_type, accept) for media_type in media_types]
    except ValueError:
        return None

    best = max(range(len(media_types)), key=lambda index: qualities[index])
    return media_types[best] if qualities[best] > 0 else None
