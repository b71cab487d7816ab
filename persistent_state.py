"""Optional file mirror of the currently available listings.

Other processes (dashboards, other bots) can read the JSON file to see what
is in stock right now. The watcher itself never reads it back: state is
rebuilt from a fresh baseline on every start.

Written atomically-ish (write temp then replace).
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Mapping

from listing import Listing

logger = logging.getLogger(__name__)


class AvailableMirror:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def write(self, snapshot: Mapping[str, Listing]) -> None:
        data = {key: x.to_dict() for key, x in snapshot.items()}
        try:
            tmp = self.path.with_suffix(".tmp")
            tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            logger.error("Failed saving available mirror: %s", e)


__all__ = ["AvailableMirror"]
