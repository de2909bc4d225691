"""AI usage telemetry sink (JSON lines + fcntl.flock)."""

import fcntl
import json
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog

from taboo_trainer.models.ai import AIUsage

logger = structlog.get_logger()


class JsonlUsageSink:
    """Appends one JSON record per AI call to a log file.

    Recording is fire-and-forget: write errors are logged, never raised.
    """

    def __init__(self, path: Path):
        self.path = path

    def record(self, usage: AIUsage, metadata: dict[str, Any]) -> None:
        entry = {
            "timestamp": datetime.now().isoformat(),
            **usage.model_dump(),
            "metadata": metadata,
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_EX)
                f.write(json.dumps(entry, default=str, ensure_ascii=False) + "\n")
                fcntl.flock(f, fcntl.LOCK_UN)
        except OSError:
            logger.exception("ai_usage_record_failed", path=str(self.path))


def read_usage(path: Path) -> list[dict]:
    """Read all usage records. Returns an empty list if the log does not exist."""
    if not path.exists():
        return []
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]
