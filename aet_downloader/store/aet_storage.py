"""Persist monthly AET payloads as pretty-printed JSON files."""
import logging
from pathlib import Path
from typing import Any

import aiofiles
import orjson

from aet_downloader.jobs.months import format_month

logger = logging.getLogger(__name__)


class AetStorage:
    """Writes one file per (year, month) under ``base_dir/<year>/<MM>/``."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def path_for(self, year: int, month: int) -> Path:
        """Deterministic location of the artifact for a month."""
        mm = format_month(month)
        return self.base_dir / str(year) / mm / f"aet_{year}_{mm}.json"

    async def save(self, payload: Any, year: int, month: int) -> Path:
        """Write ``payload`` verbatim (indented), overwriting any previous run."""
        file_path = self.path_for(year, month)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        data = orjson.dumps(payload, option=orjson.OPT_INDENT_2)
        async with aiofiles.open(file_path, "wb") as f:
            await f.write(data)

        logger.info(f"Saved data to {file_path}")
        return file_path
