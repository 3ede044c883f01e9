"""Write an extraction run to JSON artifacts on disk."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from analysis.models import ExtractionRun
from constants import RAW_DATASET_PREFIX, SUMMARY_DATASET_PREFIX


@dataclass
class WrittenArtifacts:
    dataset_path: Optional[Path]
    summary_path: Optional[Path]

    @property
    def paths(self) -> List[Path]:
        return [p for p in (self.dataset_path, self.summary_path) if p is not None]


def _timestamp_suffix(run: ExtractionRun) -> str:
    return run.finished_at.strftime("%Y-%m-%dT%H-%M-%S")


def _dump(payload: Any, path: Path) -> None:
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False, allow_nan=False) + "\n", encoding="utf-8")


def render_records(run: ExtractionRun) -> List[dict]:
    return [record.to_dict() for record in run.records]


def write_run(run: ExtractionRun, output_dir: Path | str, *, include_summary: bool = True) -> WrittenArtifacts:
    """Writes the full dataset and, optionally, the summary artifact.

    Nothing is written when the run produced no records.
    """
    if not run.records:
        return WrittenArtifacts(dataset_path=None, summary_path=None)

    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    suffix = _timestamp_suffix(run)

    dataset_path = directory / f"{RAW_DATASET_PREFIX}_{suffix}.json"
    _dump(render_records(run), dataset_path)

    summary_path = None
    if include_summary:
        summary_path = directory / f"{SUMMARY_DATASET_PREFIX}_{suffix}.json"
        _dump(
            {
                "run": run.summary_dict(),
                "config": run.config,
                "vaults": [record.to_summary_dict() for record in run.records],
            },
            summary_path,
        )

    return WrittenArtifacts(dataset_path=dataset_path, summary_path=summary_path)
