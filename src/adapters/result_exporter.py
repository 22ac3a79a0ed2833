"""Export of conversion results.

The generated config is written verbatim (UTF-8); a JSON summary carries the
counters, warnings and quota snapshot for other tooling.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.models import ConvertResult


def export_result_yaml(*, result: ConvertResult, output_path: Path) -> Path:
    """Write the generated config exactly as the engine produced it."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result.yaml, encoding="utf-8")
    return output_path


def export_result_summary(*, result: ConvertResult, output_path: Path) -> Path:
    """Write everything except the config body as stable, sorted JSON."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = result.model_dump(mode="json", exclude={"yaml"})
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
