"""JSON export writer for batch snapshots."""

import json
from pathlib import Path
from typing import Any


class _JSONEncoder(json.JSONEncoder):
    """Custom encoder handling dates, paths, sets and other non-serializable types."""

    def default(self, o: object) -> Any:
        from datetime import date, datetime

        if isinstance(o, datetime):
            return o.isoformat()
        if isinstance(o, date):
            return o.isoformat()
        if isinstance(o, Path):
            return str(o)
        if isinstance(o, (set, frozenset)):
            return sorted(o)
        return super().default(o)


def render_json(document: dict[str, Any]) -> str:
    """Serialize a document as indented JSON."""
    return json.dumps(document, cls=_JSONEncoder, indent=2)


def write_json_document(output_path: Path, document: dict[str, Any]) -> int:
    """Write a single JSON document to a file.

    Args:
        output_path: Path to write the JSON file; parent directories are created.
        document: JSON-compatible dict.

    Returns:
        Number of bytes written.
    """
    payload = render_json(document) + "\n"
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        f.write(payload)
    return len(payload.encode("utf-8"))
