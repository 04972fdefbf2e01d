"""Exporter library: public API for batch snapshot export."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from district_lookup.lib.exporter.json_writer import render_json, write_json_document


@dataclass
class ExportResult:
    """Result of an export operation."""

    record_count: int
    output_path: Path
    file_size_bytes: int


def export_snapshot(document: dict[str, Any], output_path: Path, *, record_count: int) -> ExportResult:
    """Write a snapshot document to disk.

    Args:
        document: JSON-compatible snapshot dict.
        output_path: Destination file path.
        record_count: Number of records the snapshot holds.

    Returns:
        ExportResult with count, path, and file size.
    """
    size = write_json_document(output_path, document)
    return ExportResult(record_count=record_count, output_path=output_path, file_size_bytes=size)


__all__ = ["ExportResult", "export_snapshot", "render_json", "write_json_document"]
