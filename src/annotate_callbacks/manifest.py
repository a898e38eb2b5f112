"""manifest.py - JSON callback manifest, the default metadata source.

The engine never inspects a live object model.  Whatever does (a Rails
runner script, a static analyser, a hand-written file) dumps its findings
as JSON::

    {
      "files": {
        "app/models/user.rb": [
          {"type": "before_save", "name": "encrypt_password"},
          {"type": "after_save", "name": "update_cache",
           "if": ["saved_change_to_name?"]},
          {"type": "after_commit", "name": "(block: app/models/user.rb:12)",
           "source": "Auditable"}
        ]
      }
    }

Relative paths are resolved against the project root.  Record order is
kept exactly as written.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from annotate_callbacks.records import CallbackRecord, filter_internal


class MetadataSource(Protocol):
    """Anything that can list the callback records for a source file."""

    def records_for(self, filepath: Path) -> Sequence[CallbackRecord]: ...


@dataclass
class Manifest:
    """Callback records keyed by resolved source path."""

    entries: dict[Path, list[CallbackRecord]] = field(default_factory=dict)

    def records_for(self, filepath: Path) -> list[CallbackRecord]:
        """Records for *filepath*, or an empty list if it is not listed."""
        return list(self.entries.get(Path(filepath).resolve(), []))

    def paths(self) -> list[Path]:
        """All listed source paths, sorted."""
        return sorted(self.entries)


def parse_manifest(data: object, root: Path, *, drop_internal: bool = True) -> Manifest:
    """Build a :class:`Manifest` from decoded JSON *data*."""
    if not isinstance(data, dict) or not isinstance(data.get("files"), dict):
        raise ValueError("manifest must be an object with a 'files' object")

    manifest = Manifest()
    for rel, raw_records in data["files"].items():
        if not isinstance(raw_records, list):
            raise ValueError(f"manifest entry {rel!r}: expected a list of callback records")
        records = []
        for idx, raw in enumerate(raw_records):
            try:
                records.append(CallbackRecord.from_dict(raw))
            except ValueError as e:
                raise ValueError(f"manifest entry {rel!r}, record {idx}: {e}") from e
        if drop_internal:
            records = filter_internal(records)
        path = Path(rel)
        if not path.is_absolute():
            path = root / path
        manifest.entries[path.resolve()] = records
    return manifest


def load_manifest(path: Path, root: Path | None = None, *, drop_internal: bool = True) -> Manifest:
    """Read a JSON manifest from *path*.

    Args:
        path: Manifest file.
        root: Base for relative source paths.  Defaults to the manifest's
              own directory.
        drop_internal: Filter out framework-internal callbacks.
    """
    path = Path(path)
    if root is None:
        root = path.parent
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid manifest JSON in {path}: {e}") from e
    return parse_manifest(data, root, drop_internal=drop_internal)
