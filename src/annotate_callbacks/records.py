"""records.py - Callback records and internal-callback filtering.

A :class:`CallbackRecord` is one row of the callback annotation block:
the callback type (``before_save``), the handler name (``encrypt_password``
or an anonymous ``(block: path:line)``), optional condition options, and
the module the handler was inherited from.

Records are produced by an external metadata source (see
:mod:`annotate_callbacks.manifest`).  Framework-internal callbacks that
every model carries are noise in the annotation, so the source can drop
them with :func:`filter_internal`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

# ---------------------------------------------------------------------------
# Internal-callback tables
# ---------------------------------------------------------------------------

# Handler names generated by the framework for associations.
INTERNAL_NAME_PATTERNS = [
    re.compile(r"\Aautosave_associated_records_for_"),
]

# Anonymous blocks defined inside these framework paths.
INTERNAL_BLOCK_PATHS = (
    "active_record/associations/builder/",
    "active_record/timestamp",
    "active_record/transactions",
    "active_record/locking",
)

# Handlers inherited from these framework modules.
INTERNAL_SOURCES = (
    "ActiveRecord::AutosaveAssociation",
    "ActiveRecord::Timestamp",
    "ActiveRecord::Transactions",
    "ActiveRecord::Persistence",
    "ActiveRecord::AttributeMethods::Dirty",
    "ActiveRecord::Locking::Optimistic",
    "ActiveRecord::CounterCache",
    "ActiveRecord::Normalization",
    "ActiveModel::Attributes::Normalization",
)


@dataclass(frozen=True)
class CallbackRecord:
    """A single callback declaration discovered on a model."""

    type: str
    name: str
    options: str | None = None
    source: str | None = None

    def __post_init__(self) -> None:
        if not self.type:
            raise ValueError("callback record needs a non-empty type")
        if not self.name:
            raise ValueError(f"callback record {self.type!r} needs a non-empty name")
        for attr in ("options", "source"):
            if getattr(self, attr) == "":
                raise ValueError(f"callback record {attr} must be omitted rather than empty")

    @property
    def is_block(self) -> bool:
        """True for anonymous handlers rendered as ``(block...)``."""
        return self.name.startswith("(")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CallbackRecord:
        """Build a record from a manifest entry.

        Empty ``options``/``source`` strings are treated as absent.  Instead of
        a preformatted ``options`` string an entry may carry ``if``/``unless``
        lists of condition method names, rendered with
        :func:`format_conditions`.
        """
        if not isinstance(data, dict):
            raise ValueError(f"callback record must be an object, got {type(data).__name__}")
        unknown = set(data) - {"type", "name", "options", "source", "if", "unless"}
        if unknown:
            raise ValueError(f"unknown callback record keys: {sorted(unknown)}")
        values: dict[str, str | None] = {}
        for key in ("type", "name", "options", "source"):
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"callback record {key!r} must be a string")
            values[key] = value

        conditions: dict[str, list[str]] = {}
        for key in ("if", "unless"):
            value = data.get(key, [])
            if not isinstance(value, list) or not all(isinstance(c, str) and c for c in value):
                raise ValueError(f"callback record {key!r} must be a list of method names")
            conditions[key] = value
        options = values["options"] or None
        if conditions["if"] or conditions["unless"]:
            if options is not None:
                raise ValueError("callback record cannot combine 'options' with if/unless")
            options = format_conditions(conditions["if"], conditions["unless"])

        return cls(
            type=values["type"] or "",
            name=values["name"] or "",
            options=options,
            source=values["source"] or None,
        )


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def _internal_by_name(record: CallbackRecord) -> bool:
    return any(p.match(record.name) for p in INTERNAL_NAME_PATTERNS)


def _internal_by_block_path(record: CallbackRecord) -> bool:
    if not record.name.startswith("(block:"):
        return False
    return any(path in record.name for path in INTERNAL_BLOCK_PATHS)


def _internal_by_source(record: CallbackRecord) -> bool:
    if record.source is None:
        return False
    return record.source.startswith(INTERNAL_SOURCES)


def is_internal(record: CallbackRecord) -> bool:
    """Return True if *record* is a framework-internal callback."""
    return (
        _internal_by_name(record) or _internal_by_block_path(record) or _internal_by_source(record)
    )


def filter_internal(records: Iterable[CallbackRecord]) -> list[CallbackRecord]:
    """Drop framework-internal records, preserving order."""
    return [r for r in records if not is_internal(r)]


def format_conditions(
    if_: Sequence[str] = (), unless: Sequence[str] = ()
) -> str | None:
    """Build the options column from ``if``/``unless`` symbol conditions.

    ``format_conditions(["active?"], ["admin?"])`` gives
    ``"if: :active?, unless: :admin?"``.  Returns None when both are empty.
    """
    parts = []
    if if_:
        parts.append("if: " + ", ".join(f":{c}" for c in if_))
    if unless:
        parts.append("unless: " + ", ".join(f":{c}" for c in unless))
    return ", ".join(parts) if parts else None
