"""annotation.py - Callback annotation block engine.

Owns the single source of truth for the annotation format written above a
model's class/module declaration::

    # == Callbacks ==
    #
    #   before_save   :encrypt_password
    #   after_create  :send_welcome_email  if: :confirmed?
    #   after_commit  (block: app/models/user.rb:12)  [Auditable]
    #
    # == End Callbacks ==

The block is always followed by exactly one blank line.  Files are handled
as plain text: the engine never parses the host language, it only looks
for a ``class``/``module`` keyword at the start of a line.

Pure text functions (:func:`annotate_text`, :func:`remove_annotation_text`)
return ``(status, new_text)``; the file-level wrappers read once, and write
atomically only when the content actually changed.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path

from annotate_callbacks.records import CallbackRecord
from annotate_callbacks.utils import atomic_write_text

# ---------------------------------------------------------------------------
# Format contract
# ---------------------------------------------------------------------------

ANNOTATION_START = "# == Callbacks =="
ANNOTATION_END = "# == End Callbacks =="

# First block only: non-greedy up to the first end marker, plus the blank
# line that follows it.  A second (corrupt) block is left alone.
ANNOTATION_RE = re.compile(
    r"^" + re.escape(ANNOTATION_START) + r"\n(.*?)^" + re.escape(ANNOTATION_END) + r"\n\n?",
    re.MULTILINE | re.DOTALL,
)

# ``class Foo`` / ``module Bar``, possibly indented.
DECLARATION_RE = re.compile(r"\A\s*(class|module)\s+")

# Directive comments that must stay at the top of the file.
MAGIC_COMMENT_RE = re.compile(r"^#.*(?:frozen_string_literal|encoding|warn_indent):")

# ---------------------------------------------------------------------------
# Statuses
# ---------------------------------------------------------------------------

STATUS_ANNOTATED = "annotated"
STATUS_REMOVED = "removed"
STATUS_UNCHANGED = "unchanged"
STATUS_SKIPPED = "skipped"
STATUS_ERROR = "error"

VALID_STATUSES = (
    STATUS_ANNOTATED,
    STATUS_REMOVED,
    STATUS_UNCHANGED,
    STATUS_SKIPPED,
    STATUS_ERROR,
)

_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+\Z")


def split_lines(text: str) -> list[str]:
    """Split *text* on ``\\n`` only, keeping line endings."""
    return _LINE_RE.findall(text)


# ---------------------------------------------------------------------------
# Block formatting
# ---------------------------------------------------------------------------


def format_name(record: CallbackRecord) -> str:
    """Render a handler name: ``:method`` or an anonymous ``(block...)`` as is."""
    return record.name if record.is_block else f":{record.name}"


def build_annotation(records: Sequence[CallbackRecord]) -> str:
    """Render *records* as a complete annotation block, in input order.

    Raises ValueError on an empty sequence; callers skip those files.
    """
    if not records:
        raise ValueError("cannot build an annotation from zero callbacks")

    type_width = max(len(r.type) for r in records)
    name_width = max(len(format_name(r)) for r in records)

    lines = [ANNOTATION_START, "#"]
    for r in records:
        entry = f"#   {r.type.ljust(type_width)}  {format_name(r).ljust(name_width)}"
        if r.options is not None:
            entry += f"  {r.options}"
        if r.source is not None:
            entry += f"  [{r.source}]"
        lines.append(entry.rstrip())
    lines.append("#")
    lines.append(ANNOTATION_END)
    return "".join(f"{line}\n" for line in lines) + "\n"


# ---------------------------------------------------------------------------
# Insertion point
# ---------------------------------------------------------------------------


def is_magic_comment(stripped: str) -> bool:
    """Return True for directive comments such as ``# frozen_string_literal: true``."""
    return bool(MAGIC_COMMENT_RE.match(stripped))


def class_definition_line(text: str) -> int | None:
    """Index of the first ``class``/``module`` line, or None."""
    for i, line in enumerate(split_lines(text)):
        if DECLARATION_RE.match(line):
            return i
    return None


def skip_preceding_comments(lines: Sequence[str], pos: int) -> int:
    """Walk *pos* back over doc comments, stopping at magic comments."""
    while pos > 0:
        prev = lines[pos - 1].strip()
        if not prev.startswith("#") or is_magic_comment(prev):
            break
        pos -= 1
    return pos


def find_insertion_point(text: str) -> int | None:
    """Line index the annotation block is inserted before, or None."""
    pos = class_definition_line(text)
    if pos is None:
        return None
    return skip_preceding_comments(split_lines(text), pos)


# ---------------------------------------------------------------------------
# Existing block
# ---------------------------------------------------------------------------


def find_annotation_span(text: str) -> tuple[int, int] | None:
    """Return ``(start, end)`` offsets of the first annotation block, if any."""
    m = ANNOTATION_RE.search(text)
    return m.span() if m else None


def strip_annotation(text: str) -> str:
    """Remove the first annotation block (and its trailing blank line)."""
    return ANNOTATION_RE.sub("", text, count=1)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def annotate_text(records: Sequence[CallbackRecord], text: str) -> tuple[str, str]:
    """Insert or refresh the annotation block in *text*.

    Returns ``(status, new_text)`` where status is ``annotated``,
    ``unchanged`` or ``skipped``.  *new_text* equals *text* unless the
    status is ``annotated``.
    """
    if not records:
        return STATUS_SKIPPED, text

    clean = strip_annotation(text)
    insert_pos = find_insertion_point(clean)
    if insert_pos is None:
        return STATUS_SKIPPED, text

    lines = split_lines(clean)
    lines.insert(insert_pos, build_annotation(records))
    new_text = "".join(lines)

    if new_text == text:
        return STATUS_UNCHANGED, text
    return STATUS_ANNOTATED, new_text


def remove_annotation_text(text: str) -> tuple[str, str]:
    """Strip the annotation block from *text*.

    Returns ``(status, new_text)`` where status is ``removed``,
    ``unchanged`` (start marker present but no complete block), or
    ``skipped`` (no start marker at all).
    """
    if ANNOTATION_START not in text:
        return STATUS_SKIPPED, text

    new_text = strip_annotation(text)
    if new_text == text:
        return STATUS_UNCHANGED, text
    return STATUS_REMOVED, new_text


def read_source(filepath: Path) -> str:
    """Read a source file as UTF-8 without newline translation."""
    with open(filepath, encoding="utf-8", newline="") as f:
        return f.read()


def annotate_file(records: Sequence[CallbackRecord], filepath: Path) -> str:
    """Annotate *filepath* with *records*; writes only when content changes."""
    if not records:
        return STATUS_SKIPPED

    text = read_source(filepath)
    status, new_text = annotate_text(records, text)
    if status == STATUS_ANNOTATED:
        atomic_write_text(filepath, new_text, encoding="utf-8")
    return status


def remove_annotation(filepath: Path) -> str:
    """Remove the annotation block from *filepath*; writes only on ``removed``."""
    text = read_source(filepath)
    status, new_text = remove_annotation_text(text)
    if status == STATUS_REMOVED:
        atomic_write_text(filepath, new_text, encoding="utf-8")
    return status
