"""Append-only human-readable progress log (ai/progress.log).

Each entry is one line::

    2025-01-15T10:30:00Z STEP feature=auth.login status=passing summary="Completed auth.login"
"""

import json
import logging
import re
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .feature import utc_now_iso

logger = logging.getLogger(__name__)

PROGRESS_LOG_PATH = Path("ai") / "progress.log"

# Field order on disk; summary always last
_FIELD_ORDER = ("goal", "feature", "status", "verdict", "action", "reason", "tests", "note", "summary")

_LINE_RE = re.compile(r"^(\S+)\s+([A-Z]+)(.*)$")
_PAIR_RE = re.compile(r'(\w+)=("(?:[^"\\]|\\.)*"|\S+)')


class EntryType(str, Enum):
    INIT = "INIT"
    STEP = "STEP"
    CHANGE = "CHANGE"
    REPLAN = "REPLAN"
    VERIFY = "VERIFY"


class ProgressEntry(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    type: EntryType
    timestamp: str = Field(default_factory=utc_now_iso)
    summary: str = ""
    goal: Optional[str] = None
    feature: Optional[str] = None
    status: Optional[str] = None
    verdict: Optional[str] = None
    action: Optional[str] = None
    reason: Optional[str] = None
    tests: Optional[str] = None
    note: Optional[str] = None


def _quote(value: str) -> str:
    if value and not re.search(r'[\s"\\=]', value):
        return value
    return json.dumps(value)


def _unquote(value: str) -> str:
    if value.startswith('"'):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value.strip('"')
    return value


def format_entry(entry: ProgressEntry) -> str:
    parts = [entry.timestamp, EntryType(entry.type).value]
    for name in _FIELD_ORDER:
        value = getattr(entry, name)
        if name == "summary" or value is not None:
            parts.append(f"{name}={_quote(value or '')}")
    return " ".join(parts)


def parse_entry(line: str) -> Optional[ProgressEntry]:
    """Parse one log line; returns None for anything that isn't an entry."""
    match = _LINE_RE.match(line.strip())
    if not match:
        return None
    timestamp, type_name, rest = match.groups()
    if type_name not in EntryType.__members__:
        return None
    fields = {key: _unquote(value) for key, value in _PAIR_RE.findall(rest) if key in _FIELD_ORDER}
    return ProgressEntry(type=type_name, timestamp=timestamp, **fields)


def append_progress_log(cwd: Path, entry: ProgressEntry) -> None:
    path = Path(cwd) / PROGRESS_LOG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(format_entry(entry) + "\n")


def read_progress_log(cwd: Path) -> List[ProgressEntry]:
    path = Path(cwd) / PROGRESS_LOG_PATH
    if not path.exists():
        return []
    entries = []
    for line in path.read_text(encoding="utf-8").splitlines():
        entry = parse_entry(line)
        if entry is None:
            if line.strip():
                logger.debug(f"Skipping unparseable progress line: {line[:80]}")
            continue
        entries.append(entry)
    return entries


def get_recent_entries(cwd: Path, count: int = 5) -> List[ProgressEntry]:
    """Most recent entries, newest first."""
    return list(reversed(read_progress_log(cwd)))[:count]


def create_init_entry(goal: str, note: str) -> ProgressEntry:
    return ProgressEntry(type=EntryType.INIT, goal=goal, note=note, summary="Initialized harness")


def create_step_entry(feature_id: str, status: str, tests: str, summary: str) -> ProgressEntry:
    return ProgressEntry(type=EntryType.STEP, feature=feature_id, status=status, tests=tests, summary=summary)


def create_change_entry(feature_id: str, action: str, reason: str) -> ProgressEntry:
    return ProgressEntry(type=EntryType.CHANGE, feature=feature_id, action=action, reason=reason, summary=reason)


def create_verify_entry(feature_id: str, verdict: str, summary: str) -> ProgressEntry:
    return ProgressEntry(type=EntryType.VERIFY, feature=feature_id, verdict=verdict, summary=summary)
