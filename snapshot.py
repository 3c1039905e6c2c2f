"""
State Snapshot for QuantumCalc
Validates the persisted subset of the calculator state: memory, modes,
history and settings. Loading never fails; unreadable parts fall back to
their defaults and are reported in the LoadResult.
"""
import json
import logging
import math
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import List

import config
from history_manager import HistoryEntry

logger = logging.getLogger(__name__)


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class Settings:
    precision: int = config.DEFAULT_PRECISION
    max_history_items: int = config.MAX_HISTORY_ITEMS
    thousands_separator: bool = config.THOUSANDS_SEPARATOR

    def validate(self):
        if not _is_int(self.precision) or not 0 <= self.precision <= config.MAX_PRECISION:
            raise ValueError(f"precision must be an integer from 0 to {config.MAX_PRECISION}")
        if not _is_int(self.max_history_items) or self.max_history_items < 1:
            raise ValueError("max_history_items must be a positive integer")
        if not isinstance(self.thousands_separator, bool):
            raise ValueError("thousands_separator must be true or false")


@dataclass
class Snapshot:
    memory: float = 0.0
    angle_mode: str = config.DEFAULT_ANGLE_MODE
    scientific_mode: bool = False
    theme: str = config.DEFAULT_THEME
    history: List[HistoryEntry] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)

    def to_dict(self):
        return {
            'memory': self.memory,
            'angle_mode': self.angle_mode,
            'scientific_mode': self.scientific_mode,
            'theme': self.theme,
            'history': [entry.to_dict() for entry in self.history[:self.settings.max_history_items]],
            'settings': asdict(self.settings),
        }


class LoadStatus(Enum):
    LOADED = "loaded"
    MISSING = "missing"
    CORRUPT = "corrupt"
    SCHEMA_MISMATCH = "schema_mismatch"


@dataclass
class LoadResult:
    status: LoadStatus
    snapshot: Snapshot
    discarded: List[str] = field(default_factory=list)

    @property
    def ok(self):
        return self.status is LoadStatus.LOADED


def dump_snapshot(snapshot):
    return json.dumps(snapshot.to_dict())


def load_snapshot(text):
    """Parse persisted snapshot text, falling back to defaults"""
    if text is None:
        return LoadResult(LoadStatus.MISSING, Snapshot())

    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        logger.warning("Ignoring corrupt snapshot: %s", e)
        return LoadResult(LoadStatus.CORRUPT, Snapshot())

    if not isinstance(data, dict):
        logger.warning("Ignoring snapshot of type %s, expected an object", type(data).__name__)
        return LoadResult(LoadStatus.SCHEMA_MISMATCH, Snapshot())

    discarded = []
    snapshot = _snapshot_from_dict(data, discarded)
    if discarded:
        logger.warning("Discarded unreadable snapshot fields: %s", ", ".join(discarded))
    return LoadResult(LoadStatus.LOADED, snapshot, discarded)


def _read_memory(value):
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
        raise ValueError("memory must be a finite number")
    return float(value)


def _read_choice(choices):
    def read(value):
        if value not in choices:
            raise ValueError(f"expected one of {choices}")
        return value
    return read


def _read_bool(value):
    if not isinstance(value, bool):
        raise ValueError("expected true or false")
    return value


FIELD_READERS = {
    'memory': _read_memory,
    'angle_mode': _read_choice(config.ANGLE_MODES),
    'scientific_mode': _read_bool,
    'theme': _read_choice(config.THEMES),
}


def _snapshot_from_dict(data, discarded):
    snapshot = Snapshot()

    for name, reader in FIELD_READERS.items():
        if name not in data:
            continue
        try:
            setattr(snapshot, name, reader(data[name]))
        except ValueError:
            discarded.append(name)

    if 'settings' in data:
        snapshot.settings = _read_settings(data['settings'], discarded)
    if 'history' in data:
        history = _read_history(data['history'], discarded)
        snapshot.history = history[:snapshot.settings.max_history_items]

    return snapshot


def _read_settings(value, discarded):
    settings = Settings()
    if not isinstance(value, dict):
        discarded.append('settings')
        return settings

    for name in ('precision', 'max_history_items', 'thousands_separator'):
        if name not in value:
            continue
        candidate = replace(settings, **{name: value[name]})
        try:
            candidate.validate()
        except ValueError:
            discarded.append(f"settings.{name}")
            continue
        settings = candidate

    return settings


def _read_history(value, discarded):
    if not isinstance(value, list):
        discarded.append('history')
        return []

    entries = []
    for index, item in enumerate(value):
        try:
            entries.append(_read_history_entry(item))
        except (TypeError, ValueError):
            discarded.append(f"history[{index}]")
    return entries


def _read_history_entry(item):
    if not isinstance(item, dict):
        raise TypeError("history entry must be an object")

    expression = item.get('expression')
    result = item.get('result')
    timestamp = item.get('timestamp', "")
    if not all(isinstance(text, str) for text in (expression, result, timestamp)):
        raise TypeError("history entry fields must be strings")
    # Loaded results go straight back into the input buffer, so no grouping
    if not math.isfinite(float(result)):
        raise ValueError("history result must be a finite number")

    return HistoryEntry(expression, result, timestamp)
