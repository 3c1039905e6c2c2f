"""
History Manager for QuantumCalc
Keeps the newest-first list of completed calculations
"""
from dataclasses import dataclass, asdict
from datetime import datetime

import config
from number_format import format_number, parse_number


@dataclass(frozen=True)
class HistoryEntry:
    expression: str
    result: str
    timestamp: str

    def to_dict(self):
        return asdict(self)


class HistoryManager:
    def __init__(self, max_items=config.MAX_HISTORY_ITEMS, entries=None):
        self.max_items = max_items
        self.entries = list(entries or [])[:max_items]

    def __len__(self):
        return len(self.entries)

    def add_calculation(self, expression, result, timestamp=None):
        """Add a calculation to the front of the history"""
        if timestamp is None:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        entry = HistoryEntry(expression, result, timestamp)
        self.entries.insert(0, entry)
        del self.entries[self.max_items:]
        return entry

    def get_calculation_history(self, limit=None):
        """Get calculation history, newest first"""
        if limit is None:
            return list(self.entries)
        return self.entries[:limit]

    def get_entry(self, index):
        """Get a single entry, or None when the index is out of range"""
        if 0 <= index < len(self.entries):
            return self.entries[index]
        return None

    def clear_calculation_history(self):
        """Clear all calculation history"""
        self.entries = []

    def set_max_items(self, max_items):
        self.max_items = max_items
        del self.entries[max_items:]

    def format_calculation_history(self, thousands_separator=True, limit=None):
        """Format calculation history for display"""
        formatted = []

        for entry in self.get_calculation_history(limit):
            result = format_number(parse_number(entry.result), thousands_separator)
            formatted.append(f"{entry.timestamp}: {entry.expression} = {result}")

        return formatted

    def to_list(self, limit=None):
        return [entry.to_dict() for entry in self.get_calculation_history(limit)]
