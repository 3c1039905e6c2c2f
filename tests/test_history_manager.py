"""
Tests for calculation history bookkeeping.

Run with: pytest tests/test_history_manager.py -v
"""
from history_manager import HistoryEntry, HistoryManager


class TestHistoryManager:

    def test_newest_entry_comes_first(self):
        history = HistoryManager()
        history.add_calculation("1 + 1", "2")
        history.add_calculation("2 + 2", "4")
        assert [entry.expression for entry in history.entries] == ["2 + 2", "1 + 1"]

    def test_keeps_only_the_most_recent_entries(self):
        history = HistoryManager(max_items=3)
        for n in range(5):
            history.add_calculation(f"{n} + 0", str(n))
        assert len(history) == 3
        assert [entry.result for entry in history.entries] == ["4", "3", "2"]

    def test_timestamp_defaults_to_now(self):
        history = HistoryManager()
        entry = history.add_calculation("1 + 1", "2")
        assert len(entry.timestamp) == len("2024-01-01 00:00:00")

    def test_initial_entries_are_capped(self):
        entries = [HistoryEntry(f"{n}", f"{n}", "") for n in range(4)]
        history = HistoryManager(max_items=2, entries=entries)
        assert history.entries == entries[:2]

    def test_get_entry_out_of_range(self):
        history = HistoryManager()
        history.add_calculation("1 + 1", "2")
        assert history.get_entry(0).result == "2"
        assert history.get_entry(1) is None
        assert history.get_entry(-1) is None

    def test_limit(self):
        history = HistoryManager()
        for n in range(3):
            history.add_calculation(f"{n}", f"{n}")
        assert [entry.result for entry in history.get_calculation_history(2)] == ["2", "1"]

    def test_clear(self):
        history = HistoryManager()
        history.add_calculation("1 + 1", "2")
        history.clear_calculation_history()
        assert history.get_calculation_history() == []

    def test_set_max_items_trims(self):
        history = HistoryManager()
        for n in range(3):
            history.add_calculation(f"{n}", f"{n}")
        history.set_max_items(1)
        assert [entry.result for entry in history.entries] == ["2"]

    def test_format_for_display(self):
        history = HistoryManager()
        history.add_calculation("1,000 × 2", "2000", timestamp="2024-05-01 10:00:00")
        assert history.format_calculation_history() == ["2024-05-01 10:00:00: 1,000 × 2 = 2,000"]
        assert history.format_calculation_history(thousands_separator=False) == [
            "2024-05-01 10:00:00: 1,000 × 2 = 2000"
        ]

    def test_format_respects_limit(self):
        history = HistoryManager()
        history.add_calculation("1 + 1", "2", timestamp="t")
        history.add_calculation("2 + 2", "4", timestamp="t")
        assert history.format_calculation_history(limit=1) == ["t: 2 + 2 = 4"]

    def test_to_list(self):
        history = HistoryManager()
        history.add_calculation("√(9)", "3", timestamp="t")
        assert history.to_list() == [{'expression': "√(9)", 'result': "3", 'timestamp': "t"}]
