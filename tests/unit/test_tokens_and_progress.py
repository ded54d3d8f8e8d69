"""Unit tests for token counting and progress reporting."""

import threading
from pathlib import Path

from contextscan.services.progress import ProgressReporter, ScanProgress
from contextscan.utils.tokens import TokenCounter, whitespace_token_count


class TestTokenCounter:
    def test_whitespace_count(self):
        assert whitespace_token_count("") == 0
        assert whitespace_token_count("one two\nthree\t four ") == 4

    def test_no_encoding_uses_whitespace_count(self):
        counter = TokenCounter(encoding_name=None)
        assert not counter.is_exact
        assert counter.count_tokens("alpha beta gamma") == 3

    def test_unknown_encoding_falls_back_to_whitespace(self):
        counter = TokenCounter(encoding_name="no-such-encoding")
        assert counter.count_tokens("alpha beta") == 2
        assert not counter.is_exact

    def test_shared_across_threads(self):
        counter = TokenCounter(encoding_name=None)
        results = []

        def work():
            results.append(counter.count_tokens("a b c d"))

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == [4] * 8


class TestProgressReporter:
    def test_payload_shape(self):
        event = ScanProgress(50.0, "main.py")
        assert event.to_dict() == {"progress": 50.0, "current_path": "main.py"}

    def test_status_event_is_unthrottled(self):
        events = []
        reporter = ProgressReporter(events.append, min_interval=3600)

        reporter.report_status(Path("/work/project"), " Enumerating files...", 0, 1)
        reporter.report_status(Path("/work/project"), " Enumerating files...", 0, 1)

        assert len(events) == 2
        assert events[0] == ScanProgress(0.0, "project Enumerating files...")

    def test_intermediate_updates_are_throttled(self):
        events = []
        reporter = ProgressReporter(events.append, min_interval=3600)

        for count in range(1, 10):
            reporter.report_item(Path(f"/p/f{count}"), count, 10)

        # At most the first intermediate update gets through
        assert len(events) <= 1
        assert reporter.dropped >= 8

    def test_final_update_is_always_delivered(self):
        events = []
        reporter = ProgressReporter(events.append, min_interval=3600)

        for count in range(1, 11):
            reporter.report_item(Path(f"/p/f{count}"), count, 10)

        assert events[-1] == ScanProgress(100.0, "f10")

    def test_zero_interval_delivers_every_update(self):
        events = []
        reporter = ProgressReporter(events.append, min_interval=0)

        for count in range(1, 5):
            reporter.report_item(Path(f"/p/f{count}"), count, 4)

        assert [e.progress for e in events] == [25.0, 50.0, 75.0, 100.0]

    def test_callback_errors_are_absorbed(self):
        def broken(event):
            raise RuntimeError("listener gone")

        reporter = ProgressReporter(broken, min_interval=0)
        reporter.report_item(Path("/p/a"), 1, 1)

        assert reporter.delivered == 1

    def test_no_callback(self):
        reporter = ProgressReporter(None)
        reporter.report_item(Path("/p/a"), 1, 1)
        assert reporter.delivered == 1
