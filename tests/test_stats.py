"""Tests for spill/stats.py"""

import json

from spill.stats import compute_stats, format_stats_json, format_stats_text


class TestComputeStats:
    def test_counts(self, sample_records):
        stats = compute_stats(sample_records)
        assert stats.total_records == 5
        assert stats.level_counts == {"debug": 1, "info": 1, "warn": 1, "error": 2}
        assert stats.tool_counts == {"crib": 3, "sift": 2}
        assert stats.first_timestamp == "2025-01-15T12:00:00.000Z"
        assert stats.last_timestamp == "2025-01-15T12:00:04.000Z"

    def test_level_order_is_severity_order(self, sample_records):
        stats = compute_stats(sample_records)
        assert list(stats.level_counts) == ["debug", "info", "warn", "error"]

    def test_empty(self):
        stats = compute_stats([])
        assert stats.total_records == 0
        assert stats.level_counts == {}
        assert stats.first_timestamp is None

    def test_accepts_generator(self, sample_records):
        stats = compute_stats(r for r in sample_records if r.tool == "sift")
        assert stats.total_records == 2


class TestFormatStats:
    def test_text(self, sample_records):
        text = format_stats_text(compute_stats(sample_records))
        assert text.startswith("Total records: 5\n")
        assert "Span: 2025-01-15T12:00:00.000Z .. 2025-01-15T12:00:04.000Z" in text
        assert "Level counts:" in text
        assert "Tool counts:" in text

    def test_text_empty_has_no_span(self):
        assert "Span" not in format_stats_text(compute_stats([]))

    def test_json(self, sample_records):
        data = json.loads(format_stats_json(compute_stats(sample_records)))
        assert data["total_records"] == 5
        assert data["tool_counts"] == {"crib": 3, "sift": 2}
