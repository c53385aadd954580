"""Tests for the class label post-processing filters."""

import io

import pytest

from gesturelib import ClassLabelChangeFilter, ClassLabelFilter, InvalidConfigurationError


class TestClassLabelChangeFilter:
    @pytest.fixture(autouse=True)
    def setup(self):
        self.filter = ClassLabelChangeFilter()

    def test_emits_only_changes(self):
        stream = [1, 1, 1, 1, 2, 2, 2, 2, 3, 3]
        assert [self.filter.filter(label) for label in stream] == [1, 0, 0, 0, 2, 0, 0, 0, 3, 0]

    def test_change_flag(self):
        self.filter.filter(4)
        assert self.filter.get_change()
        self.filter.filter(4)
        assert not self.filter.get_change()
        assert self.filter.get_filtered_class_label() == 4

    def test_reset_forgets_last_label(self):
        self.filter.filter(2)
        assert self.filter.reset()
        assert self.filter.filter(2) == 2

    def test_clone_carries_state(self):
        self.filter.filter(5)
        other = self.filter.deep_copy()
        assert other.filter(5) == 0


class TestClassLabelFilter:
    def test_majority_with_minimum_count(self):
        f = ClassLabelFilter(minimum_count=2, buffer_size=3)
        assert [f.filter(label) for label in (1, 1, 2, 2, 3, 3)] == [0, 1, 1, 2, 2, 3]

    def test_tie_goes_to_most_recent(self):
        f = ClassLabelFilter(minimum_count=1, buffer_size=2)
        f.filter(1)
        assert f.filter(2) == 2

    def test_reset(self):
        f = ClassLabelFilter(minimum_count=2, buffer_size=3)
        f.filter(1)
        f.filter(1)
        assert f.reset()
        assert f.filter(1) == 0

    def test_minimum_count_cannot_exceed_buffer(self):
        f = ClassLabelFilter(minimum_count=4, buffer_size=3)
        assert not f.is_initialized
        assert isinstance(f.last_error, InvalidConfigurationError)

    def test_settings_round_trip(self):
        f = ClassLabelFilter(minimum_count=3, buffer_size=5)
        sink = io.StringIO()
        assert f.save_settings(sink)
        loaded = ClassLabelFilter()
        assert loaded.load_settings(io.StringIO(sink.getvalue()))
        assert (loaded.minimum_count, loaded.buffer_size) == (3, 5)
