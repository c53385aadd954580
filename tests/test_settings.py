"""Tests for the line-oriented settings reader and writer."""

import io

import numpy as np
import pytest

from gesturelib.core import FormatError, InvalidConfigurationError, SettingsReader, SettingsWriter


def write(fn):
    sink = io.StringIO()
    fn(SettingsWriter(sink))
    return sink.getvalue()


class TestSettingsWriter:
    def test_field_format(self):
        assert write(lambda w: w.write_field("BufferSize", 5)) == "BufferSize: 5\n"

    def test_bool_written_as_int(self):
        assert write(lambda w: w.write_field("Trained", True)) == "Trained: 1\n"

    def test_matrix_layout(self):
        text = write(lambda w: w.write_matrix("M", [[1.0, 2.0], [3.0, 4.0]]))
        assert text.splitlines() == ["M: 2 2", "1.0 2.0", "3.0 4.0"]


class TestSettingsReader:
    def test_fields_in_order(self):
        reader = SettingsReader(io.StringIO("A: 3\nB: 0.5\nC: 1\nD: hello world\n"))
        assert reader.read_int("A") == 3
        assert reader.read_float("B") == 0.5
        assert reader.read_bool("C") is True
        assert reader.read_field("D") == "hello world"

    def test_vector_and_matrix(self):
        text = write(lambda w: (w.write_vector("V", [0.1, -2.0]), w.write_matrix("M", np.eye(2))))
        reader = SettingsReader(io.StringIO(text))
        np.testing.assert_array_equal(reader.read_vector("V"), [0.1, -2.0])
        np.testing.assert_array_equal(reader.read_matrix("M"), np.eye(2))

    @pytest.mark.parametrize("text,call", [
        ("", lambda r: r.read_int("A")),
        ("B: 1\n", lambda r: r.read_int("A")),
        ("A 1\n", lambda r: r.read_int("A")),
        ("A: x\n", lambda r: r.read_int("A")),
        ("WRONG\n", lambda r: r.expect_header("RIGHT")),
        ("M: 2 2\n1.0 2.0\n", lambda r: r.read_matrix("M")),
        ("M: 1 2\n1.0\n", lambda r: r.read_matrix("M")),
        ("M: 2\n", lambda r: r.read_matrix("M")),
    ])
    def test_malformed_input_raises_format_error(self, text, call):
        with pytest.raises(FormatError):
            call(SettingsReader(io.StringIO(text)))

    @pytest.mark.parametrize("shape", ["-2 1", "1 -2", "-1 -1"])
    def test_negative_matrix_shape_is_range_error(self, shape):
        reader = SettingsReader(io.StringIO(f"M: {shape}\n1.0\n"))
        with pytest.raises(InvalidConfigurationError):
            reader.read_matrix("M")

    def test_empty_matrix(self):
        reader = SettingsReader(io.StringIO("M: 0 3\n"))
        assert reader.read_matrix("M").shape == (0, 3)
