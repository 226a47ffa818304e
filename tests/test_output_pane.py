"""
Tests for wrapping output lines in to rows.
"""
from textual.content import Content

from scanpad.widgets.output_pane import wrap_line


def row_text(rows):
    return [row.content.plain for row in rows]


def test_wrap_ascii():
    """Test a long line wraps at the width, without an empty final row"""
    rows = wrap_line(3, Content("abcdefgh"), 4)
    assert row_text(rows) == ["abcd", "efgh"]
    assert [row.start for row in rows] == [0, 4]
    assert [row.wrap_index for row in rows] == [0, 1]
    assert all(row.line_index == 3 for row in rows)


def test_wrap_wide_characters():
    """Test double width characters are wrapped by cells"""
    rows = wrap_line(0, Content("你好世界ab"), 4)
    assert row_text(rows) == ["你好", "世界", "ab"]
    assert all(row.content.cell_length <= 4 for row in rows)
    assert [row.start for row in rows] == [0, 2, 4]


def test_wrap_odd_width_with_wide_characters():
    """Test a wide character is never divided between rows"""
    rows = wrap_line(0, Content("你好世"), 3)
    assert row_text(rows) == ["你", "好", "世"]


def test_empty_line():
    """Test an empty line is a single row"""
    assert row_text(wrap_line(0, Content(), 10)) == [""]


def test_no_width():
    """Test a zero width doesn't wrap"""
    assert row_text(wrap_line(0, Content("abcdef"), 0)) == ["abcdef"]
