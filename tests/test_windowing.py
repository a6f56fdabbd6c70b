"""Unit tests for transcript windowing."""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from thinkstream.scroll import VirtualWindow


@pytest.fixture
def window():
    """Ten estimated items of 100 with 20 padding on both ends, 250 tall viewport."""
    window = VirtualWindow(estimate_size=100, overscan=2, padding_start=20, padding_end=20)
    window.set_count(10)
    window.set_viewport(250)
    return window


class TestGeometry:
    """Tests for sizes and offsets."""

    def test_total_size(self, window):
        assert window.total_size == 20 + 10 * 100 + 20
        assert window.max_offset == 1040 - 250

    def test_item_start(self, window):
        assert window.item_start(0) == 20
        assert window.item_start(3) == 320

    def test_empty_window(self):
        window = VirtualWindow()

        assert window.visible_range() == range(0)
        assert window.virtual_items() == []
        assert window.scroll_offset == 0

    def test_scroll_is_clamped(self, window):
        assert window.scroll_to(-50) == 0
        assert window.scroll_to(10_000) == window.max_offset

    def test_scroll_to_end(self, window):
        window.scroll_to_end()
        assert window.distance_from_end == 0

    def test_shrinking_drops_measurements(self, window):
        """Test that items beyond a new, shorter end forget their size."""
        window.measure(8, 40)
        window.set_count(5)
        window.set_count(10)

        assert not window.is_measured(8)
        assert window.item_size(8) == 100

    def test_reset(self, window):
        window.measure(1, 30)
        window.scroll_to(300)
        window.reset()

        assert not window.is_measured(1)
        assert window.scroll_offset == 0


class TestVisibleRange:
    """Tests for visible_range."""

    def test_top_of_list(self, window):
        """Test the first screen plus trailing overscan."""
        assert window.visible_range() == range(0, 5)

    def test_middle_of_list(self, window):
        """Test that overscan extends the range on both sides."""
        window.scroll_to(500)
        assert window.visible_range() == range(2, 10)

    def test_bottom_of_list(self, window):
        window.scroll_to_end()
        assert window.visible_range()[-1] == 9

    def test_virtual_items_report_placement(self, window):
        window.measure(0, 60)
        items = window.virtual_items()

        assert items[0].start == 20
        assert items[0].size == 60
        assert items[0].measured
        assert items[1].start == 80
        assert not items[1].measured

    @given(
        st.lists(st.integers(min_value=1, max_value=300), min_size=1, max_size=30),
        st.integers(min_value=0, max_value=10_000),
        st.integers(min_value=1, max_value=800),
    )
    def test_range_covers_viewport(self, sizes, offset, viewport):
        """Property test: every item intersecting the viewport is rendered."""
        window = VirtualWindow(estimate_size=50, overscan=0, padding_start=0, padding_end=0)
        window.set_count(len(sizes))
        for index, size in enumerate(sizes):
            window.measure(index, size)
        window.set_viewport(viewport)
        top = window.scroll_to(offset)
        bottom = top + viewport

        rendered = window.visible_range()
        for index in range(len(sizes)):
            start = window.item_start(index)
            if start < bottom and start + sizes[index] > top:
                assert index in rendered


class TestMeasure:
    """Tests for measurement and scroll anchoring."""

    def test_measure_returns_delta(self, window):
        assert window.measure(2, 130) == 30
        assert window.measure(2, 130) == 0

    def test_item_above_viewport_shifts_offset(self, window):
        """Test that growth above the viewport keeps the visible content in place."""
        window.scroll_to(500)

        window.measure(0, 150)

        assert window.scroll_offset == 550

    def test_item_below_viewport_does_not_shift(self, window):
        window.scroll_to(500)

        window.measure(9, 200)

        assert window.scroll_offset == 500

    def test_out_of_range_index(self, window):
        with pytest.raises(IndexError):
            window.measure(10, 50)
        with pytest.raises(IndexError):
            window.measure(-1, 50)
