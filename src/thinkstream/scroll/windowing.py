"""List windowing for long transcripts.

Only the items inside the viewport plus a small overscan margin are
rendered. Items are keyed by their index in the session. Unmeasured items
use an estimated size until the renderer reports their real height.
"""

import bisect
from dataclasses import dataclass
from itertools import accumulate

ESTIMATED_ITEM_SIZE = 100
OVERSCAN = 2
PADDING = 20


@dataclass(frozen=True)
class VirtualItem:
    """Placement of one item in the virtual list."""

    index: int
    start: int
    size: int
    measured: bool

    @property
    def end(self) -> int:
        return self.start + self.size


class VirtualWindow:
    """Computes which transcript items to render and where.

    Re-measuring an item that starts above the current scroll offset shifts
    the offset by the size change, so the content under the viewport stays
    where the reader left it.
    """

    def __init__(
        self,
        estimate_size: int = ESTIMATED_ITEM_SIZE,
        overscan: int = OVERSCAN,
        padding_start: int = PADDING,
        padding_end: int = PADDING,
    ) -> None:
        self._estimate = estimate_size
        self._overscan = overscan
        self._padding_start = padding_start
        self._padding_end = padding_end
        self._count = 0
        self._measured: dict[int, int] = {}
        self._scroll_offset = 0
        self._viewport_height = 0

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def count(self) -> int:
        return self._count

    def set_count(self, count: int) -> None:
        """Resize the list. Measurements beyond the new end are dropped."""
        self._count = max(0, count)
        self._measured = {i: h for i, h in self._measured.items() if i < self._count}
        self._clamp()

    def reset(self) -> None:
        """Forget every measurement, e.g. when another session is shown."""
        self._measured.clear()
        self._scroll_offset = 0

    def is_measured(self, index: int) -> bool:
        return index in self._measured

    def item_size(self, index: int) -> int:
        return self._measured.get(index, self._estimate)

    def _starts(self) -> list[int]:
        sizes = (self.item_size(i) for i in range(self._count))
        return list(accumulate(sizes, initial=self._padding_start))

    def item_start(self, index: int) -> int:
        return self._padding_start + sum(self.item_size(i) for i in range(index))

    @property
    def total_size(self) -> int:
        return self._starts()[-1] + self._padding_end

    # ------------------------------------------------------------------
    # Viewport
    # ------------------------------------------------------------------

    @property
    def scroll_offset(self) -> int:
        return self._scroll_offset

    @property
    def viewport_height(self) -> int:
        return self._viewport_height

    def set_viewport(self, height: int) -> None:
        self._viewport_height = max(0, height)
        self._clamp()

    @property
    def max_offset(self) -> int:
        return max(0, self.total_size - self._viewport_height)

    def scroll_to(self, offset: int) -> int:
        self._scroll_offset = offset
        self._clamp()
        return self._scroll_offset

    def scroll_to_end(self) -> int:
        return self.scroll_to(self.max_offset)

    @property
    def distance_from_end(self) -> int:
        return self.total_size - (self._scroll_offset + self._viewport_height)

    def _clamp(self) -> None:
        self._scroll_offset = min(max(0, self._scroll_offset), self.max_offset)

    # ------------------------------------------------------------------
    # Measurement and range
    # ------------------------------------------------------------------

    def measure(self, index: int, height: int) -> int:
        """Record the real height of an item. Returns the size change."""
        if not 0 <= index < self._count:
            raise IndexError(f"item {index} outside list of {self._count}")

        delta = height - self.item_size(index)
        starts_above_viewport = self.item_start(index) < self._scroll_offset
        self._measured[index] = height
        if delta and starts_above_viewport:
            self._scroll_offset += delta
            self._clamp()
        return delta

    def visible_range(self) -> range:
        """Indices to render: those intersecting the viewport plus overscan."""
        if self._count == 0:
            return range(0)

        starts = self._starts()
        top = self._scroll_offset
        bottom = top + self._viewport_height

        # first item whose end lies below the viewport top
        first = min(max(0, bisect.bisect_right(starts, top) - 1), self._count - 1)
        # last item whose start lies above the viewport bottom
        last = max(first, bisect.bisect_left(starts, bottom) - 1)
        last = min(last, self._count - 1)

        return range(
            max(0, first - self._overscan),
            min(self._count, last + self._overscan + 1),
        )

    def virtual_items(self) -> list[VirtualItem]:
        """Placement of every item in ``visible_range()``."""
        starts = self._starts()
        return [
            VirtualItem(
                index=i,
                start=starts[i],
                size=self.item_size(i),
                measured=i in self._measured,
            )
            for i in self.visible_range()
        ]
