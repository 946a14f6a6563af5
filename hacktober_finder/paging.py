from __future__ import annotations

from enum import Enum

from .models import PageState


class Direction(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


def focus_index(direction: Direction, count: int) -> int:
    """Selection after a page loads: first item going forward, last going back."""
    if count <= 0:
        return 0
    return 0 if direction is Direction.FORWARD else count - 1


class PagingCursor:
    """
    Page position of the repository list.

    has_more_pages is derived from the last completed fetch: the page came back
    full AND page * page_size is below the total estimate. The estimate comes
    from an unfiltered count query, so it can disagree with the filtered pages;
    that approximation is accepted.
    """

    def __init__(self, page_size: int):
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.page_size = page_size
        self.current_page = 1
        self.has_more_pages = False
        self.total_estimate = 0

    def record_fetch(self, page: int, returned: int, total_estimate: int) -> bool:
        self.current_page = page
        self.total_estimate = total_estimate
        self.has_more_pages = returned == self.page_size and page * self.page_size < total_estimate
        return self.has_more_pages

    def advance(self) -> bool:
        if not self.has_more_pages:
            return False
        self.current_page += 1
        return True

    def retreat(self) -> bool:
        if self.current_page <= 1:
            return False
        self.current_page -= 1
        return True

    def reset(self) -> None:
        self.current_page = 1
        self.has_more_pages = False
        self.total_estimate = 0

    @property
    def total_pages(self) -> int:
        pages = -(-self.total_estimate // self.page_size)
        return max(pages, self.current_page)

    @property
    def state(self) -> PageState:
        return PageState(
            page_number=self.current_page,
            page_size=self.page_size,
            has_more_pages=self.has_more_pages,
            total_available_estimate=self.total_estimate,
        )
