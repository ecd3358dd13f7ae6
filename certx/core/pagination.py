"""
Pagination state and page-number strip.
"""

from dataclasses import dataclass

ELLIPSIS = "..."


@dataclass
class Pagination:
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = 1

    def clamp(self, page: int) -> int:
        """Keep a requested page inside [1, total_pages]."""
        return max(1, min(page, max(self.total_pages, 1)))


def page_numbers(current: int, total_pages: int) -> list[int | str]:
    """
    Page strip for a pager: every page when there are at most 7,
    otherwise first, last and a window of one page around ``current``,
    with "..." where pages are skipped.
    """
    if total_pages <= 7:
        return list(range(1, total_pages + 1))

    pages: list[int | str] = [1]
    if current > 3:
        pages.append(ELLIPSIS)

    start = max(2, current - 1)
    end = min(total_pages - 1, current + 1)
    pages.extend(range(start, end + 1))

    if current < total_pages - 2:
        pages.append(ELLIPSIS)
    pages.append(total_pages)
    return pages
