"""In-process cache for rendered admin pages."""

from __future__ import annotations

import threading

RSVP_PAGE_TAGS = ("dashboard", "guests", "dietary", "songs")


class PageCache:
    """Rendered HTML keyed by tag and request key (path plus query string).

    Each tag carries a generation that moves on every invalidation. A page
    rendered from data read before an invalidation is stored only when the
    caller's generation still matches, so a slow render cannot put stale HTML
    back into the cache.
    """

    def __init__(self) -> None:
        self._pages: dict[str, dict[str, str]] = {}
        self._generations: dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, tag: str, key: str) -> str | None:
        with self._lock:
            return self._pages.get(tag, {}).get(key)

    def generation(self, tag: str) -> int:
        with self._lock:
            return self._generations.get(tag, 0)

    def set(self, tag: str, key: str, html: str, *, generation: int | None = None) -> bool:
        with self._lock:
            if generation is not None and generation != self._generations.get(tag, 0):
                return False
            self._pages.setdefault(tag, {})[key] = html
            return True

    def invalidate(self, *tags: str) -> None:
        with self._lock:
            for tag in tags:
                self._pages.pop(tag, None)
                self._generations[tag] = self._generations.get(tag, 0) + 1

    def invalidate_rsvp_pages(self) -> None:
        """Drop every page that lists or summarises RSVPs."""
        self.invalidate(*RSVP_PAGE_TAGS)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(pages) for pages in self._pages.values())
