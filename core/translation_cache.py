"""
In-memory cache of translated article titles and previews.

Entries are keyed by article id and target language and merged field by
field. A separate in-flight counter tracks articles that are currently being
translated; overlapping requests for the same article each hold a count.
"""

import threading
from collections import Counter
from typing import Optional


class TranslationCache:
    """Title/preview translation cache with an in-flight queue."""

    def __init__(self):
        self._entries: dict[tuple[str, str], dict] = {}
        self._translating: Counter = Counter()
        self._lock = threading.Lock()

    @staticmethod
    def _key(article_id, target_lang: Optional[str]) -> tuple[str, str]:
        return str(article_id), target_lang or ""

    def get(self, article_id: str, target_lang: Optional[str] = None) -> Optional[dict]:
        with self._lock:
            entry = self._entries.get(self._key(article_id, target_lang))
            return dict(entry) if entry is not None else None

    def get_field(self, article_id: str, field: str, target_lang: Optional[str] = None) -> Optional[str]:
        entry = self.get(article_id, target_lang)
        if entry is None:
            return None
        return entry.get(field)

    def set(self, article_id: str, target_lang: Optional[str] = None, **data) -> dict:
        """Merge ``data`` into the entry for ``(article_id, target_lang)`` and return it."""
        key = self._key(article_id, target_lang)
        with self._lock:
            merged = {**self._entries.get(key, {}), **data}
            self._entries[key] = merged
            return dict(merged)

    def is_translating(self, article_id: str, target_lang: Optional[str] = None) -> bool:
        with self._lock:
            return self._translating[self._key(article_id, target_lang)] > 0

    def add_to_queue(self, article_id: str, target_lang: Optional[str] = None) -> None:
        with self._lock:
            self._translating[self._key(article_id, target_lang)] += 1

    def remove_from_queue(self, article_id: str, target_lang: Optional[str] = None) -> None:
        key = self._key(article_id, target_lang)
        with self._lock:
            if self._translating[key] <= 1:
                del self._translating[key]
            else:
                self._translating[key] -= 1

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._translating.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_cache: Optional[TranslationCache] = None


def get_translation_cache() -> TranslationCache:
    """Process-wide cache instance used by the HTTP layer."""
    global _cache
    if _cache is None:
        _cache = TranslationCache()
    return _cache
