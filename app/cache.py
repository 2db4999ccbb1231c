"""
app/cache.py

Caché en memoria con etiquetas (tags).

Cada entrada se guarda con una o varias etiquetas; invalidate_tags()
borra de una vez todas las entradas de esas etiquetas, sin tener que
conocer las claves (getAllBooks-1-3, getAllBooks-2-3, ...).

FastAPI ejecuta los endpoints síncronos en un threadpool, por eso los
diccionarios se protegen con un Lock.
"""

import logging
import threading
from typing import Any, Callable, Dict, Iterable, Set

from prometheus_client import Counter

logger = logging.getLogger(__name__)

AUTHORS_CACHE_TAG = "authorsCache"
BOOKS_CACHE_TAG = "booksCache"

CACHE_HITS = Counter("cache_hits_total", "Cache hits", ["tag"])
CACHE_MISSES = Counter("cache_misses_total", "Cache misses", ["tag"])


class TagAwareCache:
    def __init__(self):
        self._values: Dict[str, Any] = {}
        self._tags: Dict[str, Set[str]] = {}
        # Generación por tag: sube en cada invalidación
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, key: str, compute: Callable[[], Any], tags: Iterable[str] = ()) -> Any:
        """
        Devuelve el valor guardado en `key` o lo calcula con compute().

        compute() se ejecuta fuera del lock (hace consultas a BD). Si alguno
        de sus tags se invalida mientras tanto, el valor se devuelve pero no
        se guarda: podría ser anterior a la escritura.
        """
        tags = set(tags)
        label = ",".join(sorted(tags)) or "-"

        with self._lock:
            if key in self._values:
                CACHE_HITS.labels(label).inc()
                logger.debug("cache hit key=%s", key)
                return self._values[key]
            seen = {tag: self._generations.get(tag, 0) for tag in tags}

        CACHE_MISSES.labels(label).inc()
        logger.debug("cache miss key=%s", key)
        value = compute()

        with self._lock:
            if any(self._generations.get(tag, 0) != gen for tag, gen in seen.items()):
                logger.debug("cache store skipped key=%s (tag invalidated during compute)", key)
                return value
            self._values[key] = value
            for tag in tags:
                self._tags.setdefault(tag, set()).add(key)
        return value

    def invalidate_tags(self, tags: Iterable[str]) -> bool:
        """Borra todas las entradas marcadas con alguna de las etiquetas."""
        tags = list(tags)
        with self._lock:
            removed = 0
            for tag in tags:
                self._generations[tag] = self._generations.get(tag, 0) + 1
                for key in self._tags.pop(tag, set()):
                    if key in self._values:
                        del self._values[key]
                        removed += 1
                    for keys in self._tags.values():
                        keys.discard(key)
        logger.info("cache invalidated tags=%s entries=%s", ",".join(tags), removed)
        return True

    def delete(self, key: str) -> bool:
        with self._lock:
            found = key in self._values
            self._values.pop(key, None)
            for keys in self._tags.values():
                keys.discard(key)
        return found

    def clear(self) -> None:
        with self._lock:
            self._values.clear()
            self._tags.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)


cache = TagAwareCache()


def get_cache() -> TagAwareCache:
    return cache
