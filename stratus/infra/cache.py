"""In-memory get-or-create cache with single-flight creation.

Every key is created at most once: the first caller for an absent key runs
the loader, concurrent callers for the same key block on that one pending
creation and share its result. Failed creations are delivered to every waiter
and are not cached, so a later call tries again.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable, Mapping
from concurrent.futures import Future
from types import MappingProxyType

from loguru import logger

from stratus.errors import ResourceResolutionError, StratusError

type Loader[K, V] = Callable[[K], V]


class LoadingCache[K: Hashable, V]:
    """Process-wide keyed store whose only write path is ``get_or_create``."""

    def __init__(self, name: str, loader: Loader[K, V] | None = None) -> None:
        self.name = name
        self._loader = loader
        self._values: dict[K, V] = {}
        self._pending: dict[K, Future[V]] = {}
        self._lock = threading.Lock()
        self._log = logger.bind(component="cache", cache=name)

    def get_or_create(self, key: K, loader: Loader[K, V] | None = None) -> V:
        """Return the value for ``key``, creating it once if absent.

        Args:
            key: Cache key.
            loader: Overrides the default loader for this creation only. Ignored
                when the key is already present or another caller is creating it.

        Raises:
            ResourceResolutionError: The loader failed. Stratus errors raised by
                the loader propagate unchanged.
        """
        with self._lock:
            if key in self._values:
                return self._values[key]
            pending = self._pending.get(key)
            owner = pending is None
            if owner:
                pending = Future()
                self._pending[key] = pending

        assert pending is not None
        if not owner:
            self._log.trace("Waiting on pending creation of {key}", key=key)
            return pending.result()

        create = loader or self._loader
        try:
            if create is None:
                raise LookupError(f"no loader registered for {self.name}")
            self._log.debug("Creating {key}", key=key)
            value = create(key)
        except StratusError as e:
            self._fail(key, pending, e)
            raise
        except Exception as e:
            error = ResourceResolutionError(self.name, key, e)
            self._fail(key, pending, error)
            raise error from e
        except BaseException as e:
            self._fail(key, pending, e)
            raise

        with self._lock:
            self._values[key] = value
            del self._pending[key]
        pending.set_result(value)
        return value

    def _fail(self, key: K, pending: Future[V], error: BaseException) -> None:
        with self._lock:
            del self._pending[key]
        pending.set_exception(error)
        self._log.warning("Creation of {key} failed: {err}", key=key, err=error)

    def get_if_present(self, key: K) -> V | None:
        with self._lock:
            return self._values.get(key)

    def snapshot(self) -> Mapping[K, V]:
        """Read-only copy of the resolved entries."""
        with self._lock:
            return MappingProxyType(dict(self._values))

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def __repr__(self) -> str:
        return f"LoadingCache({self.name!r}, size={len(self)})"
