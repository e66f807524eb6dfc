"""
Memoization of the public calculation entry points.

Keys are content addressed: a hash of the JSON serialised arguments, prefixed
with the function name and the calculator version. The calculator version
combines the package version with the version tags of the rule tables, so a
table update never serves a stale result. Each key is computed at most once,
also under concurrent callers.
"""
from typing import Any, Callable, Dict, Optional
import functools
import hashlib
import json
import threading
import logging

from pydantic import BaseModel

from gebruiksnormen.core.config import CACHE_ENABLED, PACKAGE_VERSION
from gebruiksnormen.services.rule_tables import table_versions

logger = logging.getLogger(__name__)

_calculator_version: Optional[str] = None


def get_calculator_version() -> str:
    """Package version plus the version tag of every rule table."""
    global _calculator_version
    if _calculator_version is None:
        tables = ";".join(f"{name}={version}" for name, version in sorted(table_versions().items()))
        _calculator_version = f"{PACKAGE_VERSION}+{tables}"
    return _calculator_version


def _serialisable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


def generate_key(name: str, *args: Any, **kwargs: Any) -> str:
    """Deterministic cache key for a call of `name` with `args`."""
    data = {
        "args": [_serialisable(a) for a in args],
        "kwargs": {k: _serialisable(v) for k, v in kwargs.items()},
    }
    serialized = json.dumps(data, sort_keys=True, default=str)
    digest = hashlib.sha256(serialized.encode("utf-8")).hexdigest()
    return f"{name}:{get_calculator_version()}:{digest}"


class CalculationCache:
    """Thread-safe in-memory result cache with one computation per key."""

    def __init__(self):
        self._results: Dict[str, Any] = {}
        self._key_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        with self._lock:
            if key in self._results:
                logger.debug(f"Cache hit {key}")
                return self._results[key]
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            with self._lock:
                if key in self._results:
                    logger.debug(f"Cache hit {key}")
                    return self._results[key]
            # Failures propagate and are not stored
            result = compute()
            with self._lock:
                self._results[key] = result
            return result

    def clear(self):
        with self._lock:
            self._results.clear()
            self._key_locks.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)


calculation_cache = CalculationCache()


def _copy(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_copy(deep=True)
    return result


def cached(name: str):
    """Decorator memoizing an entry point under `name`."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not CACHE_ENABLED:
                return func(*args, **kwargs)
            key = generate_key(name, *args, **kwargs)
            return _copy(calculation_cache.get_or_compute(key, lambda: func(*args, **kwargs)))

        wrapper.uncached = func
        return wrapper
    return decorator


def clear_calculation_cache():
    """Drop all memoized results and the computed calculator version."""
    global _calculator_version
    calculation_cache.clear()
    _calculator_version = None
