from collections import Counter
from threading import Lock
from typing import Dict, Counter as CounterType

_metrics: CounterType[str] = Counter()
_lock = Lock()


def _inc(key: str) -> None:
    with _lock:
        _metrics[key] += 1


def record_post_created() -> None:
    _inc("posts_created")


def record_post_renamed() -> None:
    _inc("posts_renamed")


def record_slug_conflict() -> None:
    _inc("slug_conflicts")


def record_slug_fallback() -> None:
    _inc("slug_random_fallbacks")


def record_alias_written(kind: str) -> None:
    _inc(f"{kind}_aliases_written")


def record_redirect(permanent: bool) -> None:
    _inc("redirects_permanent" if permanent else "redirects_temporary")


def snapshot() -> Dict[str, int]:
    with _lock:
        return dict(_metrics)


def reset() -> None:
    with _lock:
        _metrics.clear()
