"""
Bulk loading with a per-item fallback.

load_many() tries one bulk fetch. Only when that fetch fails with a
TransportError does it fan out one fetch per ID on a thread pool, wait for
all of them, and merge the results. IDs that are missing or whose fetch
failed are simply absent from the result.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Hashable, Iterable, Mapping, Optional, TypeVar

from ..exceptions import TransportError
from .logger import get_logger

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_MAX_WORKERS = 8


def load_many(
    ids: Iterable[K],
    bulk_fetch: Callable[[list], Mapping[K, V]],
    item_fetch: Callable[[K], Optional[V]],
    max_workers: int = DEFAULT_MAX_WORKERS,
    fallback: bool = True,
) -> Dict[K, V]:
    """
    Load records for ``ids``, falling back to concurrent per-item fetches.

    Args:
        ids: IDs to load; duplicates are fetched once
        bulk_fetch: Returns a mapping for many IDs in one call
        item_fetch: Returns one record or None when it does not exist
        max_workers: Upper bound on concurrent per-item fetches
        fallback: Re-raise the bulk TransportError instead of falling back when False

    Returns:
        Mapping of ID to record for every ID that was found
    """
    logger = get_logger()
    unique_ids = list(dict.fromkeys(ids))
    if not unique_ids:
        return {}

    try:
        found = bulk_fetch(unique_ids)
        return {key: value for key, value in found.items() if value is not None}
    except TransportError as e:
        if not fallback:
            raise
        logger.warning(
            "Bulk fetch failed, falling back to per-item fetches",
            extra={"id_count": len(unique_ids), "error_id": e.error_id},
        )

    def fetch_one(item_id: K) -> Optional[V]:
        try:
            return item_fetch(item_id)
        except Exception as item_error:
            logger.warning(
                "Per-item fetch failed",
                extra={"item_id": item_id, "error": str(item_error)},
            )
            return None

    workers = max(1, min(max_workers, len(unique_ids)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(fetch_one, unique_ids))

    merged = {item_id: value for item_id, value in zip(unique_ids, results) if value is not None}
    logger.info(
        "Per-item fallback completed",
        extra={"requested": len(unique_ids), "loaded": len(merged)},
    )
    return merged
