"""
Snapshot merge for remote synchronization.

Words are matched by case-insensitive source term. On a conflict the record
with more learning progress wins wholesale, and recency breaks ties; there is
no field-level union. Settings are shallow-merged with local values on top.
"""

import logging

from lexicard.domain.clock import Clock, iso_str, now_ms
from lexicard.domain.constants import DATASET_VERSION
from lexicard.domain.models import Dataset, Word

logger = logging.getLogger(__name__)


def _local_wins(local: Word, remote: Word) -> bool:
    if local.review_count != remote.review_count:
        return local.review_count > remote.review_count
    # Equal progress: the more recently reviewed record wins, a missing timestamp loses.
    if local.last_reviewed_at is None:
        return False
    if remote.last_reviewed_at is None:
        return True
    return local.last_reviewed_at > remote.last_reviewed_at


def merge_data(local: Dataset, remote: Dataset, clock: Clock = now_ms) -> Dataset:
    """
    Reconcile a local and a remote snapshot into one dataset.

    Deliberately asymmetric: local settings override remote ones, and an exact
    tie on a conflicting word keeps the remote record.
    """
    merged: dict[str, Word] = {w.key: w for w in remote.words}
    local_only = local_preferred = 0

    for word in local.words:
        current = merged.get(word.key)
        if current is None:
            merged[word.key] = word
            local_only += 1
        elif _local_wins(word, current):
            merged[word.key] = word
            local_preferred += 1

    logger.info(
        f"[merge] remote={len(remote.words)} local={len(local.words)} "
        f"local_only={local_only} local_preferred={local_preferred} merged={len(merged)}"
    )

    return Dataset(
        version=local.version or remote.version or DATASET_VERSION,
        export_date=iso_str(clock()),
        words=list(merged.values()),
        settings={**remote.settings, **local.settings},
    )
