# crawler/dedup.py


class DedupRegistry:
    """
    Item ids already emitted during one crawl run.

    The crawler creates a fresh registry per run. Workers share one event
    loop and neither method awaits, so each check-and-set runs atomically
    with respect to other in-flight page handlers.
    """

    def __init__(self):
        self._seen = set()

    def should_emit(self, item_id):
        """Record item_id and return True if it was not seen before in this run."""
        if item_id in self._seen:
            return False
        self._seen.add(item_id)
        return True

    def release(self, item_id):
        """Forget item_id so a later page may emit it (used when emitting failed)."""
        self._seen.discard(item_id)

    def __contains__(self, item_id):
        return item_id in self._seen

    def __len__(self):
        return len(self._seen)
