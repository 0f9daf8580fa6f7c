"""Clear generations guarding the accumulator against late writes.

Every "clear all results" advances the user's generation. A search records
the generation when it starts and checks it again around each of its
storage writes. A search that was in flight when the user cleared drops its
results and takes back any write that already went through.

Generations live in process memory only.
"""

import logging

logger = logging.getLogger(__name__)


class ClearGenerations:
    """Per-user monotonically increasing clear counter."""

    def __init__(self) -> None:
        self._generations: dict[str, int] = {}

    def current(self, user_id: str | None) -> int:
        if not user_id:
            return 0
        return self._generations.get(user_id, 0)

    def advance(self, user_id: str | None) -> int:
        if not user_id:
            return 0
        generation = self._generations.get(user_id, 0) + 1
        self._generations[user_id] = generation
        logger.info(f"Clear generation for user {user_id} is now {generation}")
        return generation

    def is_current(self, user_id: str | None, generation: int) -> bool:
        return self.current(user_id) == generation


# Singleton instance holder
_generations: ClearGenerations | None = None


def get_clear_generations() -> ClearGenerations:
    """Get singleton generation registry."""
    global _generations
    if _generations is None:
        _generations = ClearGenerations()
    return _generations
