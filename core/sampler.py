import random
from typing import Iterable, List, Optional

from core.config import settings
from core.exceptions import InsufficientPoolError


class Sampler:
    """Draws question ids uniformly without replacement. Not cryptographically secure."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def sample(self, pool: Iterable[int], count: int) -> List[int]:
        # Sorted so a seeded sampler does not depend on set iteration order
        candidates = sorted(set(pool))
        if count < 0 or count > len(candidates):
            raise InsufficientPoolError(count, len(candidates))
        return self._rng.sample(candidates, count)


# Process-wide: a configured seed yields one reproducible sequence per process
default_sampler = Sampler(settings.SAMPLER_SEED)
