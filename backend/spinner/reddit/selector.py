from __future__ import annotations

import random
from typing import Sequence, TypeVar

from spinner.core.errors import EmptyCandidateSetError

T = TypeVar("T")


def pick_index(size: int, *, rng: random.Random | None = None) -> int:
    if size <= 0:
        raise EmptyCandidateSetError()
    source = rng if rng is not None else random
    return int(source.randrange(size))


def pick_candidate(candidates: Sequence[T], *, rng: random.Random | None = None) -> T:
    return candidates[pick_index(len(candidates), rng=rng)]
