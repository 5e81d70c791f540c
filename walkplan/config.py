# Configuration for the random-walk planner
# - All tunable fields are read from environment variables with safe fallbacks
# - Search parameters reach the driver through an immutable SearchConfig, never through module state

import math
import os
from dataclasses import dataclass, replace
from typing import Optional

from walkplan.errors import ConfigurationError
from walkplan.heuristics import check_heuristic_name


def _optional_int(value: Optional[str]) -> Optional[int]:
    return int(value) if value not in (None, "") else None


# Search Configuration
NUM_WALK = int(os.getenv("NUM_WALK", "1000"))  # restarts
LENGTH_WALK = int(os.getenv("LENGTH_WALK", "8"))  # actions per walk
MAX_STEPS = _optional_int(os.getenv("MAX_STEPS"))  # total actions over all walks, unset = unbounded
TIMEOUT_SECONDS = float(os.getenv("TIMEOUT_SECONDS", "600"))

# Heuristic Configuration
HEURISTIC = os.getenv("HEURISTIC", "FAST_FORWARD")
HEURISTIC_WEIGHT = float(os.getenv("HEURISTIC_WEIGHT", "1.0"))

# Execution Configuration
SEED = _optional_int(os.getenv("SEED"))
PARALLEL_WORKERS = int(os.getenv("PARALLEL_WORKERS", "1"))
TRACE_MEMORY = os.getenv("TRACE_MEMORY", "0") == "1"


@dataclass(frozen=True)
class SearchConfig:
    """
    Parameters of one search, validated on construction.

    Attributes:
        num_walks: number of random walks (restarts) to try
        length_walk: maximum number of actions in a single walk
        max_steps: optional cap on the total number of actions over all walks
        timeout: wall-clock budget in seconds, None for no limit
        heuristic: strategy identifier, see walkplan.heuristics.HEURISTICS
        heuristic_weight: factor applied to every heuristic estimate, finite and > 0
        seed: seed of the default random source, None for a random seed
        workers: number of walks run concurrently, 1 runs them in sequence
        trace_memory: record peak traced memory of the search
    """

    num_walks: int = NUM_WALK
    length_walk: int = LENGTH_WALK
    max_steps: Optional[int] = MAX_STEPS
    timeout: Optional[float] = TIMEOUT_SECONDS
    heuristic: str = HEURISTIC
    heuristic_weight: float = HEURISTIC_WEIGHT
    seed: Optional[int] = SEED
    workers: int = PARALLEL_WORKERS
    trace_memory: bool = TRACE_MEMORY

    def __post_init__(self):
        if self.num_walks < 0:
            raise ConfigurationError(f"num_walks must be >= 0, got {self.num_walks}")
        if self.length_walk < 0:
            raise ConfigurationError(f"length_walk must be >= 0, got {self.length_walk}")
        if self.max_steps is not None and self.max_steps < 0:
            raise ConfigurationError(f"max_steps must be >= 0, got {self.max_steps}")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"timeout must be > 0, got {self.timeout}")
        if not math.isfinite(self.heuristic_weight) or self.heuristic_weight <= 0:
            raise ConfigurationError(f"heuristic weight must be a finite number > 0, got {self.heuristic_weight}")
        if self.workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {self.workers}")
        object.__setattr__(self, "heuristic", check_heuristic_name(self.heuristic))

    def with_changes(self, **changes) -> "SearchConfig":
        return replace(self, **changes)
