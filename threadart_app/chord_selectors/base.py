# threadart_app/chord_selectors/base.py

from dataclasses import dataclass, field as dc_field
from enum import Enum
from typing import Dict, List, NamedTuple, Tuple

import numpy as np

from ..layout import AnchorPoint


class SelectorStatus(str, Enum):
    READY = "ready"
    RUNNING = "running"
    EXHAUSTED = "exhausted"


class StepResult(NamedTuple):
    """Outcome of one advance() call."""
    progressed: int      # chords added during this call
    done: bool           # chord budget reached
    chords_drawn: int
    chord_budget: int


@dataclass
class SelectionState:
    """
    Everything one run of a selector mutates: its private field, the
    pin sequence (1-based, starts at pin 1) and the current pin (0-based).
    """
    pins: List[AnchorPoint]
    field: np.ndarray = dc_field(repr=False)
    chord_budget: int
    sequence: List[int] = dc_field(default_factory=lambda: [1])
    current: int = 0
    status: SelectorStatus = SelectorStatus.READY
    jumps: int = 0
    line_cache: Dict[Tuple[int, int], np.ndarray] = dc_field(default_factory=dict, repr=False)

    @property
    def pin_count(self) -> int:
        return len(self.pins)

    @property
    def chords_drawn(self) -> int:
        return len(self.sequence) - 1

    @property
    def exhausted(self) -> bool:
        return self.status is SelectorStatus.EXHAUSTED


class ChordSelector:
    """
    Interface for any chord-selection strategy.
    """
    def start(self, pins: List[AnchorPoint], field: np.ndarray, chord_budget: int) -> SelectionState:
        """
        Build a fresh state for a run. `field` is owned by the run from now on.
        """
        return SelectionState(pins=list(pins), field=field, chord_budget=chord_budget)

    def advance(self, state: SelectionState, chunk_size: int) -> StepResult:
        """
        Do at most `chunk_size` selection steps on `state` and report progress.
        Calling it repeatedly with any chunk size must give the same final
        sequence as one big call.

        :param state: the run to continue
        :param chunk_size: upper bound on selection steps in this call
        """
        raise NotImplementedError("Must implement advance()")

    def release(self, state: SelectionState) -> None:
        """
        Drop per-run scratch data (cached lines). The sequence, pins and
        field stay readable.
        """
        state.line_cache.clear()
