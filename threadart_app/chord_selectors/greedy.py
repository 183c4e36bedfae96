# threadart_app/chord_selectors/greedy.py

import random
import logging
from typing import List, Optional

import numpy as np

from .base import ChordSelector, SelectionState, SelectorStatus, StepResult
from ..rasterizer import EROSION_AMOUNT, erase_cells, line_indices, score_cells


class GreedySelector(ChordSelector):
    """
    Darkest-line greedy search.

    From the current pin, score every eligible destination by the average
    darkness along the chord, take the best one, then lighten the field
    along that chord so the same streak is not picked forever.

    When no destination is eligible the search jumps to a random pin,
    drawing nothing. That only happens when the pin count is too small
    for the exclusion band.
    """

    # minimum circular pin distance for a chord
    EXCLUSION_BAND = 5
    # darkness removed along each drawn chord
    EROSION_AMOUNT = EROSION_AMOUNT

    def __init__(
        self,
        exclusion_band: Optional[int] = None,
        erosion_amount: Optional[int] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.exclusion_band = self.EXCLUSION_BAND if exclusion_band is None else exclusion_band
        self.erosion_amount = self.EROSION_AMOUNT if erosion_amount is None else erosion_amount
        if self.exclusion_band < 1:
            raise ValueError(f"exclusion_band must be at least 1, got {self.exclusion_band}")
        if self.erosion_amount < 0:
            raise ValueError(f"erosion_amount must not be negative, got {self.erosion_amount}")
        self.rng = rng if rng is not None else random.Random()
        self.logger = logger or logging.getLogger(__name__)

    def candidates(self, current: int, pin_count: int) -> List[int]:
        """Destination pins far enough (circularly) from `current`, ascending."""
        out = []
        for i in range(pin_count):
            if i == current:
                continue
            dist = abs(current - i)
            if min(dist, pin_count - dist) < self.exclusion_band:
                continue
            out.append(i)
        return out

    def _cells(self, state: SelectionState, a: int, b: int) -> np.ndarray:
        # chords are walked from the current pin, so (a, b) and (b, a) are cached apart
        key = (a, b)
        cells = state.line_cache.get(key)
        if cells is None:
            height, width = state.field.shape
            cells = line_indices(state.pins[a], state.pins[b], width, height)
            state.line_cache[key] = cells
        return cells

    def select(self, state: SelectionState) -> Optional[int]:
        """
        Pick the destination with the highest average darkness.
        Ties go to the lowest pin index; None when nothing is eligible.
        """
        best_pin = None
        best_score = -1.0
        for i in self.candidates(state.current, state.pin_count):
            score = score_cells(state.field, self._cells(state, state.current, i))
            if score > best_score:
                best_score = score
                best_pin = i
        return best_pin

    def advance(self, state: SelectionState, chunk_size: int) -> StepResult:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        progressed = 0
        if not state.exhausted and state.chords_drawn < state.chord_budget:
            state.status = SelectorStatus.RUNNING
            for _ in range(chunk_size):
                if state.chords_drawn >= state.chord_budget:
                    break

                best = self.select(state)
                if best is None:
                    state.current = self.rng.randrange(state.pin_count)
                    state.jumps += 1
                    self.logger.debug(f"[greedy] No eligible chord; jumped to pin {state.current + 1}")
                    continue

                erase_cells(state.field, self._cells(state, state.current, best), self.erosion_amount)
                state.sequence.append(best + 1)
                state.current = best
                progressed += 1

        done = state.chords_drawn >= state.chord_budget
        if done:
            state.status = SelectorStatus.EXHAUSTED
            self.release(state)
        self.logger.debug(
            f"[greedy] Chunk drew {progressed} chords "
            f"({state.chords_drawn}/{state.chord_budget})"
        )
        return StepResult(progressed, done, state.chords_drawn, state.chord_budget)
