# threadart_app/planner.py
#
# Job controller: runs one or more chord searches over the same source
# field, strictly one job at a time and in small chunks, so a caller
# (a worker thread, an event loop, a test) can interleave other work
# between chunks and cancel between them.
#

import random
import logging
import threading
from dataclasses import dataclass, field as dc_field
from enum import Enum
from typing import Callable, List, Optional, Union

import numpy as np

from .chord_selectors import SELECTORS, ChordSelector, SelectionState, StepResult, create_selector
from .layout import AnchorPoint, FrameShape, generate_layout, parse_frame_shape
from .preprocessing import SourceField

# Selection steps per advance() call.
DEFAULT_CHUNK_SIZE = 100


class ConfigurationError(ValueError):
    """A job was configured with values the search cannot run with."""


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class JobSpec:
    pin_count: int
    chord_budget: int
    frame_shape: Union[str, FrameShape] = FrameShape.CIRCLE
    label: Optional[str] = None
    algorithm: str = "greedy"

    def validate(self, width: int, height: int, exclusion_band: Optional[int] = None) -> None:
        """
        Raise ConfigurationError if this spec can't run on a width x height
        field. Given an exclusion band, also guard against a permanent stall:
        a pin count so small that no pin ever has an eligible destination.
        Without one (exclusion_band=None) that guard is skipped.
        """
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"Field dimensions must be positive, got {width}x{height}")
        if self.pin_count <= 0:
            raise ConfigurationError(f"pin_count must be positive, got {self.pin_count}")
        if self.chord_budget < 0:
            raise ConfigurationError(f"chord_budget must not be negative, got {self.chord_budget}")
        try:
            shape = parse_frame_shape(self.frame_shape)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from None
        if shape is FrameShape.SQUARE and (width <= 2 or height <= 2):
            raise ConfigurationError(f"Field {width}x{height} is too small for a square frame")
        if self.algorithm not in SELECTORS:
            valid = ", ".join(SELECTORS.keys())
            raise ConfigurationError(f"Unknown algorithm '{self.algorithm}'. Valid options: {valid}")
        if exclusion_band is not None and self.chord_budget > 0 and self.pin_count < 2 * exclusion_band:
            raise ConfigurationError(
                f"Permanent stall: with an exclusion band of {exclusion_band}, pin_count={self.pin_count} "
                f"leaves no pin an eligible chord, so the job could never finish; "
                f"use at least {2 * exclusion_band} pins or a smaller band"
            )


# Kit presets for batch mode.
BATCH_VARIANTS = (
    JobSpec(pin_count=200, chord_budget=2500, label="Light (2500 lines)"),
    JobSpec(pin_count=200, chord_budget=3000, label="Standard (3000 lines)"),
    JobSpec(pin_count=200, chord_budget=3500, label="Dense (3500 lines)"),
)


@dataclass
class Job:
    id: int
    spec: JobSpec
    selector: ChordSelector = dc_field(repr=False)
    status: JobStatus = JobStatus.PENDING
    pins: List[AnchorPoint] = dc_field(default_factory=list, repr=False)
    state: Optional[SelectionState] = dc_field(default=None, repr=False)

    @property
    def sequence(self) -> List[int]:
        """1-based pin sequence; empty until the job starts."""
        return self.state.sequence if self.state is not None else []

    @property
    def field(self) -> Optional[np.ndarray]:
        return self.state.field if self.state is not None else None

    @property
    def chords_drawn(self) -> int:
        return self.state.chords_drawn if self.state is not None else 0

    @property
    def progress(self) -> float:
        if self.spec.chord_budget == 0:
            return 1.0 if self.status is JobStatus.DONE else 0.0
        return self.chords_drawn / self.spec.chord_budget

    def describe(self) -> dict:
        return {
            "id": self.id,
            "label": self.spec.label,
            "pin_count": self.spec.pin_count,
            "chord_budget": self.spec.chord_budget,
            "frame_shape": parse_frame_shape(self.spec.frame_shape).value,
            "status": self.status.value,
            "chords_drawn": self.chords_drawn,
        }


ProgressCallback = Callable[[Job, StepResult], None]
CompleteCallback = Callable[[Job], None]


class JobController:
    """
    FIFO queue of jobs sharing one read-only SourceField.

    Each job gets its own pin layout and its own clone of the field when it
    starts, so jobs can't see each other's erasures. step() runs one chunk
    of the active job; run() keeps stepping until the queue is drained or
    cancel_all() is called. Cancellation is checked before every chunk.
    """

    def __init__(
        self,
        source: SourceField,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        selector_factory: Optional[Callable[[JobSpec], ChordSelector]] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if logger is None:
            logger = logging.getLogger(__name__)
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        self.logger = logger
        self.source = source
        self.chunk_size = chunk_size
        self.selector_factory = selector_factory or self._default_selector
        self.on_progress = on_progress
        self.on_complete = on_complete

        self._jobs: List[Job] = []
        self._active: Optional[Job] = None
        self._cancel = threading.Event()

    def _default_selector(self, spec: JobSpec) -> ChordSelector:
        return create_selector(spec.algorithm, logger=self.logger)

    @property
    def jobs(self) -> List[Job]:
        return list(self._jobs)

    @property
    def active(self) -> Optional[Job]:
        return self._active

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def get(self, job_id: int) -> Optional[Job]:
        for job in self._jobs:
            if job.id == job_id:
                return job
        return None

    def enqueue(self, spec: JobSpec) -> Job:
        """
        Validate `spec` and queue it. Invalid specs raise ConfigurationError
        and are never queued.
        """
        try:
            spec.validate(self.source.width, self.source.height)
            selector = self.selector_factory(spec)
            spec.validate(
                self.source.width,
                self.source.height,
                exclusion_band=getattr(selector, "exclusion_band", None),
            )
        except ValueError as exc:
            self.logger.error(f"[controller] Rejected job {spec}: {exc}")
            if isinstance(exc, ConfigurationError):
                raise
            raise ConfigurationError(str(exc)) from exc

        job = Job(id=len(self._jobs), spec=spec, selector=selector)
        self._jobs.append(job)
        self.logger.debug(
            f"[controller] Queued job {job.id}: pins={spec.pin_count}, "
            f"chords={spec.chord_budget}, shape={parse_frame_shape(spec.frame_shape).value}"
        )
        return job

    def _next_pending(self) -> Optional[Job]:
        for job in self._jobs:
            if job.status is JobStatus.PENDING:
                return job
        return None

    def _start(self, job: Job) -> None:
        spec = job.spec
        job.pins = generate_layout(
            spec.pin_count,
            self.source.width,
            self.source.height,
            spec.frame_shape,
            logger=self.logger,
        )
        job.state = job.selector.start(job.pins, self.source.clone(), spec.chord_budget)
        job.status = JobStatus.PROCESSING
        self._active = job
        label = f" ({spec.label})" if spec.label else ""
        self.logger.info(f"[controller] Started job {job.id}{label}")

    def has_work(self) -> bool:
        if self.cancelled:
            return False
        return self._active is not None or self._next_pending() is not None

    def step(self) -> bool:
        """
        Run one chunk of the active job, starting the next pending job if
        none is active. Returns True while there is more work to do.
        """
        if self.cancelled:
            self._release_active()
            return False

        if self._active is None:
            job = self._next_pending()
            if job is None:
                return False
            self._start(job)

        job = self._active
        result = job.selector.advance(job.state, self.chunk_size)
        if self.on_progress is not None:
            self.on_progress(job, result)

        if result.done:
            job.status = JobStatus.DONE
            job.selector.release(job.state)
            self._active = None
            self.logger.info(
                f"[controller] Job {job.id} done: {result.chords_drawn} chords, "
                f"{job.state.jumps} random jumps"
            )
            if self.on_complete is not None:
                self.on_complete(job)

        if self.cancelled:
            self._release_active()
        return self.has_work()

    def run(self) -> List[Job]:
        """Step until every job is done or the run is cancelled."""
        while self.step():
            pass
        if self.cancelled:
            self.logger.info("[controller] Run cancelled")
        return self.jobs

    def _release_active(self) -> None:
        job = self._active
        if job is not None and job.state is not None:
            job.selector.release(job.state)

    def cancel_all(self) -> None:
        """
        Stop making progress. Partial sequences stay readable. A chunk that
        is already running finishes first.
        """
        self._cancel.set()
        for job in self._jobs:
            if job.status in (JobStatus.PENDING, JobStatus.PROCESSING):
                job.status = JobStatus.CANCELLED
        self._release_active()
        self.logger.info("[controller] Cancellation requested")


def generate_sequence(
    source: SourceField,
    spec: JobSpec,
    *,
    rng: Optional[random.Random] = None,
    exclusion_band: Optional[int] = None,
    erosion_amount: Optional[int] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    logger: Optional[logging.Logger] = None,
) -> Job:
    """
    Run a single job to completion (interactive mode) and return it.

    :param source: field to draw
    :param spec: pins, chord budget and frame shape
    :param rng: random source for stall jumps
    :param exclusion_band: override the selector's minimum pin distance
    :param erosion_amount: override how much each chord lightens the field
    :param chunk_size: selection steps per chunk
    :param logger: optional Logger to receive debug/info messages
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    def factory(job_spec: JobSpec) -> ChordSelector:
        return create_selector(
            job_spec.algorithm,
            exclusion_band=exclusion_band,
            erosion_amount=erosion_amount,
            rng=rng,
            logger=logger,
        )

    controller = JobController(source, chunk_size=chunk_size, selector_factory=factory, logger=logger)
    job = controller.enqueue(spec)
    controller.run()
    return job
