# threadart_app/tests/test_planner.py

import logging
import random

import numpy as np
import pytest

from threadart_app.chord_selectors.greedy import GreedySelector
from threadart_app.planner import (
    BATCH_VARIANTS,
    ConfigurationError,
    JobController,
    JobSpec,
    JobStatus,
    generate_sequence,
)
from threadart_app.preprocessing import SourceField


@pytest.fixture
def source():
    rng = np.random.default_rng(11)
    return SourceField(rng.integers(0, 256, size=(80, 80), dtype=np.uint8))


def test_white_field_gives_first_candidate_every_time():
    """
    On a pure white 500x500 field every chord scores 0, so each pick is
    the lowest eligible pin. 8 pins need a band of at most 4 to leave any
    chord at all; with 3 the thread bounces between pins 1 and 4.
    """
    white = SourceField(np.zeros((500, 500), dtype=np.uint8))
    spec = JobSpec(pin_count=8, chord_budget=5)

    job = generate_sequence(white, spec, exclusion_band=3)

    assert job.status is JobStatus.DONE
    assert job.sequence == [1, 4, 1, 4, 1, 4]
    assert generate_sequence(white, spec, exclusion_band=3).sequence == job.sequence


def test_white_field_with_default_band_is_rejected_up_front():
    white = SourceField(np.zeros((500, 500), dtype=np.uint8))
    controller = JobController(white)
    with pytest.raises(ConfigurationError, match="Permanent stall"):
        controller.enqueue(JobSpec(pin_count=8, chord_budget=5))
    assert controller.jobs == []
    # no band given, so only the basic checks apply
    JobSpec(pin_count=8, chord_budget=5).validate(500, 500)


def test_single_job_sequence_length_and_first_pin(source):
    job = generate_sequence(source, JobSpec(pin_count=36, chord_budget=50, frame_shape="square"))

    assert len(job.sequence) == 51
    assert job.sequence[0] == 1
    assert len(job.pins) == 36
    assert job.progress == 1.0


def test_same_config_gives_same_sequence(source):
    spec = JobSpec(pin_count=30, chord_budget=40)
    a = generate_sequence(source, spec, rng=random.Random(5))
    b = generate_sequence(source, spec, rng=random.Random(5), chunk_size=3)
    assert a.sequence == b.sequence


def test_batch_jobs_do_not_see_each_others_erasures(source):
    spec = JobSpec(pin_count=30, chord_budget=60)
    standalone = generate_sequence(source, spec)

    controller = JobController(source, chunk_size=17)
    job_a = controller.enqueue(spec)
    job_b = controller.enqueue(spec)
    controller.run()

    assert job_a.status is JobStatus.DONE
    assert job_b.status is JobStatus.DONE
    assert job_a.sequence == standalone.sequence
    assert job_b.sequence == standalone.sequence
    assert job_a.field is not job_b.field
    assert np.array_equal(job_a.field, job_b.field)


def test_source_field_is_never_written(source):
    before = source.data.copy()
    controller = JobController(source)
    controller.enqueue(JobSpec(pin_count=40, chord_budget=80))
    controller.enqueue(JobSpec(pin_count=20, chord_budget=30, frame_shape="square"))
    controller.run()

    assert np.array_equal(source.data, before)
    assert not source.data.flags.writeable


def test_jobs_run_one_at_a_time_in_fifo_order(source):
    seen = []
    finished = []

    def on_progress(job, result):
        seen.append(job.id)

    def on_complete(job):
        finished.append(job.id)

    controller = JobController(source, chunk_size=10, on_progress=on_progress, on_complete=on_complete)
    specs = [
        JobSpec(pin_count=20, chord_budget=25),
        JobSpec(pin_count=24, chord_budget=0),
        JobSpec(pin_count=40, chord_budget=15, frame_shape="square"),
    ]
    jobs = [controller.enqueue(s) for s in specs]

    assert all(job.status is JobStatus.PENDING for job in jobs)
    assert jobs[0].sequence == []

    controller.run()

    # no interleaving: each job's chunks form one contiguous block
    assert seen == [0, 0, 0, 1, 2, 2]
    assert finished == [0, 1, 2]
    assert [len(job.sequence) for job in jobs] == [26, 1, 16]
    assert [len(job.pins) for job in jobs] == [20, 24, 40]


def test_progress_reports_count_up_to_budget(source):
    reports = []
    controller = JobController(
        source,
        chunk_size=7,
        on_progress=lambda job, result: reports.append((result.chords_drawn, result.chord_budget, result.done)),
    )
    controller.enqueue(JobSpec(pin_count=30, chord_budget=20))
    controller.run()

    assert reports == [(7, 20, False), (14, 20, False), (20, 20, True)]


def test_step_drives_the_run_cooperatively(source):
    controller = JobController(source, chunk_size=5)
    job = controller.enqueue(JobSpec(pin_count=30, chord_budget=12))

    assert controller.step() is True
    assert job.status is JobStatus.PROCESSING
    assert controller.active is job
    assert job.chords_drawn == 5
    assert controller.step() is True
    assert controller.step() is False
    assert job.status is JobStatus.DONE
    assert controller.active is None
    assert controller.step() is False


def test_cancel_all_keeps_partial_sequence_and_stops_the_queue(source):
    controller = JobController(source, chunk_size=5)

    def cancel_after_first_chunk(job, result):
        controller.cancel_all()

    controller.on_progress = cancel_after_first_chunk
    first = controller.enqueue(JobSpec(pin_count=30, chord_budget=20))
    second = controller.enqueue(JobSpec(pin_count=30, chord_budget=20))

    controller.run()

    assert controller.cancelled
    assert first.status is JobStatus.CANCELLED
    assert first.sequence[:1] == [1]
    assert len(first.sequence) == 6
    assert second.status is JobStatus.CANCELLED
    assert second.sequence == []
    assert controller.step() is False
    assert len(first.sequence) == 6


def test_finished_job_drops_its_line_cache(source):
    controller = JobController(source, chunk_size=7)
    job = controller.enqueue(JobSpec(pin_count=30, chord_budget=20))
    cache_sizes = []
    controller.on_progress = lambda j, result: cache_sizes.append(len(j.state.line_cache))

    controller.run()

    assert cache_sizes[0] > 0
    assert job.state.line_cache == {}
    assert len(job.sequence) == 21
    assert len(job.pins) == 30
    assert job.field.shape == (80, 80)


def test_cancel_all_drops_the_active_line_cache(source):
    controller = JobController(source, chunk_size=5)
    job = controller.enqueue(JobSpec(pin_count=30, chord_budget=40))

    controller.step()
    assert job.state.line_cache
    controller.cancel_all()

    assert job.state.line_cache == {}
    assert len(job.sequence) == 6
    assert controller.step() is False


def test_cancel_from_progress_callback_drops_the_line_cache(source):
    controller = JobController(source, chunk_size=5)
    controller.on_progress = lambda job, result: controller.cancel_all()
    job = controller.enqueue(JobSpec(pin_count=30, chord_budget=40))

    controller.run()

    assert job.status is JobStatus.CANCELLED
    assert job.state.line_cache == {}


@pytest.mark.parametrize(
    "spec",
    [
        JobSpec(pin_count=0, chord_budget=10),
        JobSpec(pin_count=-5, chord_budget=10),
        JobSpec(pin_count=50, chord_budget=-1),
        JobSpec(pin_count=50, chord_budget=10, frame_shape="hexagon"),
        JobSpec(pin_count=50, chord_budget=10, algorithm="nope"),
        JobSpec(pin_count=9, chord_budget=10),
    ],
)
def test_invalid_specs_never_enter_the_queue(source, spec):
    controller = JobController(source)
    with pytest.raises(ConfigurationError):
        controller.enqueue(spec)
    assert controller.jobs == []


def test_invalid_field_dimensions_are_configuration_errors():
    with pytest.raises(ConfigurationError):
        JobSpec(pin_count=50, chord_budget=10).validate(0, 100)
    with pytest.raises(ConfigurationError):
        JobSpec(pin_count=50, chord_budget=10, frame_shape="square").validate(2, 100)


def test_rejection_is_logged(source, caplog):
    controller = JobController(source, logger=logging.getLogger("threadart_app.test"))
    with caplog.at_level(logging.ERROR, logger="threadart_app.test"):
        with pytest.raises(ConfigurationError):
            controller.enqueue(JobSpec(pin_count=0, chord_budget=1))
    assert "Rejected job" in caplog.text


def test_custom_selector_factory(source):
    controller = JobController(source, selector_factory=lambda spec: GreedySelector(exclusion_band=2))
    job = controller.enqueue(JobSpec(pin_count=6, chord_budget=10))
    controller.run()
    assert len(job.sequence) == 11


def test_batch_variants():
    assert [v.chord_budget for v in BATCH_VARIANTS] == [2500, 3000, 3500]
    assert all(v.pin_count == 200 for v in BATCH_VARIANTS)
