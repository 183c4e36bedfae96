# threadart_app/views.py
#
# Views for the threadart web app:
# - Accepts an image plus one job spec (single mode) or the kit presets (batch mode)
# - Runs the job controller in a worker thread, one chunk at a time
# - Streams logs and per-chunk progress to the frontend using Server-Sent Events (SSE)
# - Serves each finished job as a plain-text pin sequence or a rendered preview
#

import time
import json
import threading
import uuid
from io import BytesIO

from django.conf import settings
from django.http import StreamingHttpResponse, JsonResponse, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST
from PIL import UnidentifiedImageError

from .export import sequence_to_text
from .layout import parse_frame_shape
from .planner import BATCH_VARIANTS, ConfigurationError, JobController, JobSpec
from .preprocessing import DEFAULT_FIELD_SIZE, load_image_to_field
from .renderer import render_frame, render_sequence
from .sse_logging import create_sse_logger, release_sse_logger

# === Per-run registries ===
RUN_CONTROLLERS: dict[str, JobController] = {}
RUN_FINISHED: dict[str, threading.Event] = {}
RUN_LOGS: dict[str, list[str]] = {}
RUN_EVENTS: dict[str, list[dict]] = {}

POLL_INTERVAL = 0.2
# Seconds a finished run stays downloadable before its registries are dropped.
DEFAULT_RUN_RETENTION = 600


def _bad_request(message: str) -> JsonResponse:
    return JsonResponse({"error": message}, status=400)


def _evict_run(run_id: str) -> None:
    """Forget a finished run: its controller, events, logs and SSE logger."""
    release_sse_logger(run_id)
    RUN_CONTROLLERS.pop(run_id, None)
    RUN_FINISHED.pop(run_id, None)
    RUN_LOGS.pop(run_id, None)
    RUN_EVENTS.pop(run_id, None)


def _job_specs(request, frame_shape) -> list[JobSpec]:
    if request.POST.get('batch'):
        return [
            JobSpec(v.pin_count, v.chord_budget, frame_shape=frame_shape, label=v.label)
            for v in BATCH_VARIANTS
        ]
    pin_count = int(request.POST.get('pin_count', 200))
    chord_budget = int(request.POST.get('chord_budget', 3000))
    return [JobSpec(pin_count, chord_budget, frame_shape=frame_shape)]


@csrf_exempt
@require_POST
def create_run(request):
    upload = request.FILES.get('image')
    if upload is None:
        return _bad_request("No image uploaded")

    try:
        frame_shape = parse_frame_shape(request.POST.get('frame_shape', 'circle'))
        specs = _job_specs(request, frame_shape)
    except ValueError as exc:
        return _bad_request(str(exc))

    run_id = str(uuid.uuid4())
    RUN_LOGS[run_id] = []
    RUN_EVENTS[run_id] = []
    logger = create_sse_logger(run_id, RUN_LOGS)

    field_size = getattr(settings, 'THREADART_FIELD_SIZE', DEFAULT_FIELD_SIZE)
    try:
        source = load_image_to_field(BytesIO(upload.read()), size=field_size, shape=frame_shape, logger=logger)
    except (UnidentifiedImageError, ValueError) as exc:
        logger.error(f"Could not read image {upload.name}: {exc}")
        _evict_run(run_id)
        return _bad_request(f"Could not read image: {exc}")

    events = RUN_EVENTS[run_id]

    def on_progress(job, result):
        events.append({
            "type": "progress",
            "job": job.id,
            "chords_drawn": result.chords_drawn,
            "chord_budget": result.chord_budget,
        })

    def on_complete(job):
        events.append({"type": "done", "job": job.id, "sequence_length": len(job.sequence)})

    controller = JobController(
        source,
        chunk_size=getattr(settings, 'THREADART_CHUNK_SIZE', 100),
        on_progress=on_progress,
        on_complete=on_complete,
        logger=logger,
    )
    try:
        jobs = [controller.enqueue(spec) for spec in specs]
    except ConfigurationError as exc:
        _evict_run(run_id)
        return _bad_request(str(exc))

    retention = getattr(settings, 'THREADART_RUN_RETENTION', DEFAULT_RUN_RETENTION)
    finished = threading.Event()
    RUN_CONTROLLERS[run_id] = controller
    RUN_FINISHED[run_id] = finished

    def worker():
        try:
            logger.info(f"=== Generating {len(jobs)} job(s) on {source!r} ===")
            controller.run()
            logger.info("Run cancelled." if controller.cancelled else "Run complete.")
        except Exception:
            logger.exception("Run failed")
            events.append({"type": "failed"})
            raise
        finally:
            events.append({"type": "finished", "cancelled": controller.cancelled})
            finished.set()
            timer = threading.Timer(retention, _evict_run, args=(run_id,))
            timer.daemon = True
            timer.start()

    threading.Thread(target=worker, daemon=True).start()
    return JsonResponse({"run_id": run_id, "jobs": [job.describe() for job in jobs]})


@require_GET
def run_status(request, run_id):
    controller = RUN_CONTROLLERS.get(str(run_id))
    finished = RUN_FINISHED.get(str(run_id))
    if controller is None or finished is None:
        return HttpResponse(status=404)
    return JsonResponse({
        "run_id": str(run_id),
        "finished": finished.is_set(),
        "cancelled": controller.cancelled,
        "jobs": [job.describe() for job in controller.jobs],
    })


def _drain(run_id: str, items: list, render):
    def event_stream():
        idx = 0
        finished = RUN_FINISHED.get(run_id)
        while True:
            done = finished is None or finished.is_set()
            while idx < len(items):
                yield f"data: {render(items[idx])}\n\n".encode()
                idx += 1
            if done:
                break
            time.sleep(POLL_INTERVAL)
    return event_stream()


@require_GET
def stream_logs(request):
    run_id = request.GET.get('run_id')
    if run_id not in RUN_LOGS:
        return HttpResponse(status=404)
    return StreamingHttpResponse(_drain(run_id, RUN_LOGS[run_id], str), content_type='text/event-stream')


@require_GET
def stream_progress(request):
    run_id = request.GET.get('run_id')
    if run_id not in RUN_EVENTS:
        return HttpResponse(status=404)
    return StreamingHttpResponse(
        _drain(run_id, RUN_EVENTS[run_id], json.dumps),
        content_type='text/event-stream',
    )


@csrf_exempt
@require_POST
def stop_run(request, run_id):
    controller = RUN_CONTROLLERS.get(str(run_id))
    if controller:
        controller.cancel_all()
        return HttpResponse(status=204)
    return HttpResponse(status=404)


def _started_job(run_id, job_id):
    controller = RUN_CONTROLLERS.get(str(run_id))
    if controller is None:
        return None, None
    job = controller.get(job_id)
    if job is None or not job.sequence:
        return controller, None
    return controller, job


@require_GET
def download_sequence(request, run_id, job_id):
    _, job = _started_job(run_id, job_id)
    if job is None:
        return HttpResponse(status=404)
    response = HttpResponse(sequence_to_text(job.sequence), content_type='text/plain')
    response['Content-Disposition'] = f'attachment; filename="sequence-{job_id}.txt"'
    return response


@require_GET
def preview(request, run_id, job_id):
    controller, job = _started_job(run_id, job_id)
    if job is None:
        return HttpResponse(status=404)
    field_size = (controller.source.width, controller.source.height)
    img = render_sequence(job.pins, list(job.sequence), field_size)
    render_frame(img, job.pins, field_size, job.spec.frame_shape)
    buf = BytesIO()
    img.save(buf, format='PNG')
    return HttpResponse(buf.getvalue(), content_type='image/png')
