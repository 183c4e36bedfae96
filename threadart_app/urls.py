# threadart_app/urls.py

from django.urls import path
from .views import (
    create_run, run_status, stream_logs, stream_progress, stop_run,
    download_sequence, preview,
)

urlpatterns = [
    path('runs/', create_run, name='create_run'),
    path('runs/<uuid:run_id>/', run_status, name='run_status'),
    path('runs/<uuid:run_id>/jobs/<int:job_id>/sequence.txt', download_sequence, name='download_sequence'),
    path('runs/<uuid:run_id>/jobs/<int:job_id>/preview.png', preview, name='preview'),
    path('stream-logs/', stream_logs, name='stream_logs'),
    path('stream-progress/', stream_progress, name='stream_progress'),
    path('stop/<uuid:run_id>/', stop_run, name='stop_run'),
]
