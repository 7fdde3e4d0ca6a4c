"""ASGI entrypoint for the delivery tracker API."""

from delivery_tracker.api.app import create_app
from delivery_tracker.containers import build_container

app = create_app(build_container())
