"""ASGI entrypoint for the nutrition companion bot."""

from nutrition_companion.api.app import create_app
from nutrition_companion.containers import build_container

app = create_app(build_container())
