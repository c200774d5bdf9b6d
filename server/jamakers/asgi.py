"""
ASGI entry point: ``uvicorn jamakers.asgi:app``.
"""

from jamakers.app import create_app

app = create_app()
