"""
ASGI entry point for the session coordinator.

Used by uvicorn / gunicorn: `uvicorn server.asgi:app`.
Values from a local .env file never override the real environment.
"""

from dotenv import load_dotenv

load_dotenv(override=False)

from server.app import create_app  # pylint: disable=wrong-import-position

app = create_app()
