"""Deployment entrypoint.

Platform start commands default to `uvicorn main:app`; the FastAPI
application itself lives in `server.py`.
"""

from server import app  # noqa: F401
