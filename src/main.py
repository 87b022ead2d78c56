"""ASGI entry point for the resetguard service.

Run with ``uvicorn src.main:app``. Logging is configured before the app is
built; the lifespan manager connects the key-value store and the database
and builds the membership filter on startup.
"""

from src.core.application import create_application
from src.core.initialization import initialize_application
from src.core.lifecycle import create_lifespan_manager

initialize_application()

app = create_application(lifespan=create_lifespan_manager())
