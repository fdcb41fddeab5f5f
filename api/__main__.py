"""
Entrypoint for running the API in development.
In production run create_app() behind a WSGI server (gunicorn/uwsgi).
"""
import logging
import os
from . import create_app

# Before create_app() so startup warnings (short JWT_SECRET etc.) are emitted
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_RUN_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_RUN_PORT", "8000"))
    debug = bool(os.getenv("FLASK_DEBUG", str(app.config.get("DEBUG", True))).lower() in ("1", "true", "yes"))
    app.run(host=host, port=port, debug=debug)
