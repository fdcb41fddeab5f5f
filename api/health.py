from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Liveness plus a database round-trip
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database are up
      503:
        description: Database unreachable
    """
    storage = current_app.extensions["storage"]
    try:
        storage.get_session().execute(text("SELECT 1"))
    except SQLAlchemyError:
        storage.rollback()
        return {"status": "degraded", "database": "unreachable"}, 503
    return {"status": "ok", "database": "ok"}, 200
