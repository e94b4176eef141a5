# Overview: Flask API routes for the status taxonomy lookup.

from flask import Blueprint

from ..decorators import require_auth
from ..responses import success
from ..services.status_service import list_status_categories

statuses_bp = Blueprint("statuses", __name__, url_prefix="/api/statuses")


@statuses_bp.get("/")
@require_auth
def list_statuses():
    return success([c.to_dict() for c in list_status_categories()], "Statuses retrieved")
