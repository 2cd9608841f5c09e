from flask import Blueprint

bp = Blueprint("admin", __name__)

from app.routes.admin import routes  # noqa: F401, E402 - registers the routes
