"""Jinja2 environment shared by the page routes."""

from pathlib import Path

from fastapi.templating import Jinja2Templates

from notekeeper import __version__
from notekeeper.services.notes_view import parse_date

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["parse_date"] = parse_date
templates.env.globals["app_version"] = __version__
