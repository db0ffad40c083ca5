from fastapi.responses import HTMLResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape
import pathlib

from .schemas import Comic

def comic_date(comic: Comic) -> str:
    # upstream dates are unvalidated; 0 means the field was missing
    if not comic.year:
        return ""
    return f"{comic.year:04d}-{comic.month:02d}-{comic.day:02d}"

env = Environment(
    loader=FileSystemLoader(str(pathlib.Path(__file__).parent / "templates")),
    autoescape=select_autoescape()
)
env.filters["comic_date"] = comic_date

def render(name: str, ctx: dict, status_code: int = 200) -> HTMLResponse:
    tmpl = env.get_template(name)
    return HTMLResponse(tmpl.render(**ctx), status_code=status_code)
