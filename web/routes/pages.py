"""
Page routes for serving HTML templates.
"""
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from web.config import TEMPLATES_DIR

router = APIRouter(tags=["pages"])
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


@router.get("/", response_class=HTMLResponse)
async def dashboard(request: Request):
    """Serve the dashboard shell. Data is loaded client-side from the API."""
    config = request.app.state.config
    session = request.app.state.sessions.verify(request.cookies.get(config.auth.cookie_name))

    return templates.TemplateResponse(request, "dashboard.html", {
        "version": config.version,
        "user": session,
        "period": config.stats.window_days,
    })
