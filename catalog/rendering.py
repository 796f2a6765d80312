"""
Template rendering and redirect helpers shared by the route handlers.
"""

from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from .config import config

templates = Jinja2Templates(directory=config.templates_dir)


def render(
    request: Request,
    view: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = status.HTTP_200_OK,
):
    """Render ``<view>.html`` with the given context."""
    return templates.TemplateResponse(
        request=request,
        name=f"{view}.html",
        context=context or {},
        status_code=status_code,
    )


def redirect(url: str, after_post: bool = False) -> RedirectResponse:
    """
    Redirect the client to ``url``.

    Redirects answering a form submission use 303 so the browser follows
    them with a GET.
    """
    status_code = status.HTTP_303_SEE_OTHER if after_post else status.HTTP_302_FOUND
    return RedirectResponse(url=url, status_code=status_code)
