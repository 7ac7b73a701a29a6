from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter(prefix="", tags=["pages"])

WELCOME_HTML = (
    "<h1>Whisky Store</h1>"
    "<p>Browse the collection at <a href='/assets/index.html'>/assets/index.html</a> "
    "or query <a href='/api/whiskies'>/api/whiskies</a>.</p>"
)


@router.get("/", response_class=HTMLResponse)
async def welcome():
    return HTMLResponse(WELCOME_HTML)
