"""Catalog web UI and JSON API."""

import logging

from fastapi import APIRouter, Depends, Form, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field

from plugin_catalog.core.config import constants
from plugin_catalog.core.errors import ErrorCode, ErrorResponse, ErrorSeverity, classify_catalog_error
from plugin_catalog.domain.plugin import PluginEntry, ResourceState
from plugin_catalog.services.query_state_service import QueryState, encode_query
from plugin_catalog.services.session_service import CatalogSession


logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog"])

templates = Jinja2Templates(directory=str(constants.TEMPLATES_DIR))


class QueryUpdate(BaseModel):
    """Request body for replacing the live query."""

    query: str = Field(..., description="New search query, in extended syntax")


class QueryStatus(BaseModel):
    """Live query and its shareable link."""

    query: str
    state: QueryState
    shareable_url: str = Field(..., description="Link restoring the live query")
    location: str = Field(..., description="Location as last written by the debounced store")


class SearchResponse(BaseModel):
    """Search results for the live query."""

    state: ResourceState
    query: str
    results: list[PluginEntry]


class ClipboardRequest(BaseModel):
    """Request body for a clipboard copy."""

    text: str


def get_session(request: Request) -> CatalogSession:
    """Return the session owned by the running application."""
    return request.app.state.session


def _query_status(session: CatalogSession) -> QueryStatus:
    store = session.query_store
    return QueryStatus(
        query=store.query,
        state=store.state,
        shareable_url=store.shareable_url,
        location=store.location.href,
    )


@router.get("/")
async def get_index(
    request: Request,
    q: str | None = None,
    fragment: str | None = None,
    session: CatalogSession = Depends(get_session),
) -> Response:
    """Render the search page for the current catalog state.

    ``fragment`` carries a bookmarked location fragment verbatim and takes
    precedence over a plain ``q`` from the search form.
    """
    if fragment is not None:
        session.query_store.restore(fragment)
    elif q is not None:
        session.query_store.set_query(q)

    catalog = session.catalog
    return templates.TemplateResponse(
        request,
        name="index.html",
        context={
            "title": constants.PAGE_TITLE,
            "state": catalog.state.value,
            "error_message": constants.CATALOG_LOAD_FAILED_MESSAGE,
            "query": session.query_store.query,
            "debounce_ms": round(session.query_store.debounce_seconds * 1000),
            "results": session.results() if catalog.state == ResourceState.READY else [],
        },
    )


@router.get("/api/plugins")
async def search_plugins(q: str | None = None, session: CatalogSession = Depends(get_session)) -> JSONResponse:
    """Search the catalog with the live query, optionally replacing it first."""
    if q is not None:
        session.query_store.set_query(q)

    catalog = session.catalog
    if catalog.state == ResourceState.PENDING:
        pending = ErrorResponse(
            code=ErrorCode.ERR_CATALOG_PENDING,
            message="Loading...",
            severity=ErrorSeverity.LOW,
        )
        return JSONResponse(content=pending.model_dump(mode="json"), status_code=constants.HTTP_SERVICE_UNAVAILABLE)

    if catalog.state == ResourceState.ERRORED and catalog.error is not None:
        failure = classify_catalog_error(catalog.error)
        return JSONResponse(content=failure.model_dump(mode="json"), status_code=constants.HTTP_BAD_GATEWAY)

    response = SearchResponse(state=catalog.state, query=session.query_store.query, results=list(session.results()))
    return JSONResponse(content=response.model_dump(mode="json"), status_code=constants.HTTP_OK)


@router.get("/api/query")
async def get_query(session: CatalogSession = Depends(get_session)) -> QueryStatus:
    """Return the live query and its shareable link."""
    return _query_status(session)


@router.put("/api/query")
async def put_query(update: QueryUpdate, session: CatalogSession = Depends(get_session)) -> QueryStatus:
    """Replace the live query; the shareable location follows after the debounce interval."""
    session.query_store.set_query(update.query)
    return _query_status(session)


@router.post("/api/clipboard", status_code=constants.HTTP_NO_CONTENT)
async def copy_to_clipboard(request: ClipboardRequest, session: CatalogSession = Depends(get_session)) -> Response:
    """Copy text to the clipboard; failures are never reported to the caller."""
    await session.clipboard.copy(request.text)
    return Response(status_code=constants.HTTP_NO_CONTENT)


@router.post("/copy")
async def post_copy_link(
    *,
    url: str = Form(...),
    session: CatalogSession = Depends(get_session),
) -> Response:
    """Copy a plugin link from the HTML page and return to the same search."""
    await session.clipboard.copy(url)
    return RedirectResponse(
        url=f"/?q={encode_query(session.query_store.query)}", status_code=status.HTTP_303_SEE_OTHER
    )


@router.post("/api/catalog/reload")
async def reload_catalog(session: CatalogSession = Depends(get_session)) -> JSONResponse:
    """Fetch the catalog again."""
    await session.catalog.reload()
    logger.info("catalog_reload_requested", extra={"state": session.catalog.state.value})
    return JSONResponse(content={"state": session.catalog.state.value}, status_code=constants.HTTP_OK)
