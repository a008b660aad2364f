from __future__ import annotations

import html
import logging
import os
from urllib.parse import quote, urlencode

from fastapi import FastAPI, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, Response
from fastapi.staticfiles import StaticFiles

from shelf_server import __version__
from shelf_server.config import Settings, load_settings
from shelf_server.errors import NotFoundError, OutsideRootError
from shelf_server.services.file_catalog import format_modified, format_size
from shelf_server.services.listing import FileDeliveryService, Listing, ListingService
from shelf_server.services.sorting import SORT_BY_DATE, SORT_BY_NAME

logger = logging.getLogger("shelf_server")
logger.setLevel(logging.INFO)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s - %(message)s"))
    logger.addHandler(handler)


def _listing_href(path: str, sort_by: str) -> str:
    return "/?" + urlencode({"path": path, "sort_by": sort_by})


def _build_breadcrumbs(listing: Listing) -> list[tuple[str, str]]:
    crumbs = [("Home", _listing_href(listing.root, listing.sort_by))]  # (label, href)
    relative = os.path.relpath(listing.directory, listing.root)
    if relative == os.curdir:
        return crumbs

    running = listing.root
    for part in relative.split(os.sep):
        running = os.path.join(running, part)
        crumbs.append((part, _listing_href(running, listing.sort_by)))
    return crumbs


def _render_rows(listing: Listing) -> str:
    rows = []
    for entry in listing.entries:
        if entry.is_dir:
            href = _listing_href(entry.path, listing.sort_by)
            display_name = f"{entry.name}/"
            kind = "DIR"
        else:
            # Served under the bare book name; some e-reader browsers ignore Content-Disposition.
            href = f"/{quote(entry.name, safe='')}?" + urlencode({"path": entry.path})
            display_name = entry.name
            kind = "FILE"
        rows.append(
            f"<tr><td><a href='{html.escape(href)}'>{html.escape(display_name)}</a></td>"
            f"<td>{format_size(entry.size_bytes)}</td>"
            f"<td>{format_modified(entry.modified_at)}</td>"
            f"<td>{kind}</td></tr>"
        )
    return "".join(rows) or "<tr><td colspan='4'>Directory is empty.</td></tr>"


def _render_sort_links(listing: Listing) -> str:
    links = []
    for mode, label in ((SORT_BY_DATE, "Newest first"), (SORT_BY_NAME, "A-Z")):
        if mode == listing.sort_by:
            links.append(f"<strong>{label}</strong>")
        else:
            links.append(f"<a href='{html.escape(_listing_href(listing.directory, mode))}'>{label}</a>")
    return " | ".join(links)


def render_listing(listing: Listing, address: str | None = None) -> str:
    breadcrumbs_html = " / ".join(
        f"<a href='{html.escape(href)}'>{html.escape(label)}</a>" for label, href in _build_breadcrumbs(listing)
    )
    parent_link_html = ""
    if listing.parent is not None:
        parent_href = _listing_href(listing.parent, listing.sort_by)
        parent_link_html = f"<a href='{html.escape(parent_href)}'>&larr; Up one level</a>"
    address_html = f"<p class='address'>Open http://{html.escape(address)} on your reader</p>" if address else ""

    return f"""
        <!DOCTYPE html>
        <html lang='en'>
        <head>
            <meta charset='utf-8'>
            <meta name='viewport' content='width=device-width, initial-scale=1'>
            <title>Shelf Server</title>
            <style>
                body {{ font-family: Arial, sans-serif; margin: 2rem; }}
                h1 {{ margin-bottom: 0.5rem; }}
                table {{ width: 100%; border-collapse: collapse; margin-top: 1rem; }}
                th, td {{ text-align: left; padding: 0.5rem; border-bottom: 1px solid #ddd; }}
                a {{ color: #0a5ec2; text-decoration: none; }}
                a:hover {{ text-decoration: underline; }}
                .crumbs {{ font-size: 0.9rem; color: #555; }}
                .top-bar {{ display: flex; justify-content: space-between; align-items: center; }}
                .address, .sorting {{ font-size: 0.9rem; color: #333; margin-top: 1rem; }}
            </style>
        </head>
        <body>
            <div class='top-bar'>
                <h1>Shelf Server</h1>
                <div>{parent_link_html}</div>
            </div>
            <div class='crumbs'>{breadcrumbs_html}</div>
            {address_html}
            <div class='sorting'>Sort: {_render_sort_links(listing)}</div>
            <table>
                <thead>
                    <tr><th>Name</th><th>Size</th><th>Modified</th><th>Type</th></tr>
                </thead>
                <tbody>
                    {_render_rows(listing)}
                </tbody>
            </table>
        </body>
        </html>
        """


def create_app(settings: Settings | None = None, address: str | None = None) -> FastAPI:
    """Build the HTTP surface for ``settings``; ``address`` is shown to readers when given."""

    if settings is None:
        settings = load_settings()
    logger.setLevel(settings.log_level)

    listing_service = ListingService(
        settings.root,
        start_dir=settings.start_dir,
        default_sort=settings.sort_by,
        size_deadline=settings.size_deadline,
        canonicalize=settings.canonicalize_paths,
    )
    delivery_service = FileDeliveryService(settings.root, canonicalize=settings.canonicalize_paths)
    root_files = StaticFiles(directory=listing_service.root)

    app = FastAPI(
        title="Shelf Server",
        description="Local network book shelf: browse a directory and download files.",
        version=__version__,
    )
    app.state.settings = settings

    @app.middleware("http")
    async def add_csp_header(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault(
            "Content-Security-Policy",
            "default-src 'self'; style-src 'self' 'unsafe-inline';",
        )
        return response

    @app.get("/", response_class=HTMLResponse)
    async def browse(
        path: str = Query(default="", description="Directory to list; defaults to the start directory"),
        sort_by: str | None = Query(default=None, description="'date' or 'alphabetical'"),
    ):
        try:
            listing = await run_in_threadpool(listing_service.list, path, sort_by)
        except OutsideRootError:
            logger.info("Dropped listing request outside root: %s", path)
            return Response()
        except NotFoundError as exc:
            logger.warning("Listing failed: %s", exc)
            return Response()
        return HTMLResponse(content=render_listing(listing, address))

    @app.get("/{name}")
    async def deliver(
        name: str,
        request: Request,
        path: str = Query(default="", description="Absolute path of the file to send"),
    ):
        try:
            relative = delivery_service.locate(path)
        except OutsideRootError:
            logger.info("Dropped download request outside root: %s", path)
            return Response()
        return await root_files.get_response(relative, request.scope)

    app.mount("/download", root_files, name="download")
    return app


_app: FastAPI | None = None


def __getattr__(name: str):
    # Built on first access so ``uvicorn shelf_server.api.main:app`` reads settings at startup, not import.
    global _app
    if name == "app":
        if _app is None:
            _app = create_app()
        return _app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
