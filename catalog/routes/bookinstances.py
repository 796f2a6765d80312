"""
Book instance (physical copy) pages.
"""

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from catalog.database import CatalogDatabase
from catalog.dependencies import get_database
from catalog.errors import NotFoundError
from catalog.models import BookInstanceStatus
from catalog.parallel import parallel
from catalog.rendering import redirect, render
from catalog.validation import validate_bookinstance_form

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/catalog", tags=["Book Instances"])

LIST_URL = "/catalog/bookinstances"


def _form_context(title, book_list, bookinstance=None, errors=None):
    return {
        "title": title,
        "book_list": book_list,
        "bookinstance": bookinstance,
        "selected_book": bookinstance.book if bookinstance is not None else None,
        "selected_status": bookinstance.status if bookinstance is not None else None,
        "statuses": [s.value for s in BookInstanceStatus],
        "errors": errors or [],
    }


@router.get("/bookinstances", response_class=HTMLResponse)
async def bookinstance_list(request: Request, db: CatalogDatabase = Depends(get_database)):
    """Display list of all book instances."""
    bookinstances = await db.bookinstances.find_all_populated()
    return render(request, "bookinstance_list", {
        "title": "Book Instance List",
        "bookinstance_list": bookinstances,
    })


@router.get("/bookinstance/create", response_class=HTMLResponse)
async def bookinstance_create_get(request: Request, db: CatalogDatabase = Depends(get_database)):
    """Display the create form."""
    books = await db.books.list_titles()
    return render(request, "bookinstance_form", _form_context("Create BookInstance", books))


@router.post("/bookinstance/create", response_class=HTMLResponse)
async def bookinstance_create_post(request: Request, db: CatalogDatabase = Depends(get_database)):
    """Handle the create form submission."""
    result = validate_bookinstance_form(await request.form())

    if not result.is_valid:
        books = await db.books.list_titles()
        return render(request, "bookinstance_form", _form_context(
            "Create BookInstance", books, result.form, result.errors
        ))

    bookinstance = await db.bookinstances.insert(result.form.to_record())
    logger.info("Book instance created", bookinstance_id=bookinstance.id, book_id=bookinstance.book)
    return redirect(bookinstance.url, after_post=True)


@router.get("/bookinstance/{bookinstance_id}/delete", response_class=HTMLResponse)
async def bookinstance_delete_get(
    request: Request,
    bookinstance_id: str,
    db: CatalogDatabase = Depends(get_database)
):
    """Display the delete confirmation page."""
    bookinstance = await db.bookinstances.find_by_id_populated(bookinstance_id)
    if bookinstance is None:
        return redirect(LIST_URL)
    return render(request, "bookinstance_delete", {
        "title": "Delete Book Instance",
        "bookinstance": bookinstance,
    })


@router.post("/bookinstance/{bookinstance_id}/delete", response_class=HTMLResponse)
async def bookinstance_delete_post(
    request: Request,
    bookinstance_id: str,
    db: CatalogDatabase = Depends(get_database)
):
    """Handle the delete confirmation."""
    form = await request.form()
    target_id = form.get("bookinstanceid") or bookinstance_id

    bookinstance = await db.bookinstances.find_by_id(target_id)
    if bookinstance is None:
        logger.warning("Book instance to delete not found", bookinstance_id=target_id)
        return redirect(LIST_URL, after_post=True)

    await db.bookinstances.delete_by_id(bookinstance.id)
    logger.info("Book instance deleted", bookinstance_id=bookinstance.id)
    return redirect(LIST_URL, after_post=True)


@router.get("/bookinstance/{bookinstance_id}/update", response_class=HTMLResponse)
async def bookinstance_update_get(
    request: Request,
    bookinstance_id: str,
    db: CatalogDatabase = Depends(get_database)
):
    """Display the update form pre-populated with the current values."""
    results = await parallel({
        "bookinstance": db.bookinstances.find_by_id(bookinstance_id),
        "book_list": db.books.list_titles(),
    })
    if results["bookinstance"] is None:
        return redirect(LIST_URL)

    return render(request, "bookinstance_form", _form_context(
        "Update Book Instance", results["book_list"], results["bookinstance"]
    ))


@router.post("/bookinstance/{bookinstance_id}/update", response_class=HTMLResponse)
async def bookinstance_update_post(
    request: Request,
    bookinstance_id: str,
    db: CatalogDatabase = Depends(get_database)
):
    """Handle the update form submission."""
    result = validate_bookinstance_form(await request.form())

    if not result.is_valid:
        books = await db.books.list_titles()
        return render(request, "bookinstance_form", _form_context(
            "Update Book Instance", books, result.form, result.errors
        ))

    updated = await db.bookinstances.update_by_id(
        bookinstance_id, result.form.to_record(bookinstance_id)
    )
    if updated is None:
        raise NotFoundError("Book copy not found")

    logger.info("Book instance updated", bookinstance_id=updated.id)
    return redirect(updated.url, after_post=True)


@router.get("/bookinstance/{bookinstance_id}", response_class=HTMLResponse)
async def bookinstance_detail(
    request: Request,
    bookinstance_id: str,
    db: CatalogDatabase = Depends(get_database)
):
    """Display detail page for a specific book instance."""
    bookinstance = await db.bookinstances.find_by_id_populated(bookinstance_id)
    if bookinstance is None or bookinstance.book is None:
        raise NotFoundError("Book copy not found")

    return render(request, "bookinstance_detail", {
        "title": f"Copy: {bookinstance.book.title}",
        "bookinstance": bookinstance,
    })
