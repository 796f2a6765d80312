"""
Genre pages.
"""

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from catalog.database import CatalogDatabase
from catalog.dependencies import get_database
from catalog.errors import NotFoundError
from catalog.parallel import parallel
from catalog.rendering import redirect, render
from catalog.validation import validate_genre_form

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/catalog", tags=["Genres"])

LIST_URL = "/catalog/genres"


@router.get("/genres", response_class=HTMLResponse)
async def genre_list(request: Request, db: CatalogDatabase = Depends(get_database)):
    """Display list of all genres, sorted by name."""
    genres = await db.genres.list_by_name()
    return render(request, "genre_list", {
        "title": "Genre list",
        "genre_list": genres,
    })


@router.get("/genre/create", response_class=HTMLResponse)
async def genre_create_get(request: Request):
    """Display the create form."""
    return render(request, "genre_form", {"title": "Create Genre", "genre": None, "errors": []})


@router.post("/genre/create", response_class=HTMLResponse)
async def genre_create_post(request: Request, db: CatalogDatabase = Depends(get_database)):
    """
    Handle the create form submission.

    A genre whose name already exists is not created again; the client is
    sent to the existing record instead.
    """
    result = validate_genre_form(await request.form())

    if not result.is_valid:
        return render(request, "genre_form", {
            "title": "Create Genre",
            "genre": result.form,
            "errors": result.errors,
        })

    found_genre = await db.genres.find_by_name(result.form.name)
    if found_genre is not None:
        logger.info("Genre already exists", genre_id=found_genre.id, name=found_genre.name)
        return redirect(found_genre.url, after_post=True)

    genre = await db.genres.insert(result.form.to_record())
    logger.info("Genre created", genre_id=genre.id, name=genre.name)
    return redirect(genre.url, after_post=True)


@router.get("/genre/{genre_id}/delete", response_class=HTMLResponse)
async def genre_delete_get(request: Request, genre_id: str, db: CatalogDatabase = Depends(get_database)):
    """Display the delete confirmation page with the books still using the genre."""
    results = await parallel({
        "genre": db.genres.find_by_id(genre_id),
        "book_list": db.books.find_by_genre(genre_id),
    })
    if results["genre"] is None:
        return redirect(LIST_URL)

    return render(request, "genre_delete", {
        "title": "Delete Genre",
        "genre": results["genre"],
        "list_books": results["book_list"],
    })


@router.post("/genre/{genre_id}/delete", response_class=HTMLResponse)
async def genre_delete_post(request: Request, genre_id: str, db: CatalogDatabase = Depends(get_database)):
    """Delete the genre unless books still reference it."""
    form = await request.form()
    target_id = form.get("genreid") or genre_id

    results = await parallel({
        "genre": db.genres.find_by_id(target_id),
        "book_list": db.books.find_by_genre(target_id),
    })

    if results["book_list"]:
        logger.info(
            "Genre delete refused, books still reference it",
            genre_id=target_id,
            book_count=len(results["book_list"])
        )
        return render(request, "genre_delete", {
            "title": "Delete Genre",
            "genre": results["genre"],
            "list_books": results["book_list"],
        })

    if results["genre"] is None:
        logger.warning("Genre to delete not found", genre_id=target_id)
        return redirect(LIST_URL, after_post=True)

    await db.genres.delete_by_id(results["genre"].id)
    logger.info("Genre deleted", genre_id=results["genre"].id)
    return redirect(LIST_URL, after_post=True)


@router.get("/genre/{genre_id}/update", response_class=HTMLResponse)
async def genre_update_get(request: Request, genre_id: str, db: CatalogDatabase = Depends(get_database)):
    """Display the update form pre-populated with the current name."""
    genre = await db.genres.find_by_id(genre_id)
    if genre is None:
        raise NotFoundError("Genre not found")

    return render(request, "genre_form", {"title": "Update Genre", "genre": genre, "errors": []})


@router.post("/genre/{genre_id}/update", response_class=HTMLResponse)
async def genre_update_post(request: Request, genre_id: str, db: CatalogDatabase = Depends(get_database)):
    """Handle the update form submission."""
    result = validate_genre_form(await request.form())

    if not result.is_valid:
        return render(request, "genre_form", {
            "title": "Update Genre",
            "genre": result.form,
            "errors": result.errors,
        })

    updated = await db.genres.update_by_id(genre_id, result.form.to_record(genre_id))
    if updated is None:
        raise NotFoundError("Genre not found")

    logger.info("Genre updated", genre_id=updated.id, name=updated.name)
    return redirect(updated.url, after_post=True)


@router.get("/genre/{genre_id}", response_class=HTMLResponse)
async def genre_detail(request: Request, genre_id: str, db: CatalogDatabase = Depends(get_database)):
    """Display detail page for a specific genre with its books."""
    results = await parallel({
        "genre": db.genres.find_by_id(genre_id),
        "genre_books": db.books.find_by_genre(genre_id),
    })
    if results["genre"] is None:
        raise NotFoundError("Genre not found")

    return render(request, "genre_detail", {
        "title": "Genre Detail",
        "genre": results["genre"],
        "genre_books": results["genre_books"],
    })
