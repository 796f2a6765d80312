"""
Tests for the genre pages.
"""

from bson import ObjectId

from catalog.models import Genre


class TestGenreList:
    """Test cases for the genre list page."""

    def test_genres_sorted_by_name(self, client, fake_db):
        """Test genres are listed in ascending name order."""
        for name in ["Poetry", "Fantasy", "Horror"]:
            fake_db.genres.add(Genre(name=name))

        response = client.get("/catalog/genres")

        assert response.status_code == 200
        assert response.template.name == "genre_list.html"
        assert response.context["title"] == "Genre list"
        assert [g.name for g in response.context["genre_list"]] == ["Fantasy", "Horror", "Poetry"]

    def test_empty_list(self, client, fake_db):
        """Test an empty catalog still renders."""
        response = client.get("/catalog/genres")

        assert response.status_code == 200
        assert "There are no genres." in response.text


class TestGenreDetail:
    """Test cases for the genre detail page."""

    def test_detail_with_books(self, client, fantasy, sample_book):
        """Test the genre is shown with the books using it."""
        response = client.get(fantasy.url)

        assert response.status_code == 200
        assert response.context["genre"].id == fantasy.id
        assert [b.id for b in response.context["genre_books"]] == [sample_book.id]
        assert "The Name of the Wind" in response.text
        assert "/catalog/book/" not in response.text

    def test_missing_genre_is_not_found(self, client, fake_db):
        """Test an unknown id renders the 404 page."""
        response = client.get(f"/catalog/genre/{ObjectId()}")

        assert response.status_code == 404
        assert response.template.name == "error.html"
        assert response.context["message"] == "Genre not found"

    def test_malformed_id_is_not_found(self, client, fake_db):
        """Test a malformed id is a not-found, not a server error."""
        response = client.get("/catalog/genre/not-an-id")

        assert response.status_code == 404


class TestGenreCreate:
    """Test cases for creating genres."""

    def test_create_form(self, client, fake_db):
        """Test the empty create form renders."""
        response = client.get("/catalog/genre/create")

        assert response.status_code == 200
        assert response.template.name == "genre_form.html"
        assert response.context["title"] == "Create Genre"

    def test_create_redirects_to_new_genre(self, client, fake_db):
        """Test a valid submission stores the genre and redirects to it."""
        response = client.post("/catalog/genre/create", data={"name": "  Science Fiction "})

        assert response.status_code == 303
        location = response.headers["location"]
        genre_id = location.rsplit("/", 1)[-1]
        assert location == f"/catalog/genre/{genre_id}"
        assert fake_db.genres.records[genre_id].name == "Science Fiction"

    def test_created_genre_is_retrievable(self, client, fake_db):
        """Test the redirect target of a create shows the created genre."""
        response = client.post("/catalog/genre/create", data={"name": "Mystery"})

        detail = client.get(response.headers["location"])

        assert detail.status_code == 200
        assert detail.context["genre"].name == "Mystery"

    def test_create_is_idempotent_by_name(self, client, fake_db):
        """Test creating the same name twice stores one genre."""
        first = client.post("/catalog/genre/create", data={"name": "Fantasy"})
        second = client.post("/catalog/genre/create", data={"name": "Fantasy"})

        assert len(fake_db.genres.records) == 1
        assert second.status_code == 303
        assert second.headers["location"] == first.headers["location"]

    def test_empty_name_rerenders_form(self, client, fake_db):
        """Test an empty name persists nothing and shows the error."""
        response = client.post("/catalog/genre/create", data={"name": "   "})

        assert response.status_code == 200
        assert response.template.name == "genre_form.html"
        assert [e.msg for e in response.context["errors"]] == ["Genre name required"]
        assert fake_db.genres.records == {}
        assert "Genre name required" in response.text

    def test_name_is_escaped(self, client, fake_db):
        """Test markup in the name is stored escaped."""
        client.post("/catalog/genre/create", data={"name": "<b>Bold</b>"})

        [genre] = fake_db.genres.records.values()
        assert genre.name == "&lt;b&gt;Bold&lt;/b&gt;"


class TestGenreDelete:
    """Test cases for deleting genres."""

    def test_delete_form_lists_blocking_books(self, client, fantasy, sample_book):
        """Test the confirmation page shows the books using the genre."""
        response = client.get(f"{fantasy.url}/delete")

        assert response.status_code == 200
        assert response.template.name == "genre_delete.html"
        assert [b.id for b in response.context["list_books"]] == [sample_book.id]
        assert "The Name of the Wind" in response.text
        assert "/catalog/book/" not in response.text

    def test_delete_form_for_unused_genre(self, client, fantasy):
        """Test the confirmation page offers the delete button."""
        response = client.get(f"{fantasy.url}/delete")

        assert response.status_code == 200
        assert response.context["list_books"] == []
        assert 'name="genreid"' in response.text

    def test_delete_form_missing_genre_redirects(self, client, fake_db):
        """Test a missing genre redirects to the list only."""
        response = client.get(f"/catalog/genre/{ObjectId()}/delete")

        assert response.status_code == 302
        assert response.headers["location"] == "/catalog/genres"

    def test_delete_blocked_while_referenced(self, client, fake_db, fantasy, sample_book):
        """Test deletion is refused while a book references the genre, then allowed."""
        refused = client.post(f"{fantasy.url}/delete", data={"genreid": fantasy.id})

        assert refused.status_code == 200
        assert refused.template.name == "genre_delete.html"
        assert [b.id for b in refused.context["list_books"]] == [sample_book.id]
        assert fantasy.id in fake_db.genres.records

        fake_db.books.records[sample_book.id] = sample_book.model_copy(update={"genre": []})

        allowed = client.post(f"{fantasy.url}/delete", data={"genreid": fantasy.id})

        assert allowed.status_code == 303
        assert allowed.headers["location"] == "/catalog/genres"
        assert fantasy.id not in fake_db.genres.records

    def test_delete_missing_genre_redirects(self, client, fake_db):
        """Test deleting an unknown genre redirects to the list."""
        response = client.post(f"/catalog/genre/{ObjectId()}/delete", data={})

        assert response.status_code == 303
        assert response.headers["location"] == "/catalog/genres"


class TestGenreUpdate:
    """Test cases for updating genres."""

    def test_update_form_prepopulated(self, client, fantasy):
        """Test the update form shows the current name."""
        response = client.get(f"{fantasy.url}/update")

        assert response.status_code == 200
        assert response.context["title"] == "Update Genre"
        assert response.context["genre"].name == "Fantasy"
        assert 'value="Fantasy"' in response.text

    def test_update_form_missing_genre_is_not_found(self, client, fake_db):
        """Test updating an unknown genre renders the 404 page."""
        response = client.get(f"/catalog/genre/{ObjectId()}/update")

        assert response.status_code == 404

    def test_update_preserves_identity(self, client, fake_db, fantasy):
        """Test an update changes the name but keeps the id and URL."""
        response = client.post(f"{fantasy.url}/update", data={"name": "High Fantasy"})

        assert response.status_code == 303
        assert response.headers["location"] == fantasy.url
        assert fake_db.genres.records[fantasy.id].name == "High Fantasy"
        assert len(fake_db.genres.records) == 1

    def test_invalid_update_shows_errors(self, client, fake_db, fantasy):
        """Test an empty name re-renders the form with its error."""
        response = client.post(f"{fantasy.url}/update", data={"name": ""})

        assert response.status_code == 200
        assert response.template.name == "genre_form.html"
        assert [e.param for e in response.context["errors"]] == ["name"]
        assert fake_db.genres.records[fantasy.id].name == "Fantasy"
