"""
Form validation and sanitization.

Each ``validate_*_form`` function takes the raw submitted fields and returns a
ValidationResult holding the sanitized form (for re-display) and the list of
field errors. Handlers only persist when the result is valid.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from bson import ObjectId
from markupsafe import escape
from pydantic import BaseModel, Field, ValidationError, validator

from .models import BookInstance, BookInstanceStatus, Genre

FormT = TypeVar("FormT", bound=BaseModel)


class FieldError(BaseModel):
    """A single field-level validation message."""
    param: str = Field(..., description="Form field name")
    msg: str = Field(..., description="Message shown to the user")
    value: Optional[str] = Field(None, description="Submitted value")


class GenreForm(BaseModel):
    """Sanitized genre form fields."""
    name: str = ""

    @validator('name')
    def validate_name(cls, v):
        """Ensure a genre name was given."""
        if not v:
            raise ValueError('Genre name required')
        return v

    def to_record(self, record_id: Optional[str] = None) -> Genre:
        return Genre(id=record_id, name=self.name)


class BookInstanceForm(BaseModel):
    """Sanitized book instance form fields, kept as submitted strings."""
    book: str = ""
    imprint: str = ""
    status: str = ""
    due_back: str = ""

    @validator('book')
    def validate_book(cls, v):
        """Ensure the copy references a book id."""
        if not v or not ObjectId.is_valid(v):
            raise ValueError('Book must be specified')
        return v

    @validator('imprint')
    def validate_imprint(cls, v):
        if not v:
            raise ValueError('Imprint must be specified')
        return v

    @validator('status')
    def validate_status(cls, v):
        """Ensure status is one of the known values; empty means the default."""
        if v and v not in {s.value for s in BookInstanceStatus}:
            raise ValueError('Invalid status')
        return v

    @validator('due_back')
    def validate_due_back(cls, v):
        """Ensure the due date is ISO-8601 when given."""
        try:
            parse_iso_date(v)
        except ValueError:
            raise ValueError('Invalid date')
        return v

    @property
    def due_back_yyyy_mm_dd(self) -> str:
        return self.due_back

    def to_record(self, record_id: Optional[str] = None) -> BookInstance:
        return BookInstance(
            id=record_id,
            book=self.book,
            imprint=self.imprint,
            status=self.status or BookInstanceStatus.MAINTENANCE,
            due_back=parse_iso_date(self.due_back),
        )


class ValidationResult(BaseModel):
    """Outcome of validating one form submission."""
    form: Any
    errors: List[FieldError] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def sanitize(value: Optional[str]) -> str:
    """Trim a submitted string and escape HTML markup in it."""
    if value is None:
        return ""
    return str(escape(str(value).strip()))


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an ISO-8601 date or datetime string to a calendar date.

    Returns None for empty values.

    Raises:
        ValueError: If the value is not ISO-8601
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return datetime.fromisoformat(value.replace('Z', '+00:00')).date()


def _field_errors(error: ValidationError, values: Mapping[str, str]) -> List[FieldError]:
    """Turn pydantic validation errors into per-field messages."""
    errors = []
    for err in error.errors():
        param = str(err["loc"][0])
        ctx = err.get("ctx") or {}
        msg = str(ctx["error"]) if "error" in ctx else err["msg"]
        errors.append(FieldError(param=param, msg=msg, value=values.get(param)))
    return errors


def _validate(form_class: Type[FormT], values: Dict[str, str]) -> ValidationResult:
    try:
        return ValidationResult(form=form_class(**values))
    except ValidationError as e:
        # Keep the submitted values for re-display
        return ValidationResult(
            form=form_class.model_construct(**values),
            errors=_field_errors(e, values),
        )


def validate_genre_form(raw: Mapping[str, Any]) -> ValidationResult:
    return _validate(GenreForm, {"name": sanitize(raw.get("name"))})


def validate_bookinstance_form(raw: Mapping[str, Any]) -> ValidationResult:
    return _validate(BookInstanceForm, {
        "book": sanitize(raw.get("book")),
        "imprint": sanitize(raw.get("imprint")),
        "status": sanitize(raw.get("status")),
        "due_back": str(raw.get("due_back") or "").strip(),
    })
