"""
Library catalog web application.

This package provides server-rendered CRUD pages for:
- Book instances (physical copies of a book)
- Genres, with a guard against deleting genres still in use
"""
