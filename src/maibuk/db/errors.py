# ABOUTME: Typed failures raised by the document repositories.
# ABOUTME: Callers catch NotFoundError or a specific subclass; nothing is silently defaulted.


class NotFoundError(LookupError):
    """Raised when a referenced record does not exist."""


class BookNotFoundError(NotFoundError):
    """Raised when a book id does not exist."""

    def __init__(self, book_id: str) -> None:
        super().__init__(f"Book {book_id} not found")
        self.book_id = book_id


class ChapterNotFoundError(NotFoundError):
    """Raised when a chapter id does not exist."""

    def __init__(self, chapter_id: str) -> None:
        super().__init__(f"Chapter {chapter_id} not found")
        self.chapter_id = chapter_id
