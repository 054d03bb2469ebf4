# ABOUTME: Editing-session layer on top of the document repositories.
# ABOUTME: Exports the book/chapter sessions and the coalescing auto-save buffer.

from maibuk.core.autosave import AutoSaveBuffer
from maibuk.core.session import BookSession, ChapterSession, EditorSession

__all__ = [
    "AutoSaveBuffer",
    "BookSession",
    "ChapterSession",
    "EditorSession",
]
