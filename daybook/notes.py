# daybook/notes.py
import logging
from typing import List

from daybook.core.errors import NotFound
from daybook.core.models import Note
from daybook.store.base import LedgerStore

logger = logging.getLogger(__name__)


class NoteBook:
    """Free-text notes. Notes have no dates and never touch the day index."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def add(self, content: str) -> int:
        with self.store.atomic() as unit:
            note_id = unit.insert("notes", {"content": content})
        logger.debug("Added note %s", note_id)
        return note_id

    def list(self) -> List[Note]:
        with self.store.atomic() as unit:
            rows = unit.select("notes")
        return [Note(id=int(r["id"]), content=r["content"]) for r in rows]

    def update(self, note: Note) -> None:
        with self.store.atomic() as unit:
            if not unit.update("notes", note.id, {"content": note.content}):
                raise NotFound("note", note.id)

    def delete(self, note_id: int) -> None:
        with self.store.atomic() as unit:
            if not unit.delete("notes", note_id):
                raise NotFound("note", note_id)
        logger.debug("Deleted note %s", note_id)
