"""
Note and reminder automation — the desktop collaborator that stores results.

The host only forwards to it; an implementation is installed by whoever runs
the host on a machine that has one.
"""

from summary_bridge.errors import NotesUnavailableError
from summary_bridge.models.messages import ActionItem, NoteResult, SaveToNotesRequest


class NotesAutomation:
    async def save_note(self, request: SaveToNotesRequest) -> NoteResult:
        """Create the note, or update it in place when ``request.note_id`` is set."""
        raise NotImplementedError

    async def list_folders(self) -> list[str]:
        raise NotImplementedError

    async def create_reminders(self, list_name: str, title: str, url: str,
                               action_items: list[ActionItem]) -> int:
        """Create one reminder per action item; returns how many were created."""
        raise NotImplementedError


class UnavailableNotes(NotesAutomation):
    async def save_note(self, request: SaveToNotesRequest) -> NoteResult:
        raise NotesUnavailableError()

    async def list_folders(self) -> list[str]:
        raise NotesUnavailableError()

    async def create_reminders(self, list_name: str, title: str, url: str,
                               action_items: list[ActionItem]) -> int:
        raise NotesUnavailableError()
