"""
AI Notes Backend: Notes View Tests
===================================

What:  The rendering layer re-renders only the sections whose state fields
       changed.
"""

from datetime import datetime, timezone

from ainotes.client import actions
from ainotes.client.state import NotesState
from ainotes.client.store import Store
from ainotes.client.view import SECTIONS, NotesView, create_environment, sections_for
from ainotes.schemas.note import Note


def make_note(note_id: str, title: str) -> Note:
    return Note(
        id=note_id,
        title=title,
        content="body",
        created_at=datetime(2024, 1, 15, tzinfo=timezone.utc),
        user_id="user-1",
    )


class TestNotesView:
    def setup_method(self):
        self.store = Store(NotesState())
        self.view = NotesView(self.store, create_environment())

    def teardown_method(self):
        self.view.close()

    def test_first_render_renders_every_section(self):
        """The first render fills every section."""
        self.view.render()
        assert all(count == 1 for count in self.view.render_counts.values())
        assert self.view.dirty == frozenset()

    def test_only_changed_sections_rerender(self):
        """Only sections whose fields changed are rendered again."""
        self.view.render()

        self.store.dispatch(actions.create_opened)
        assert self.view.dirty == frozenset({"create_dialog"})
        html = self.view.render()

        assert 'id="create-dialog"' in html
        assert self.view.render_counts["create_dialog"] == 2
        assert self.view.render_counts["notes_list"] == 1

    def test_summary_marks_list_and_dialog(self):
        """Starting a summary dirties the list and the dialog."""
        self.store.dispatch(actions.load_succeeded, [make_note("1", "Groceries")])
        self.view.render()

        self.store.dispatch(actions.summarize_started, "1")

        assert self.view.dirty == frozenset({"notes_list", "summary_dialog"})
        assert "Summarizing..." in self.view.render()

    def test_unchanged_dispatch_renders_nothing(self):
        """A no-op action triggers no rendering."""
        self.view.render()
        self.store.dispatch(actions.delete_cancelled)
        self.view.render()
        assert sum(self.view.render_counts.values()) == len(SECTIONS)

    def test_closed_view_stops_tracking(self):
        """A closed view ignores later changes."""
        self.view.render()
        self.view.close()
        self.store.dispatch(actions.create_opened)
        assert self.view.dirty == frozenset()

    def test_sections_for(self):
        """Changed fields map to their sections."""
        assert sections_for(frozenset({"notes"})) == {"notes_list"}
        assert sections_for(frozenset({"edit", "updating"})) == {"edit_dialog", "notes_list"}

    def test_open_summary_shows_progress_while_next_is_pending(self):
        """Starting a second summary over an open dialog never prints 'None'."""
        self.store.dispatch(
            actions.load_succeeded, [make_note("1", "Groceries"), make_note("2", "Errands")]
        )
        self.store.dispatch(actions.summarize_started, "1")
        self.store.dispatch(actions.summarize_succeeded, "1", "Buy milk.")
        assert "Buy milk." in self.view.render()

        self.store.dispatch(actions.summarize_started, "2")
        html = self.view.render()

        assert 'id="summary-dialog"' in html
        assert "Generating summary..." in html
        assert "None" not in html
