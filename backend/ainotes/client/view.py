"""
AI Notes Backend: Notes View
=============================

What:  Rendering layer of the notes page.
How:   Subscribes to a NotesClient's Store. Each page section depends on a
       fixed set of NotesState fields; a store notification marks the
       sections whose fields changed as dirty. render() re-renders only dirty
       sections (Jinja2 fragments) and assembles the page from the cached
       fragments.

Section Map:
    notes_list      notes, loaded, loading, load_error, updating, deleting, summarizing
    create_dialog   create
    edit_dialog     edit
    delete_dialog   delete
    summary_dialog  summary
"""

import logging
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Set

import jinja2
from markupsafe import Markup

from ainotes.client.state import NotesState
from ainotes.client.store import Store

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

SECTIONS: Dict[str, FrozenSet[str]] = {
    "notes_list": frozenset(
        {"notes", "loaded", "loading", "load_error", "updating", "deleting", "summarizing"}
    ),
    "create_dialog": frozenset({"create"}),
    "edit_dialog": frozenset({"edit"}),
    "delete_dialog": frozenset({"delete"}),
    "summary_dialog": frozenset({"summary"}),
}


def create_environment(templates_dir: Optional[Path] = None) -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(templates_dir or TEMPLATES_DIR)),
        autoescape=jinja2.select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def sections_for(changed: FrozenSet[str]) -> Set[str]:
    """Page sections that depend on any of the changed state fields."""
    return {name for name, fields in SECTIONS.items() if fields & changed}


class NotesView:
    """
    Lifecycle:
        view = NotesView(client.store, env)
        html = view.render(user_email=...)
        view.close()   # unsubscribes

    Attributes:
        render_counts: How many times each section was rendered
    """

    def __init__(self, store: Store[NotesState], env: jinja2.Environment):
        self.store = store
        self.env = env
        self._fragments: Dict[str, Markup] = {}
        self._dirty: Set[str] = set(SECTIONS)
        self.render_counts: Dict[str, int] = {name: 0 for name in SECTIONS}
        self._unsubscribe = store.subscribe(self._on_change)

    def _on_change(self, state: NotesState, changed: FrozenSet[str]) -> None:
        self._dirty |= sections_for(changed)

    @property
    def dirty(self) -> FrozenSet[str]:
        return frozenset(self._dirty)

    def _render_section(self, name: str, state: NotesState) -> Markup:
        template = self.env.get_template(f"sections/{name}.html")
        self.render_counts[name] += 1
        return Markup(template.render(state=state))

    def render(self, **context: Any) -> str:
        state = self.store.state
        for name in sorted(self._dirty):
            self._fragments[name] = self._render_section(name, state)
        if self._dirty:
            logger.debug("Re-rendered sections %s", sorted(self._dirty))
        self._dirty.clear()

        return self.env.get_template("notes.html").render(
            sections=self._fragments, state=state, **context
        )

    def close(self) -> None:
        self._unsubscribe()
