"""
Result flattener: rebuild one parent with its one-to-many children from outer-join rows.

A join of a parent with two child tables yields one row per child combination,
e.g. a pet with 2 life events and 3 media comes back as 6 rows. Each row repeats
the parent's columns and carries at most one child of each type; a child type
with no match shows up as None columns.

    view = flatten(rows, "pet_id", [
        ChildSpec("events", "event_id", build_event),
        ChildSpec("medias", "media_id", build_media),
    ], build_parent=build_pet)

- parent fields come from the first row
- each child appears once, in first-seen order
- zero rows means the parent does not exist (NotFound); a parent without
  children still produces one row with None child columns and flattens to
  empty collections
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from utils.exceptions import NotFound


@dataclass(frozen=True)
class ChildSpec:
    name: str
    key: str
    build: Callable[[Any], Any]


@dataclass
class FlattenedView:
    parent: Any
    children: Dict[str, List[Any]] = field(default_factory=dict)

    def __getitem__(self, name: str) -> List[Any]:
        return self.children[name]


def _present(value) -> bool:
    return value is not None and value != ""


def flatten(
    rows: Iterable[Any],
    parent_key: str,
    child_specs: Sequence[ChildSpec],
    build_parent: Optional[Callable[[Any], Any]] = None,
    not_found: Optional[NotFound] = None,
) -> FlattenedView:
    """
    rows: objects exposing columns as attributes (typed row dataclasses).
    Raises not_found (default NotFound()) when rows is empty, ValueError when
    the rows belong to more than one parent.
    """
    view = None
    parent_id = None
    seen = {spec.name: set() for spec in child_specs}

    for row in rows:
        if view is None:
            parent_id = getattr(row, parent_key)
            parent = build_parent(row) if build_parent else row
            view = FlattenedView(parent=parent, children={spec.name: [] for spec in child_specs})
        elif getattr(row, parent_key) != parent_id:
            raise ValueError(f"rows span more than one {parent_key}: {parent_id!r}, {getattr(row, parent_key)!r}")

        for spec in child_specs:
            child_id = getattr(row, spec.key)
            if not _present(child_id) or child_id in seen[spec.name]:
                continue
            seen[spec.name].add(child_id)
            view.children[spec.name].append(spec.build(row))

    if view is None:
        raise not_found if not_found is not None else NotFound()
    return view
