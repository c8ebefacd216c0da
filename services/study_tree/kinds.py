# kinds.py
# Default kind progression for newly created study nodes

# course -> year -> subject -> semester -> custom. Only used to pre-fill
# the kind of a new child; tree validity never looks at kinds.

from typing import Optional

from .models import HierarchyKind

NEXT_KIND = {
    HierarchyKind.COURSE: HierarchyKind.YEAR,
    HierarchyKind.YEAR: HierarchyKind.SUBJECT,
    HierarchyKind.SUBJECT: HierarchyKind.SEMESTER,
    HierarchyKind.SEMESTER: HierarchyKind.CUSTOM,
    HierarchyKind.CUSTOM: HierarchyKind.CUSTOM,
}


def next_default_kind(parent_kind: Optional[HierarchyKind]) -> HierarchyKind:
    """Suggested kind for a child of `parent_kind` (a course for new roots)."""
    if parent_kind is None:
        return HierarchyKind.COURSE
    return NEXT_KIND[HierarchyKind(parent_kind)]
