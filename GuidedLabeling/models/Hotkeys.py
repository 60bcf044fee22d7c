"""Keyboard shortcuts bound to category indices."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from GuidedLabeling.configuration.configuration import DEFAULT_LINE_COLOR, HOTKEY_ORDER
from GuidedLabeling.models.Annotation import Category

logger = logging.getLogger(__name__)


class HotkeyMap:
    """Ordered ``key → category index`` bindings.

    Starts with ``1``..``9``, ``0`` bound to the first ten categories.  Keys
    can be swapped but every index keeps exactly one key.
    """

    def __init__(self, keys: Iterable[str] = HOTKEY_ORDER):
        self._bindings: Dict[str, int] = {str(k): i for i, k in enumerate(keys)}

    def key_for(self, index: int) -> Optional[str]:
        return next((k for k, v in self._bindings.items() if v == index), None)

    def index_for(self, key: str) -> Optional[int]:
        return self._bindings.get(key)

    def assign(self, old_key: Optional[str], new_key: Optional[str]) -> None:
        """Move the binding of *old_key* to *new_key*.

        If *new_key* is already bound, the two keys swap indices.
        """
        if old_key is None or new_key is None or old_key == new_key:
            return
        if old_key not in self._bindings:
            logger.warning("Cannot reassign unbound hotkey %r", old_key)
            return
        index = self._bindings.pop(old_key)
        displaced = self._bindings.pop(new_key, None)
        self._bindings[new_key] = index
        if displaced is not None:
            self._bindings[old_key] = displaced

    def __len__(self) -> int:
        return len(self._bindings)


def apply_group_hotkeys(hotkeys: HotkeyMap, groups: List[dict], registry) -> None:
    """Bind the ``hotKey`` requested by each config group to the group's category index.

    When several groups ask for the same key, the first group in config order
    keeps it and later groups keep their previous key.
    """
    claimed = set()
    for group in groups:
        requested = group.get("hotKey")
        if requested is None or group.get("id") not in registry:
            continue
        index = registry.index_of(group["id"])
        requested = str(requested)
        if requested in claimed:
            logger.info("Hotkey %r already claimed; group %r keeps its key", requested, group.get("id"))
            continue
        hotkeys.assign(hotkeys.key_for(index), requested)
        if hotkeys.index_for(requested) != index:
            # categories past the tenth have no key to move
            logger.info("Group %r has no hotkey; %r stays unbound", group.get("id"), requested)
            continue
        claimed.add(requested)


def groups_from_categories(categories: List[Category], hotkeys: HotkeyMap) -> List[dict]:
    """Serialise *categories* as ``annotationGroups.groups`` entries."""
    groups = []
    for index, category in enumerate(categories):
        key = hotkeys.key_for(index)
        groups.append(
            {
                "id": category.label,
                "fillColor": category.fill_color,
                "lineColor": category.stroke_color or DEFAULT_LINE_COLOR,
                "hotKey": None if key is None else f"{key}",
            }
        )
    return groups
