"""Ordered child documents (comments, submissions) owned by a parent row."""

import uuid
from typing import Dict, Iterable, Iterator, List, Optional


class SubResources:
    """
    Ordered list of sub-documents indexed by their ``id``.

    The parent keeps the list in a single JSON column; callers mutate it
    through this wrapper and write ``to_list()`` back with the parent.
    """

    def __init__(self, items: Optional[Iterable[Dict]] = None):
        self._items: List[Dict] = [dict(item) for item in items or []]
        self._index: Dict[str, Dict] = {str(item["id"]): item for item in self._items}

    def __iter__(self) -> Iterator[Dict]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, item_id) -> Optional[Dict]:
        return self._index.get(str(item_id))

    def find_by(self, key: str, value) -> Optional[Dict]:
        for item in self._items:
            if str(item.get(key)) == str(value):
                return item
        return None

    def append(self, item: Dict) -> Dict:
        item = dict(item)
        item.setdefault("id", str(uuid.uuid4()))
        self._items.append(item)
        self._index[str(item["id"])] = item
        return item

    def remove(self, item_id) -> Optional[Dict]:
        item = self._index.pop(str(item_id), None)
        if item is not None:
            self._items = [i for i in self._items if i is not item]
        return item

    def to_list(self) -> List[Dict]:
        return [dict(item) for item in self._items]
