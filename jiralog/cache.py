"""
Per-run lookup caches and the context object that carries them.

A ReportContext is created by each command invocation and handed to every
mapper call; nothing here is module-global.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from . import writers
from .errors import MissingEntityError

Entity = Dict[str, Any]


class LookupCache:
    """Lazy, write-once mapping from entity id to fetched entity.

    Keys are normalized to str so that 10001 and "10001" hit the same entry.
    Observers in `on_insert` receive a copy of the full cache after each insert.
    """

    def __init__(self, name: str, fetch: Callable[[str], Optional[Entity]],
                 on_insert: Iterable[Callable[[Dict[str, Entity]], None]] = ()):
        self.name = name
        self._fetch = fetch
        self._entries: Dict[str, Entity] = {}
        self._observers = list(on_insert)

    def __contains__(self, key: Any) -> bool:
        return str(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Any) -> Optional[Entity]:
        """Return a cached entity without fetching."""
        return self._entries.get(str(key))

    def resolve(self, key: Any) -> Entity:
        """Return the entity for key, fetching it once on a miss."""
        k = str(key)
        if k in self._entries:
            return self._entries[k]
        entity = self._fetch(k)
        if not entity:
            raise MissingEntityError(self.name, k)
        self._entries[k] = entity
        self._notify()
        return entity

    def seed(self, entities: Dict[Any, Entity]) -> int:
        """Insert prefetched entities; existing ids are left untouched.

        Returns the number of new entries.
        """
        added = 0
        for key, entity in entities.items():
            k = str(key)
            if k not in self._entries and entity:
                self._entries[k] = entity
                added += 1
        if added:
            self._notify()
        return added

    def snapshot(self) -> Dict[str, Entity]:
        return dict(self._entries)

    def _notify(self) -> None:
        for observer in self._observers:
            observer(self.snapshot())


class JsonSnapshot:
    """Observer that overwrites a JSON file with the full cache contents."""

    def __init__(self, path: str):
        self.path = path

    def __call__(self, entries: Dict[str, Entity]) -> None:
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(entries, fh, indent=4, ensure_ascii=False)


@dataclass
class FieldConfig:
    """Jira custom field ids and Tempo attribute keys the mappers read."""
    account_field: str = "customfield_10122"
    epic_link_field: str = "customfield_10011"
    external_key_field: str = "customfield_10118"
    external_epic_field: str = "customfield_10123"
    external_id_field: str = "customfield_10124"
    external_key_markers: List[str] = field(default_factory=lambda: ["BMITFOX-", "BMITB2C"])
    activity_attribute: str = "_Activity_"


@dataclass
class ReportContext:
    issues: LookupCache
    users: Optional[LookupCache] = None
    accounts: Dict[str, Entity] = field(default_factory=dict)
    work_attributes: Dict[str, Dict[str, str]] = field(default_factory=dict)
    periods: List[Dict[str, str]] = field(default_factory=list)
    project_accounts: Optional[LookupCache] = None
    fields: FieldConfig = field(default_factory=FieldConfig)
    warn: Callable[[str], None] = writers.warn


def index_accounts(accounts: Iterable[Entity]) -> Dict[str, Entity]:
    """Index Tempo accounts by (string) id."""
    return {str(a["id"]): a for a in accounts if a.get("id") is not None}


def build_attribute_dictionary(attributes: Iterable[Entity]) -> Dict[str, Dict[str, str]]:
    """attribute key -> (value code -> label).

    Tempo returns 'values' as a list of codes and 'names' either as a parallel
    list or as a code->label object.
    """
    dictionary: Dict[str, Dict[str, str]] = {}
    for attr in attributes:
        values = attr.get("values") or []
        names = attr.get("names") or {}
        if isinstance(names, dict):
            labels = {v: names.get(v, v) for v in values}
        else:
            labels = dict(zip(values, names))
        dictionary[attr["key"]] = labels
    return dictionary
