import json
from typing import Any, Dict, Iterable, List, Union

from pagescraper.models import Record

Row = Union[Record, Dict[str, Any]]


def _as_dicts(records: Iterable[Row]) -> List[Dict[str, Any]]:
    return [r if isinstance(r, dict) else r.to_dict() for r in records]


def to_json(records: Iterable[Row]) -> str:
    return json.dumps(_as_dicts(records), ensure_ascii=False, indent=2)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return '"' + value.replace('"', '""') + '"'
    return str(value)


def to_csv(records: Iterable[Row]) -> str:
    """Header row is the keys of the first record; only string cells are quoted."""
    rows = _as_dicts(records)
    if not rows:
        return ""
    keys = list(rows[0].keys())
    lines = [",".join(keys)]
    lines.extend(",".join(_cell(row.get(k)) for k in keys) for row in rows)
    return "\n".join(lines)
