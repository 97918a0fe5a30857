from __future__ import annotations
import re
from typing import Iterable, List
from seqrules.errors import ConfigurationError

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_ALNUM = re.compile(r"[^0-9a-zA-Z]+")

def clean_name(name) -> str:
    """
    Canonical snake_case form of a column name.

    ``"DateTime"`` -> ``"date_time"``, ``"Session ID"`` -> ``"session_id"``,
    ``"% done"`` -> ``"done"``, ``"1st"`` -> ``"x1st"``.
    """
    s = _CAMEL_BOUNDARY.sub("_", str(name))
    s = _NON_ALNUM.sub("_", s).strip("_").lower()
    if not s: return "x"
    if s[0].isdigit(): return "x" + s
    return s

def clean_names(names: Iterable) -> List[str]:
    seen, out = {}, []
    for name in names:
        base = clean_name(name)
        seen[base] = seen.get(base, 0) + 1
        out.append(base if seen[base] == 1 else f"{base}_{seen[base]}")
    return out

def resolve_field(columns: Iterable[str], field: str) -> str:
    columns = list(columns)
    canonical = clean_name(field)
    if canonical not in columns:
        raise ConfigurationError(field, canonical, [c for c in columns if not c.startswith("_")])
    return canonical

def quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'
