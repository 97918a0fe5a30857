"""
seqrules.postprocessing.rules — Decomposition and ranking of mined rules.

A mined rule arrives as one formatted string, ``"<lhs> => <rhs>"``, plus its
support, confidence and lift. ``decompose`` splits it into ``LHS``/``RHS``
columns; ``top_k`` ranks the result by one metric.
"""
from __future__ import annotations
import logging
import math
import warnings
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
import pyarrow as pa
import pyarrow.compute as pc
import narwhals as nw
from seqrules.errors import ConfigurationError, MalformedRuleWarning

logger = logging.getLogger(__name__)

SEPARATOR = " => "
METRICS = ["support", "confidence", "lift"]
RULE_COLUMNS = ["rule"] + METRICS
DECOMPOSED_SCHEMA = pa.schema([
    ("LHS", pa.string()), ("RHS", pa.string()),
    ("support", pa.float64()), ("confidence", pa.float64()), ("lift", pa.float64()),
])


@dataclass(frozen=True)
class Rule:
    rule: str
    support: float
    confidence: float
    lift: float


def split_rule(rule: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """``(LHS, RHS)``; RHS is None unless the separator occurs exactly once."""
    if rule is None: return None, None
    parts = str(rule).split(SEPARATOR)
    if len(parts) != 2: return str(rule), None
    return parts[0], parts[1]


def _check_columns(present: Iterable[str]):
    present = set(present)
    for col in RULE_COLUMNS:
        if col not in present: raise ConfigurationError(col, available=sorted(present))

def _frame_rows(rules: Any) -> Optional[List[Dict[str, Any]]]:
    try: df = nw.from_native(rules)
    except TypeError: return None
    if isinstance(df, nw.LazyFrame): df = df.collect()
    _check_columns(df.columns)
    return df.select(RULE_COLUMNS).rows(named=True)

def _record_rows(rules: Iterable[Any]) -> List[Dict[str, Any]]:
    rows = []
    for r in rules:
        row = asdict(r) if isinstance(r, Rule) else dict(r) if isinstance(r, Mapping) else None
        if row is None: raise TypeError(f"Cannot read a rule from {type(r).__name__}")
        _check_columns(row)
        rows.append(row)
    return rows

def _as_float(v: Any) -> Optional[float]:
    return None if v is None else float(v)


class RuleDecomposer:
    def __init__(self, rules: Any):
        self.rules = rules
        self.n_malformed_ = 0

    def _rows(self) -> List[Dict[str, Any]]:
        rows = _frame_rows(self.rules)
        return rows if rows is not None else _record_rows(self.rules)

    def fit(self) -> pa.Table:
        out = []
        for row in self._rows():
            lhs, rhs = split_rule(row["rule"])
            out.append({
                "LHS": lhs, "RHS": rhs,
                "support": _as_float(row["support"]),
                "confidence": _as_float(row["confidence"]),
                "lift": _as_float(row["lift"]),
            })
        self.n_malformed_ = sum(1 for r in out if r["RHS"] is None)
        if self.n_malformed_:
            logger.warning("%d of %d rules lack the '%s' separator; RHS left null", self.n_malformed_, len(out), SEPARATOR)
            warnings.warn(
                f"{self.n_malformed_} rule(s) do not split on {SEPARATOR!r}; their RHS is null",
                MalformedRuleWarning, stacklevel=2,
            )
        logger.info("Decomposed %d rules", len(out))
        return pa.Table.from_pylist(out, schema=DECOMPOSED_SCHEMA)


def decompose(rules: Any) -> pa.Table:
    """Split every ``"LHS => RHS"`` rule string into separate columns."""
    return RuleDecomposer(rules).fit()


def _as_table(table: Any) -> pa.Table:
    if isinstance(table, pa.Table): return table
    return nw.from_native(table, eager_only=True).to_arrow()

def top_k(table: Any, by: str = "lift", k: int = 5) -> pa.Table:
    """The ``k`` best rows by ``by``, descending, stable on ties; nulls and NaN rank last."""
    if by not in METRICS: raise ValueError(f"by must be one of {METRICS}")
    if k < 0: raise ValueError("k must be non-negative")
    table = _as_table(table)
    values = [None if v is None or math.isnan(v) else v for v in table.column(by).to_pylist()]
    order = sorted(range(len(values)), key=lambda i: (values[i] is None, -(values[i] or 0.0)))
    return table.take(pa.array(order[:k], type=pa.int64()))


def drop_malformed(table: Any) -> pa.Table:
    """Rows whose rule string split into a non-null RHS."""
    table = _as_table(table)
    return table.filter(pc.is_valid(table.column("RHS")))
