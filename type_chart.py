"""
Sparse type-effectiveness chart lookup.
"""
from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple, Union

from models import TypeChartRow


class TypeChart:
    """(attacking type id, defending type id) -> multiplier, neutral when missing."""

    def __init__(self, rows: Iterable[TypeChartRow] = ()):
        self._multipliers: Dict[Tuple[int, int], float] = {}
        for row in rows:
            # Later rows win, same as re-setting a map key
            self._multipliers[(row.attacking_type_id, row.defending_type_id)] = float(row.multiplier)

    def __len__(self) -> int:
        return len(self._multipliers)

    def multiplier(self, attacking_type_id: int, defending_type_id: int) -> float:
        """Chart value for one pair; 1.0 if the pair was never charted."""
        return self._multipliers.get((attacking_type_id, defending_type_id), 1.0)

    def against(self, attacking_type_id: int, type1_id: int, type2_id: Optional[int] = None) -> float:
        """Combined multiplier of an attacking type against a one- or two-typed defender."""
        mult = self.multiplier(attacking_type_id, type1_id)
        if type2_id is not None:
            mult *= self.multiplier(attacking_type_id, type2_id)
        return mult

    def best_offense(self, defending_type_id: int, type1_id: int, type2_id: Optional[int] = None) -> float:
        """Better of the holder's own-type multipliers against a defending type."""
        best = self.multiplier(type1_id, defending_type_id)
        if type2_id is not None:
            best = max(best, self.multiplier(type2_id, defending_type_id))
        return best


ChartInput = Union[TypeChart, Iterable[TypeChartRow]]


def as_chart(chart_rows: ChartInput) -> TypeChart:
    """Accept either a built TypeChart or raw rows."""
    if isinstance(chart_rows, TypeChart):
        return chart_rows
    return TypeChart(chart_rows)
