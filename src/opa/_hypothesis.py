"""
Hypothesis objects.

A hypothesis is an ordered sequence of K numbers whose only meaning is
their relative ordering. ``Hypothesis`` caches its relation vector so the
scorer and the engine encode it once per conformed shape.
"""

from dataclasses import dataclass
from typing import ClassVar, Optional, Sequence, Tuple

import numpy as np

from ._errors import InvalidConfigError
from ._ordering import check_pairing_type, n_relations, ordering


@dataclass(frozen=True)
class Hypothesis:
    """Hypothesised relative ordering of K measurement conditions.

    Parameters
    ----------
    raw : tuple of float
        Hypothesised values, at least 2, all finite.
    pairing_type : {"pairwise", "adjacent"}
        Pairing scheme used to derive ordinal relations.
    """
    kind: ClassVar[str] = "hypothesis"

    raw: Tuple[float, ...]
    pairing_type: str = "pairwise"

    def __post_init__(self):
        check_pairing_type(self.pairing_type)
        try:
            values = tuple(float(v) for v in self.raw)
        except (TypeError, ValueError) as e:
            raise InvalidConfigError(f"hypothesis must be numeric: {e}") from e
        if len(values) < 2:
            raise InvalidConfigError(
                f"hypothesis must contain at least 2 values, got {len(values)}"
            )
        if not np.all(np.isfinite(values)):
            raise InvalidConfigError("hypothesis values must be finite")
        object.__setattr__(self, "raw", values)

    @property
    def n_conditions(self) -> int:
        return len(self.raw)

    @property
    def n_relations(self) -> int:
        return n_relations(self.n_conditions, self.pairing_type)

    @property
    def values(self) -> np.ndarray:
        return np.asarray(self.raw, dtype=float)

    @property
    def ordering(self) -> np.ndarray:
        """Relation vector, always encoded with a zero threshold."""
        out = ordering(self.raw, self.pairing_type, 0.0)
        out.setflags(write=False)
        return out

    def with_pairing_type(self, pairing_type: str) -> "Hypothesis":
        if pairing_type == self.pairing_type:
            return self
        return Hypothesis(raw=self.raw, pairing_type=pairing_type)

    def __len__(self) -> int:
        return self.n_conditions


def hypothesis(values: Sequence[float], pairing_type: Optional[str] = None) -> Hypothesis:
    """Create a ``Hypothesis``.

    ``pairing_type`` defaults to ``"pairwise"``; an existing ``Hypothesis``
    keeps its own pairing type unless one is given.

    Examples
    --------
    >>> h = hypothesis([1, 2, 3, 3, 3])
    >>> h.n_relations
    10
    """
    if isinstance(values, Hypothesis):
        if pairing_type is None:
            return values
        return values.with_pairing_type(pairing_type)
    if isinstance(values, str):
        raise InvalidConfigError("hypothesis must be a numeric sequence, not a string")
    try:
        raw = tuple(np.asarray(values, dtype=float).ravel())
    except (TypeError, ValueError) as e:
        raise InvalidConfigError(f"hypothesis must be numeric: {e}") from e
    return Hypothesis(raw=raw, pairing_type=pairing_type or "pairwise")
