"""
Significance engine.

Builds a reference distribution for every row by re-scoring reorderings of
the row's finite values against the (conformed) hypothesis, then turns the
counts of replicates at least as good as the observed fit into per-row and
pooled chance-values.

Randomness follows a SeedSequence tree: the root is split into one child
per group and each group into one child per row. Draws therefore depend on
the seed and the row position only, not on ``n_jobs`` or scheduling order.
"""

import dataclasses
import itertools
import logging
import numbers
import time
from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

import numpy as np
from joblib import Parallel, delayed
from numpy.random import SeedSequence, default_rng
from tqdm.auto import tqdm

from ._aggregator import pooled_ratio
from ._errors import FitTimeoutError, InvalidConfigError
from ._ordering import ordering, pair_indices, sign_with_threshold
from ._preflight import check_exact_workload
from ._results import ChanceValues, MultiGroupFit, SingleGroupFit, readonly
from ._scoring import finite_part
from ._spec import CvalSpec

logger = logging.getLogger(__name__)

SeedLike = Union[None, int, SeedSequence, np.random.Generator]

# Replicates scored per vectorised block.
_BLOCK_SIZE = 50_000


@dataclass(frozen=True)
class _RowChance:
    replicate_matches: np.ndarray
    n_pairs: int
    n_geq: int


# ── seeding ──────────────────────────────────────────────────────────

def root_seed(seed: SeedLike):
    """Normalise ``seed`` to a ``SeedSequence`` or ``Generator``."""
    if isinstance(seed, (SeedSequence, np.random.Generator)):
        return seed
    try:
        return SeedSequence(seed)
    except (TypeError, ValueError) as e:
        raise InvalidConfigError(
            f"seed must be None, a non-negative int, a SeedSequence or a Generator, "
            f"got {seed!r}"
        ) from e


def spawn_seeds(root, n: int) -> list:
    """Spawn ``n`` independent child streams from ``root``."""
    return root.spawn(n)


def _seed_entropy(root) -> Optional[int]:
    if isinstance(root, SeedSequence) and isinstance(root.entropy, numbers.Integral):
        return int(root.entropy)
    return None


def _check_deadline(deadline: Optional[float], where: str) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise FitTimeoutError(f"chance-value computation timed out at {where}")


# ── replicate scoring ────────────────────────────────────────────────

def replicate_matches(
    perms: np.ndarray,
    h_ord: np.ndarray,
    pairing_type: str,
    diff_threshold: float,
) -> np.ndarray:
    """Matching relations for each reordering in ``perms`` (one per row)."""
    i, j = pair_indices(perms.shape[1], pairing_type)
    signs = sign_with_threshold(perms[:, j] - perms[:, i], diff_threshold)
    return (signs == h_ord).sum(axis=1).astype(np.int32)


def _exact_blocks(values: np.ndarray, block_size: int) -> Iterator[np.ndarray]:
    """Every permutation of ``values``, lexicographic on positions, in blocks."""
    perms = itertools.permutations(values)
    while True:
        block = list(itertools.islice(perms, block_size))
        if not block:
            return
        yield np.array(block, dtype=float)


def _stochastic_blocks(
    values: np.ndarray, nreps: int, rng: np.random.Generator, block_size: int,
) -> Iterator[np.ndarray]:
    """``nreps`` independent shuffles of ``values``, in blocks."""
    for start in range(0, nreps, block_size):
        size = min(block_size, nreps - start)
        yield rng.permuted(np.tile(values, (size, 1)), axis=1)


def _row_chance(
    values: np.ndarray,
    h_conformed: np.ndarray,
    observed_matches: int,
    pairing_type: str,
    diff_threshold: float,
    method: str,
    nreps: int,
    seed,
    deadline: Optional[float],
    row: int,
) -> _RowChance:
    """Reference distribution and exceedance count for one row."""
    _check_deadline(deadline, f"row {row}")
    h_ord = ordering(h_conformed, pairing_type, 0.0)

    if method == "exact":
        blocks = _exact_blocks(values, _BLOCK_SIZE)
    else:
        blocks = _stochastic_blocks(values, nreps, default_rng(seed), _BLOCK_SIZE)

    parts = []
    for block in blocks:
        parts.append(replicate_matches(block, h_ord, pairing_type, diff_threshold))
        _check_deadline(deadline, f"row {row}")
    matches = np.concatenate(parts)

    return _RowChance(
        replicate_matches=matches,
        n_pairs=len(h_ord),
        n_geq=int(np.sum(matches >= observed_matches)),
    )


# ── group-level assembly ─────────────────────────────────────────────

def _group_chance(
    model: SingleGroupFit,
    spec: CvalSpec,
    seed,
    *,
    n_jobs: int,
    progress: bool,
    deadline: Optional[float],
    seed_entropy: Optional[int],
) -> SingleGroupFit:
    n_rows = model.n_rows
    h = model.hypothesis.values

    if spec.method == "exact":
        row_seeds: List = [None] * n_rows
    else:
        row_seeds = spawn_seeds(seed, n_rows)

    tasks = []
    for r in range(n_rows):
        row_id = int(model.row_ids[r])
        values, h_conformed = finite_part(model.data[r], h, row=row_id)
        tasks.append((
            values,
            h_conformed,
            int(model.individual_correct_pairs[r]),
            model.pairing_type,
            model.diff_threshold,
            spec.method,
            spec.nreps,
            row_seeds[r],
            deadline,
            row_id,
        ))

    desc = "chance-values" if model.label is None else f"chance-values [{model.label}]"
    tasks_iter = tqdm(tasks, desc=desc, disable=not progress)
    if n_jobs != 1:
        rows = Parallel(n_jobs=n_jobs)(delayed(_row_chance)(*t) for t in tasks_iter)
    else:
        rows = [_row_chance(*t) for t in tasks_iter]

    counts = np.array([len(rc.replicate_matches) for rc in rows])
    n_pairs = np.array([rc.n_pairs for rc in rows])
    n_geq = np.array([rc.n_geq for rc in rows])

    pcc_replicates = np.full((int(counts.max()), n_rows), np.nan)
    for c, rc in enumerate(rows):
        pcc_replicates[: len(rc.replicate_matches), c] = (
            rc.replicate_matches / rc.n_pairs * 100
        )

    if np.all(counts == counts[0]):
        match_matrix = np.stack([rc.replicate_matches for rc in rows], axis=1)
        group_replicate_pccs = readonly(match_matrix.sum(axis=1) / n_pairs.sum() * 100)
    else:
        group_replicate_pccs = None

    chance = ChanceValues(
        method=spec.method,
        nreps=spec.nreps if spec.method == "stochastic" else None,
        group_cval=pooled_ratio(n_geq, counts),
        individual_cvals=readonly(n_geq / counts),
        individual_n_permutations=readonly(counts),
        individual_pccs_geq_observed=readonly(n_geq),
        pcc_replicates=readonly(pcc_replicates),
        group_replicate_pccs=group_replicate_pccs,
        seed_entropy=seed_entropy if spec.method == "stochastic" else None,
    )
    return dataclasses.replace(model, chance=chance)


def add_chance_values(
    model,
    method: str = "stochastic",
    nreps: int = 1000,
    *,
    seed: SeedLike = None,
    n_jobs: int = 1,
    progress: bool = False,
    timeout: Optional[float] = None,
):
    """Compute chance-values for a fitted model.

    Parameters
    ----------
    model : SingleGroupFit or MultiGroupFit
        Output of ``fit()``. Not modified.
    method : {"stochastic", "exact"}
        ``"exact"`` scores all ``n!`` orderings of each row's ``n`` finite
        values; ``"stochastic"`` scores ``nreps`` random orderings.
    nreps : int, default=1000
        Random orderings per row. Ignored by ``"exact"``.
    seed : None, int, SeedSequence or Generator
        Root of the random stream. Fits made with the same seed and data
        draw identical reorderings, which is what ``compare_hypotheses``
        relies on.
    n_jobs : int, default=1
        joblib workers for the per-row loop. 1 = sequential.
    progress : bool, default=False
        Show a progress bar over rows.
    timeout : float, optional
        Seconds before ``FitTimeoutError`` is raised.

    Returns
    -------
    SingleGroupFit or MultiGroupFit
        Copy of ``model`` with chance-values attached.
    """
    spec = CvalSpec(method=method, nreps=nreps)
    if isinstance(n_jobs, bool) or not isinstance(n_jobs, numbers.Integral) or n_jobs == 0:
        raise InvalidConfigError(f"n_jobs must be a non-zero integer, got {n_jobs!r}")
    if timeout is not None and not timeout > 0:
        raise InvalidConfigError(f"timeout must be > 0 seconds, got {timeout!r}")
    if model.kind not in ("single_group", "multi_group"):
        raise InvalidConfigError(
            f"chance-values can only be added to fitted models, got {model.kind!r}"
        )

    if spec.method == "exact":
        check_exact_workload(model.data)
        root, entropy = None, None
    else:
        root = root_seed(seed)
        entropy = _seed_entropy(root)

    t_start = time.monotonic()
    deadline = t_start + timeout if timeout is not None else None
    opts = dict(n_jobs=n_jobs, progress=progress, deadline=deadline, seed_entropy=entropy)
    logger.debug(
        f"Computing {spec.method} chance-values for {model.data.shape[0]} rows "
        f"(nreps={spec.nreps}, n_jobs={n_jobs})"
    )

    if isinstance(model, MultiGroupFit):
        if root is not None:
            group_seeds = spawn_seeds(root, len(model.levels))
        else:
            group_seeds = [None] * len(model.levels)
        groups = {
            lv: _group_chance(model.groups[lv], spec, group_seeds[k], **opts)
            for k, lv in enumerate(model.levels)
        }
        out = dataclasses.replace(model, groups=groups)
    else:
        out = _group_chance(model, spec, root, **opts)

    logger.debug(f"Chance-values done in {time.monotonic() - t_start:.2f}s")
    return out
