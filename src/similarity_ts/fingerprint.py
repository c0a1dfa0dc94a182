# similarity-ts - Find duplicated TypeScript code by structural comparison
# Copyright (C) 2025  Jonathan Louis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Structural fingerprints used to skip hopeless pairs before tree edit distance.

A fingerprint is the bag of node labels of a tree, hashed into a fixed number
of buckets. Every edit operation moves the bag by a bounded amount, so the
distance between two bags yields a lower bound on the tree edit distance and
therefore an upper bound on similarity. Pairs whose upper bound is below the
threshold are rejected; no pair the exact comparator would accept is lost.
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
from sklearn.feature_extraction import FeatureHasher

from .tree import FlatTree


FINGERPRINT_BUCKETS = 256

# Guards the bound against floating point noise
_EPSILON = 1e-9

_hasher = FeatureHasher(
    n_features=FINGERPRINT_BUCKETS,
    input_type="string",
    alternate_sign=False,
)


@dataclass(frozen=True)
class Fingerprint:
    histogram: np.ndarray   # Label counts per bucket
    size: int               # Number of nodes


def fingerprint(tree: FlatTree) -> Fingerprint:
    """Fingerprint a single tree."""
    return fingerprint_trees([tree])[0]


def fingerprint_trees(trees: Sequence[FlatTree]) -> List[Fingerprint]:
    """Fingerprint many trees in one hashing pass."""
    if not trees:
        return []

    matrix = _hasher.transform(tree.labels for tree in trees)
    dense = np.asarray(matrix.todense())
    return [
        Fingerprint(histogram=dense[i].astype(np.int64), size=tree.size)
        for i, tree in enumerate(trees)
    ]


def similarity_upper_bound(fp1: Fingerprint, fp2: Fingerprint, rename_cost: float) -> float:
    """
    Highest similarity the exact comparator could return for this pair.

    Inserting or deleting a node moves the histogram by at most 1 and the
    size by exactly 1; relabeling moves the histogram by at most 2 and leaves
    the size unchanged. With size difference d and histogram distance L the
    edit distance is at least d + min(1, rename_cost / 2) * (L - d).
    """
    larger = max(fp1.size, fp2.size)
    if larger == 0:
        return 1.0

    size_diff = abs(fp1.size - fp2.size)
    l1 = float(np.abs(fp1.histogram - fp2.histogram).sum())
    relabel_unit = min(1.0, rename_cost / 2.0)
    lower_bound = size_diff + relabel_unit * max(0.0, l1 - size_diff)
    return max(0.0, 1.0 - lower_bound / larger)


def might_match(
    fp1: Fingerprint,
    fp2: Fingerprint,
    threshold: float,
    rename_cost: float,
) -> bool:
    """Cheap test that never rejects a pair scoring >= threshold."""
    return similarity_upper_bound(fp1, fp2, rename_cost) + _EPSILON >= threshold
