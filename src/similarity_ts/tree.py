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
Parser-agnostic tree view and tree edit distance.

Any front-end parser can feed the comparison engines as long as its nodes
expose a kind, child nodes, an optional leaf value and a line span. Trees are
flattened into postorder arrays once at extraction time, so workers can
share them read-only.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple


# Insert/delete cost for structural nodes
INDEL_COST = 1.0

# Weight of the relative size difference when size penalty is enabled
SIZE_PENALTY_WEIGHT = 0.5


class SyntaxNode(Protocol):
    """Minimal view of a parsed node that the engines rely on."""

    @property
    def kind(self) -> str: ...

    @property
    def children(self) -> Sequence["SyntaxNode"]: ...

    @property
    def value(self) -> Optional[str]: ...

    @property
    def start_line(self) -> int: ...

    @property
    def end_line(self) -> int: ...


def node_label(node: SyntaxNode) -> str:
    """Label used for relabel comparisons: kind, plus leaf text if any."""
    if node.value is not None:
        return f"{node.kind}:{node.value}"
    return node.kind


@dataclass(frozen=True)
class FlatTree:
    """
    Arena representation of a tree in postorder.

    Node ``i`` has label ``labels[i]``, child indices ``children[i]`` and
    leftmost leaf descendant ``leftmost[i]``. The root is the last node.
    """

    labels: Tuple[str, ...]
    children: Tuple[Tuple[int, ...], ...]
    leftmost: Tuple[int, ...]
    keyroots: Tuple[int, ...]

    @property
    def size(self) -> int:
        return len(self.labels)

    @property
    def root(self) -> int:
        return len(self.labels) - 1

    def order_key(self) -> Tuple[int, Tuple[str, ...]]:
        """Total order used to canonicalize operand order."""
        return (self.size, self.labels)

    @classmethod
    def from_node(cls, root: SyntaxNode) -> "FlatTree":
        """Flatten a single tree."""
        labels: List[str] = []
        children: List[Tuple[int, ...]] = []
        leftmost: List[int] = []
        _append_postorder(root, labels, children, leftmost)
        return cls._build(labels, children, leftmost)

    @classmethod
    def from_forest(cls, roots: Iterable[SyntaxNode], root_label: str = "window") -> "FlatTree":
        """Flatten a run of sibling trees under one synthetic root."""
        labels: List[str] = []
        children: List[Tuple[int, ...]] = []
        leftmost: List[int] = []
        top: List[int] = []
        for root in roots:
            top.append(_append_postorder(root, labels, children, leftmost))

        index = len(labels)
        labels.append(root_label)
        children.append(tuple(top))
        leftmost.append(leftmost[top[0]] if top else index)
        return cls._build(labels, children, leftmost)

    @classmethod
    def _build(cls, labels, children, leftmost) -> "FlatTree":
        # A keyroot is the highest node for each distinct leftmost leaf
        seen = set()
        keyroots = []
        for i in range(len(labels) - 1, -1, -1):
            if leftmost[i] not in seen:
                seen.add(leftmost[i])
                keyroots.append(i)
        keyroots.reverse()
        return cls(
            labels=tuple(labels),
            children=tuple(children),
            leftmost=tuple(leftmost),
            keyroots=tuple(keyroots),
        )


def _append_postorder(root, labels, children, leftmost) -> int:
    """Append the subtree rooted at ``root`` in postorder; return its index."""
    stack = [(root, iter(root.children), [])]
    index = -1

    while stack:
        node, child_iter, done = stack[-1]
        child = next(child_iter, None)
        if child is not None:
            stack.append((child, iter(child.children), []))
            continue

        stack.pop()
        index = len(labels)
        labels.append(node_label(node))
        children.append(tuple(done))
        leftmost.append(leftmost[done[0]] if done else index)
        if stack:
            stack[-1][2].append(index)

    return index


def count_nodes(root: SyntaxNode) -> int:
    """Number of nodes in a subtree, as FlatTree.from_node would produce."""
    total = 0
    stack = [root]
    while stack:
        node = stack.pop()
        total += 1
        stack.extend(node.children)
    return total


def tree_edit_distance(t1: FlatTree, t2: FlatTree, rename_cost: float) -> float:
    """
    Zhang-Shasha tree edit distance.

    Insertions and deletions cost 1.0; relabeling a node costs ``rename_cost``
    when the labels differ and nothing when they match.
    """
    n, m = t1.size, t2.size
    if n == 0:
        return m * INDEL_COST
    if m == 0:
        return n * INDEL_COST

    labels1, labels2 = t1.labels, t2.labels
    l1, l2 = t1.leftmost, t2.leftmost
    treedist = [[0.0] * m for _ in range(n)]

    for i in t1.keyroots:
        for j in t2.keyroots:
            li, lj = l1[i], l2[j]
            rows = i - li + 2
            cols = j - lj + 2

            forest = [[0.0] * cols for _ in range(rows)]
            for x in range(1, rows):
                forest[x][0] = forest[x - 1][0] + INDEL_COST
            for y in range(1, cols):
                forest[0][y] = forest[0][y - 1] + INDEL_COST

            for x in range(1, rows):
                a = li + x - 1
                la = l1[a]
                prev_row = forest[x - 1]
                row = forest[x]
                for y in range(1, cols):
                    b = lj + y - 1
                    delete = prev_row[y] + INDEL_COST
                    insert = row[y - 1] + INDEL_COST
                    if la == li and l2[b] == lj:
                        relabel = 0.0 if labels1[a] == labels2[b] else rename_cost
                        best = min(delete, insert, prev_row[y - 1] + relabel)
                        row[y] = best
                        treedist[a][b] = best
                    else:
                        subtree = forest[la - li][l2[b] - lj] + treedist[a][b]
                        row[y] = min(delete, insert, subtree)

    return treedist[n - 1][m - 1]


def size_penalty_factor(size1: int, size2: int) -> float:
    """Multiplicative penalty that grows with the relative size difference."""
    larger = max(size1, size2)
    if larger == 0:
        return 1.0
    relative_diff = abs(size1 - size2) / larger
    return 1.0 - SIZE_PENALTY_WEIGHT * relative_diff


def tree_similarity(
    t1: FlatTree,
    t2: FlatTree,
    rename_cost: float,
    size_penalty: bool = True,
) -> float:
    """
    Normalized similarity in [0, 1] derived from tree edit distance.

    The operands are ordered canonically first, so the result does not
    depend on argument order.
    """
    if t2.order_key() < t1.order_key():
        t1, t2 = t2, t1

    larger = max(t1.size, t2.size)
    if larger == 0:
        return 1.0

    distance = tree_edit_distance(t1, t2, rename_cost)
    similarity = max(0.0, 1.0 - distance / larger)
    if size_penalty:
        similarity *= size_penalty_factor(t1.size, t2.size)
    return min(1.0, similarity)
