"""Shared fixtures for the similarity-ts test suite."""

from dataclasses import dataclass, field
from typing import List, Optional

import pytest

from similarity_ts.config import SimilarityConfig


@dataclass
class Node:
    """Hand-built syntax node satisfying the SyntaxNode protocol."""

    kind: str
    children: List["Node"] = field(default_factory=list)
    value: Optional[str] = None
    start_line: int = 1
    end_line: int = 1


def leaf(kind: str, value: str) -> Node:
    return Node(kind, value=value)


def chain(depth: int, kind: str = "block") -> Node:
    """A path of ``depth`` nodes ending in an identifier leaf."""
    node = leaf("identifier", "x")
    for _ in range(depth - 1):
        node = Node(kind, [node])
    return node


ADD_FUNCTIONS = """\
function calculateTotal(items: number[]): number {
    let total = 0;
    for (const item of items) {
        total += item;
    }
    return total;
}

function sumItems(items: number[]): number {
    let total = 0;
    for (const item of items) {
        total += item;
    }
    return total;
}

function greet(name: string): string {
    const message = "Hello, " + name;
    console.log(message);
    return message.toUpperCase();
}
"""

RENAMED_SUM = """\
function computeSum(values: number[]): number {
    let sum = 0;
    for (const value of values) {
        sum += value;
    }
    return sum;
}
"""

USER_TYPES = """\
interface User {
    id: string;
    name: string;
    email: string;
    age?: number;
}

type Person = {
    id: string;
    name: string;
    email: string;
    age: number;
};

interface Product {
    sku: number;
    price: number;
    inStock: boolean;
}

type Status = "active" | "inactive";
"""

TYPE_LITERALS = """\
interface Point {
    x: number;
    y: number;
}

function makePoint(seed: number): { x: number; y: number } {
    return { x: seed, y: seed };
}

function move(delta: { x: number; y: number }, steps: number) {
    return steps;
}

const origin: { x: number; y: number } = { x: 0, y: 0 };
"""

OVERLAP_SOURCE = """\
function first(user) {
    const a = user.name.trim();
    const b = user.email.toLowerCase();
    if (a.length > 0 && b.length > 0) {
        console.log(a, b);
    }
    return a + b;
}
"""

OVERLAP_TARGET = """\
function second(account) {
    const a = account.name.trim();
    const b = account.email.toLowerCase();
    if (a.length > 0 && b.length > 0) {
        console.log(a, b);
    }
    return a + b;
}
"""


CARD_COMPONENT = """\
export function Card({ title, children }) {
    const heading = title.trim();
    return (
        <div className="card">
            <h2>{heading}</h2>
            {children}
        </div>
    );
}
"""


BROKEN_SOURCE = """\
function broken( {
    return 1 +;
"""


@pytest.fixture
def config() -> SimilarityConfig:
    """Default settings with a single worker for reproducible runs."""
    return SimilarityConfig(workers=1)


@pytest.fixture
def project(tmp_path):
    """A small project tree on disk."""
    src = tmp_path / "src"
    src.mkdir()
    (src / "math.ts").write_text(ADD_FUNCTIONS)
    (src / "types.ts").write_text(USER_TYPES)
    (src / "broken.ts").write_text(BROKEN_SOURCE)
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "dep.ts").write_text(ADD_FUNCTIONS)
    return tmp_path
