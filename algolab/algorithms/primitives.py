"""
Low-level data structure routines shared by the algorithm families.

- Binary min-heap sift-down (smallest value at the root)
- Fenwick tree point update / prefix query (1-indexed storage, 0-indexed API)
"""

from __future__ import annotations

from .models import FenwickOperation, HeapSwap


def sift_down(
    array: list[float],
    heap_size: int,
    index: int,
    steps: list[HeapSwap] | None = None,
) -> None:
    """
    Restore the min-heap property below ``index`` in place.

    Swaps the node with its smaller child while that child is smaller,
    considering only positions in ``[0, heap_size)``.
    """
    while True:
        smallest = index
        left = 2 * index + 1
        right = 2 * index + 2

        if left < heap_size and array[left] < array[smallest]:
            smallest = left
        if right < heap_size and array[right] < array[smallest]:
            smallest = right

        if smallest == index:
            return

        array[index], array[smallest] = array[smallest], array[index]
        if steps is not None:
            steps.append(HeapSwap(swapped=(index, smallest), array=list(array)))
        index = smallest


def build_min_heap(array: list[float], steps: list[HeapSwap] | None = None) -> None:
    """Bottom-up heapify of ``array`` in place."""
    for i in range(len(array) // 2 - 1, -1, -1):
        sift_down(array, len(array), i, steps)


def fenwick_update(
    tree: list[float],
    index: int,
    delta: float,
    operations: list[FenwickOperation] | None = None,
) -> None:
    """Add ``delta`` at 0-indexed position ``index``."""
    i = index + 1
    while i < len(tree):
        tree[i] += delta
        if operations is not None:
            operations.append(FenwickOperation(index=i, value=tree[i]))
        i += i & -i


def fenwick_query(tree: list[float], index: int) -> float:
    """Inclusive prefix sum of positions ``0..index``."""
    total = 0
    i = index + 1
    while i > 0:
        total += tree[i]
        i -= i & -i
    return total
