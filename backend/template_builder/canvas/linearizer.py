"""
Topological Linearizer: order task nodes so dependencies come first.

Kahn's algorithm over task slugs. The zero in-degree queue is seeded in
the order slugs are first met while scanning the nodes, so the result is
deterministic without sorting.
"""

from __future__ import annotations

from collections import deque
from logging import getLogger
from typing import Dict, List, Sequence

from template_builder.canvas.canvas_errors import CyclicDependencyError
from template_builder.canvas.canvas_model import TaskNode, parse_slug_list

logger = getLogger(__name__)


def linearize(task_nodes: Sequence[TaskNode]) -> List[str]:
    """Return task slugs in a dependency-respecting order.

    Raises:
        CyclicDependencyError: If the dependencies cannot all be ordered.
    """
    dependents: Dict[str, List[str]] = {}
    in_degree: Dict[str, int] = {}

    for node in task_nodes:
        slug = node.data.slug.strip()
        dependents.setdefault(slug, [])
        in_degree.setdefault(slug, 0)

        for dep in parse_slug_list(node.data.dependent_task_slug):
            dependents.setdefault(dep, [])
            in_degree.setdefault(dep, 0)
            dependents[dep].append(slug)
            in_degree[slug] += 1

    queue = deque(slug for slug, degree in in_degree.items() if degree == 0)
    order: List[str] = []

    while queue:
        current = queue.popleft()
        order.append(current)
        for dependent in dependents[current]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    if len(order) < len(in_degree):
        unresolved = [slug for slug, degree in in_degree.items() if degree > 0]
        logger.warning(f"Dependency cycle detected among: {unresolved}")
        raise CyclicDependencyError(unresolved)

    return order


def order_task_nodes(task_nodes: Sequence[TaskNode]) -> List[TaskNode]:
    """Linearize and map slugs back to nodes.

    Slugs with no matching node (dependencies on tasks absent from the
    canvas) are dropped.
    """
    by_slug: Dict[str, TaskNode] = {}
    for node in task_nodes:
        by_slug.setdefault(node.data.slug.strip(), node)

    ordered: List[TaskNode] = []
    for slug in linearize(task_nodes):
        node = by_slug.get(slug)
        if node is not None:
            ordered.append(node)
    return ordered
