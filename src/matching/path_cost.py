"""Bounded shortest-path cost between two drivers.

Drivers form a fully connected graph whose edge weight is the squared
planar distance between two drivers. The query only considers the first
``max_nodes_to_scan`` driver ids, which gives callers a predictable cost
ceiling: at most O(n^2) distance evaluations for a budget of n.
"""

import logging

from core.exceptions import InvalidDriverError
from geo.location import Location, squared_distance
from matching.driver_registry import DriverRegistry
from metrics.prometheus_exporter import dispatch_path_scan_nodes

logger = logging.getLogger(__name__)

# Larger than any reachable cost; means "no path found", not a distance.
UNREACHABLE = 2**256 - 1


def bounded_path_cost(locations: list[Location], source: int, destination: int) -> int:
    """Dijkstra over nodes ``1..len(locations)`` (``locations[i - 1]`` is node i).

    Selection picks the unvisited node with the smallest tentative distance,
    lowest id first on ties. Stops as soon as the destination is selected or
    no unvisited node has a finite distance.
    """
    node_count = len(locations)
    distance = [UNREACHABLE] * (node_count + 1)
    visited = [False] * (node_count + 1)
    if 1 <= source <= node_count:
        distance[source] = 0

    for _ in range(node_count):
        current = 0
        for node in range(1, node_count + 1):
            if not visited[node] and (current == 0 or distance[node] < distance[current]):
                current = node

        if current == 0 or distance[current] == UNREACHABLE:
            break

        visited[current] = True
        if current == destination:
            break

        origin = locations[current - 1]
        for neighbour in range(1, node_count + 1):
            if visited[neighbour]:
                continue
            candidate = distance[current] + squared_distance(origin, locations[neighbour - 1])
            if candidate < distance[neighbour]:
                distance[neighbour] = candidate

    if 1 <= destination <= node_count:
        return distance[destination]
    return UNREACHABLE


class PathCostEstimator:
    """Read-only path cost queries over the driver registry."""

    def __init__(self, registry: DriverRegistry) -> None:
        self._registry = registry

    def estimate(self, source_driver_id: int, dest_driver_id: int, max_nodes_to_scan: int) -> int:
        """Shortest path cost from source to destination within the scan budget.

        Args:
            source_driver_id: Starting driver
            dest_driver_id: Target driver
            max_nodes_to_scan: Only driver ids 1..max_nodes_to_scan take part;
                clamped to the number of registered drivers

        Returns:
            The path cost, 0 when source equals destination, or UNREACHABLE
            if the destination was not reached inside the scanned subset.

        Raises:
            InvalidDriverError: either id is outside the registered range
        """
        if source_driver_id == dest_driver_id:
            return 0

        positions = self._registry.snapshot()
        registered = len(positions)
        for driver_id in (source_driver_id, dest_driver_id):
            if not 1 <= driver_id <= registered:
                raise InvalidDriverError(
                    f"Driver {driver_id} is outside the registered range 1..{registered}",
                    {"driver_id": driver_id, "registered": registered},
                )

        budget = max(0, min(max_nodes_to_scan, registered))
        dispatch_path_scan_nodes.observe(budget)

        cost = bounded_path_cost(
            [position.location for position in positions[:budget]],
            source_driver_id,
            dest_driver_id,
        )
        logger.debug(
            f"Path cost {source_driver_id}->{dest_driver_id} with budget {budget}: "
            f"{'unreachable' if cost == UNREACHABLE else cost}"
        )
        return cost
