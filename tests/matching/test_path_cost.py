import pytest

from core.exceptions import InvalidDriverError
from geo.location import Location
from matching.path_cost import UNREACHABLE, bounded_path_cost


@pytest.mark.unit
class TestBoundedPathCost:
    def test_direct_edge_is_squared_distance(self):
        locations = [Location(0, 0), Location(3, 4)]
        assert bounded_path_cost(locations, 1, 2) == 25

    def test_prefers_cheaper_multi_hop_path(self):
        # 0 -> 10 directly costs 100; via 5 costs 25 + 25.
        locations = [Location(0, 0), Location(10, 0), Location(5, 0)]
        assert bounded_path_cost(locations, 1, 2) == 50

    def test_destination_outside_nodes(self):
        assert bounded_path_cost([Location(0, 0)], 1, 2) == UNREACHABLE

    def test_source_outside_nodes(self):
        assert bounded_path_cost([Location(0, 0)], 2, 1) == UNREACHABLE

    def test_empty(self):
        assert bounded_path_cost([], 1, 2) == UNREACHABLE


@pytest.mark.unit
class TestPathCostEstimator:
    def test_same_driver_is_free(self, path_cost):
        assert path_cost.estimate(7, 7, 0) == 0

    def test_full_budget(self, path_cost, make_driver):
        make_driver(location=(0, 0))
        make_driver(location=(10, 0))
        make_driver(location=(5, 0))
        assert path_cost.estimate(1, 2, 100) == 50

    def test_budget_limits_intermediate_nodes(self, path_cost, make_driver):
        make_driver(location=(0, 0))
        make_driver(location=(10, 0))
        make_driver(location=(5, 0))
        assert path_cost.estimate(1, 2, 2) == 100

    def test_destination_beyond_budget_is_unreachable(self, path_cost, make_driver):
        make_driver(location=(0, 0))
        make_driver(location=(10, 0))
        make_driver(location=(5, 0))
        assert path_cost.estimate(1, 3, 2) == UNREACHABLE

    @pytest.mark.parametrize("budget", [0, -3])
    def test_empty_budget_is_unreachable(self, path_cost, make_driver, budget):
        make_driver(location=(0, 0))
        make_driver(location=(1, 0))
        assert path_cost.estimate(1, 2, budget) == UNREACHABLE

    def test_budget_clamped_to_registered_drivers(self, path_cost, make_driver):
        make_driver(location=(0, 0))
        make_driver(location=(1, 1))
        assert path_cost.estimate(2, 1, 10_000) == 2

    @pytest.mark.parametrize("source, destination", [(0, 1), (1, 3), (-1, 2)])
    def test_ids_outside_registered_range(self, path_cost, make_driver, source, destination):
        make_driver()
        make_driver()
        with pytest.raises(InvalidDriverError):
            path_cost.estimate(source, destination, 10)

    def test_ignores_availability(self, path_cost, registry, make_driver):
        make_driver(location=(0, 0))
        middle = make_driver(location=(5, 0), owner="owner-m")
        make_driver(location=(10, 0))
        registry.set_availability(middle, "owner-m", False)
        assert path_cost.estimate(1, 3, 3) == 50
