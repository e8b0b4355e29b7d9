from domain.models import LatLng, RoadNetwork
from services.road_snapper import snap_to_road


def _network():
    network = RoadNetwork()
    network.coords.update({
        1: LatLng(38.60, -90.20),
        2: LatLng(38.61, -90.21),
        3: LatLng(38.70, -90.30),
        4: LatLng(38.6001, -90.2001),  # coordinate only, no edges
    })
    network.graph.update({1: {2: 1.0}, 2: {1: 1.0, 3: 1.0}, 3: {2: 1.0}})
    return network


def test_snap_on_empty_graph_returns_none():
    assert snap_to_road(RoadNetwork(), 38.6, -90.2) is None


def test_snap_returns_nearest_graph_node():
    network = _network()
    assert snap_to_road(network, 38.611, -90.209) == 2
    assert snap_to_road(network, 39.5, -91.0) == 3


def test_snap_ignores_points_that_are_not_graph_nodes():
    assert snap_to_road(_network(), 38.6001, -90.2001) == 1
