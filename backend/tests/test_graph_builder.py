import copy

import pytest

from domain.models import Direction, RoadClass, RoadNetwork, TilePayload, road_class_weight
from services.graph_builder import merge_tile


def _node(nid, lat, lon):
    return {"type": "node", "id": nid, "lat": lat, "lon": lon}


def _way(wid, nodes, **tags):
    return {"type": "way", "id": wid, "nodes": nodes, "tags": tags}


def _line_payload(*ways):
    nodes = [_node(i, 38.60 + i * 0.001, -90.20) for i in range(1, 6)]
    return TilePayload(elements=nodes + list(ways))


def test_road_class_weights():
    assert road_class_weight("motorway") == 0.6
    assert road_class_weight("tertiary") == 1.0
    assert road_class_weight("service") == 1.5
    assert road_class_weight("unknown-tag") == 1.3
    assert RoadClass.from_tag("living_street") is RoadClass.OTHER


@pytest.mark.parametrize("value", ["yes", "true", "1"])
def test_oneway_values_are_forward_only(value):
    assert Direction.from_oneway_tag(value) is Direction.FORWARD_ONLY


@pytest.mark.parametrize("value", [None, "no", "-1", "reversible"])
def test_other_oneway_values_are_bidirectional(value):
    assert Direction.from_oneway_tag(value) is Direction.BIDIRECTIONAL


def test_oneway_way_only_adds_forward_edges():
    network = RoadNetwork()
    merge_tile(network, _line_payload(_way(10, [1, 2, 3], highway="primary", oneway="yes")))

    assert network.graph[1] == {2: 0.8}
    assert network.graph[2] == {3: 0.8}
    assert 1 not in network.graph[2]
    assert network.graph[3] == {}


def test_two_way_way_adds_both_directions_with_equal_weight():
    network = RoadNetwork()
    merge_tile(network, _line_payload(_way(10, [1, 2, 3], highway="residential")))

    assert network.graph[1][2] == network.graph[2][1] == 1.2
    assert network.graph[2][3] == network.graph[3][2] == 1.2


def test_merging_twice_is_idempotent():
    payload = _line_payload(
        _way(10, [1, 2, 3], highway="primary", oneway="yes"),
        _way(11, [3, 4, 5], highway="motorway"),
    )
    once = RoadNetwork()
    merge_tile(once, payload)
    snapshot = (copy.deepcopy(once.graph), dict(once.coords))

    merge_tile(once, payload)

    assert (once.graph, once.coords) == snapshot


def test_merge_order_does_not_matter():
    a = _line_payload(_way(10, [1, 2, 3], highway="secondary"))
    b = _line_payload(_way(11, [3, 4], highway="trunk", oneway="true"))
    ab, ba = RoadNetwork(), RoadNetwork()
    merge_tile(ab, a)
    merge_tile(ab, b)
    merge_tile(ba, b)
    merge_tile(ba, a)

    assert ab.graph == ba.graph
    assert ab.coords == ba.coords


def test_ways_without_highway_tag_add_nothing():
    network = RoadNetwork()
    merge_tile(network, _line_payload(_way(10, [1, 2, 3], waterway="river")))

    assert network.is_empty
    assert len(network.coords) == 5


def test_edges_to_unknown_points_are_dropped():
    network = RoadNetwork()
    merge_tile(network, _line_payload(_way(10, [1, 2, 99, 3], highway="tertiary")))

    assert network.graph[1] == {2: 1.0}
    assert network.graph[2] == {1: 1.0}
    assert 99 not in network.graph
    assert 3 not in network.graph
    for node_id, neighbors in network.graph.items():
        assert node_id in network.coords
        assert all(n in network.coords for n in neighbors)


def test_unrecognized_road_class_uses_fallback_weight():
    network = RoadNetwork()
    merge_tile(network, _line_payload(_way(10, [4, 5], highway="track")))

    assert network.graph[4][5] == 1.3
    assert network.edge_count == 2
