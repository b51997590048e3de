from __future__ import annotations

from domain.models import ConnectionPath, IncomingStub, Point
from domain.services.flow_label import (
    can_add_connection,
    create_outbound_capacity_resolver,
    default_capacity_for_label,
    get_behavior_for_id,
    resolve_flow_label,
    sync_incoming_stub_labels,
)


def _link(from_id: str, to_id: str) -> ConnectionPath:
    return ConnectionPath(from_id=from_id, to_id=to_id, points=(Point(0, 0), Point(1, 1)))


def test_behavior_lookup_by_prefix() -> None:
    converter = get_behavior_for_id("converter-3")
    combiner = get_behavior_for_id("combiner-0")
    assert converter is not None and converter.max_incoming == 1
    assert combiner is not None and combiner.max_incoming == 2
    assert get_behavior_for_id("root-A") is None
    assert get_behavior_for_id("incoming-1") is None


def test_resource_label_is_its_stored_label() -> None:
    assert resolve_flow_label("root-A", {"root-A": "A"}, []) == "A"
    assert resolve_flow_label("missing", {}, []) is None


def test_idle_converter_keeps_placeholder_label() -> None:
    labels = {"converter-0": "1/a"}
    assert resolve_flow_label("converter-0", labels, []) == "1/a"


def test_converter_converts_upstream_label() -> None:
    labels = {"root-B": "B", "converter-0": "1/a"}
    connections = [_link("root-B", "converter-0")]
    assert resolve_flow_label("converter-0", labels, connections) == "2"


def test_chained_converters_round_trip_letters() -> None:
    labels = {"root-C": "C", "converter-0": "1/a", "converter-1": "1/a"}
    connections = [_link("root-C", "converter-0"), _link("converter-0", "converter-1")]
    assert resolve_flow_label("converter-1", labels, connections) == "C"


def test_combiner_sums_and_concatenates_inputs() -> None:
    labels = {"a": "3", "b": "4", "x": "c", "y": "a", "combiner-0": "+", "combiner-1": "+"}
    connections = [
        _link("a", "combiner-0"),
        _link("b", "combiner-0"),
        _link("x", "combiner-1"),
        _link("y", "combiner-1"),
    ]
    assert resolve_flow_label("combiner-0", labels, connections) == "7"
    assert resolve_flow_label("combiner-1", labels, connections) == "ca"


def test_combiner_with_mismatched_inputs_falls_back_to_placeholder() -> None:
    labels = {"x": "a", "n": "3", "combiner-0": "+"}
    connections = [_link("x", "combiner-0"), _link("n", "combiner-0")]
    assert resolve_flow_label("combiner-0", labels, connections) == "+"


def test_combiner_branches_resolve_shared_upstream_independently() -> None:
    labels = {"root-B": "B", "converter-0": "1/a", "combiner-0": "+"}
    connections = [
        _link("root-B", "converter-0"),
        _link("converter-0", "combiner-0"),
        _link("converter-0", "combiner-0"),
    ]
    assert resolve_flow_label("combiner-0", labels, connections) == "4"


def test_cycle_terminates_with_stored_label() -> None:
    labels = {"converter-0": "1/a", "converter-1": "1/a"}
    connections = [_link("converter-0", "converter-1"), _link("converter-1", "converter-0")]
    assert resolve_flow_label("converter-0", labels, connections) == "1/a"


def test_default_capacity_uses_alphabet_position() -> None:
    assert default_capacity_for_label("A") == 1
    assert default_capacity_for_label("c") == 3
    assert default_capacity_for_label("Z") == 26
    assert default_capacity_for_label("AB") == 1
    assert default_capacity_for_label("") == 1
    assert default_capacity_for_label("7") == 1


def test_outbound_resolver_adds_boost() -> None:
    resolver = create_outbound_capacity_resolver(lambda label: 2, lambda node_id: 3)
    assert resolver("root-B", "B") == 5
    assert create_outbound_capacity_resolver()("root-C", "C") == 3


def test_converter_rejects_second_outgoing() -> None:
    existing = [_link("converter-0", "root-A")]
    assert not can_add_connection(_link("converter-0", "root-B"), existing, {})


def test_converter_rejects_second_incoming() -> None:
    existing = [_link("root-A", "converter-0")]
    assert not can_add_connection(_link("root-B", "converter-0"), existing, {})


def test_combiner_accepts_two_matching_inputs_only() -> None:
    labels = {"n1": "3", "n2": "4", "n3": "5", "t": "a", "combiner-0": "+"}
    existing = [_link("n1", "combiner-0")]
    assert can_add_connection(_link("n2", "combiner-0"), existing, labels)
    assert not can_add_connection(_link("t", "combiner-0"), existing, labels)
    full = [*existing, _link("n2", "combiner-0")]
    assert not can_add_connection(_link("n3", "combiner-0"), full, labels)


def test_combiner_rejects_input_without_label() -> None:
    labels = {"n1": "3", "combiner-0": "+"}
    existing = [_link("n1", "combiner-0")]
    assert not can_add_connection(_link("blank", "combiner-0"), existing, labels)


def test_resource_capacity_limits_outgoing_connections() -> None:
    labels = {"root-B": "B", "x": "", "y": "", "z": ""}
    resources = frozenset({"root-B"})
    existing = [_link("root-B", "x"), _link("root-B", "y")]
    assert can_add_connection(_link("root-B", "x"), existing[:1], labels, resources)
    assert not can_add_connection(_link("root-B", "z"), existing, labels, resources)


def test_capacity_check_uses_injected_resolver() -> None:
    labels = {"root-A": "A"}
    resources = frozenset({"root-A"})
    existing = [_link("root-A", "x")]
    assert not can_add_connection(_link("root-A", "y"), existing, labels, resources)
    assert can_add_connection(
        _link("root-A", "y"),
        existing,
        labels,
        resources,
        get_outbound_capacity_for_node=lambda node_id, label: 2,
    )


def test_non_resource_sources_skip_capacity_check() -> None:
    existing = [_link("incoming-0", "x")]
    assert can_add_connection(_link("incoming-0", "y"), existing, {"incoming-0": "A"})


def test_sync_incoming_stub_labels_replaces_stale_entries() -> None:
    labels = {"root-A": "A", "incoming-old": "Z"}
    stub = IncomingStub(
        id="incoming-7", label="3", source_id="root-C", start=Point(0, 0), end=Point(1, 1)
    )
    sync_incoming_stub_labels(labels, [stub])
    assert labels == {"root-A": "A", "incoming-7": "3"}


def test_converter_with_unlabelled_upstream_keeps_placeholder() -> None:
    labels = {"blank": "", "converter-0": "1/a", "converter-1": "1/a"}
    connections = [_link("ghost", "converter-0"), _link("blank", "converter-1")]
    assert resolve_flow_label("converter-0", labels, connections) == "1/a"
    assert resolve_flow_label("converter-1", labels, connections) == "1/a"
