from threadroute.datastructures.route_types import (
    DesiredRoute,
    RouteKey,
    RouterRoute,
    managed_label,
)
from threadroute.routing.reconciler import GraceTracker, reconcile

GRACE = 600.0
NOW = 10_000.0
NEXT_HOP = "2001:4860:4860:1234::ff"


def managed(prefix: str, route_id: str = "", next_hop: str = NEXT_HOP) -> RouterRoute:
    return RouterRoute(
        prefix=prefix, next_hop=next_hop, label=managed_label("Router"), id=route_id
    )


def desired(prefix: str, next_hop: str = NEXT_HOP) -> DesiredRoute:
    return DesiredRoute(prefix=prefix, next_hop=next_hop, router_name="Router")


def test_add_missing_and_remove_expired() -> None:
    route_a = managed("fd00:aaaa::/64", "a")
    route_b = managed("fd00:bbbb::/64", "b")
    tracker = GraceTracker()
    tracker.touch(route_a.key(), NOW - 300)
    tracker.touch(route_b.key(), NOW - 900)

    result = reconcile(
        [route_a, route_b],
        [desired("fd00:aaaa::/64"), desired("fd00:cccc::/64")],
        tracker,
        GRACE,
        NOW,
    )

    assert [route.prefix for route in result.to_add] == ["fd00:cccc::/64"]
    assert result.to_remove == [route_b]
    assert result.changed is True
    assert tracker.last_seen(route_a.key()) == NOW
    assert tracker.last_seen(RouteKey.of("fd00:cccc::/64", NEXT_HOP)) == NOW


def test_added_routes_are_enabled_and_labelled() -> None:
    result = reconcile([], [desired("fd00:cccc::/64")], GraceTracker(), GRACE, NOW)

    (route,) = result.to_add
    assert route.enabled is True
    assert route.id == ""
    assert route.label == "Thread route via Router"
    assert route.managed


def test_untracked_absent_route_gets_full_grace_period() -> None:
    route = managed("fd00:bbbb::/64", "b")
    tracker = GraceTracker()

    first = reconcile([route], [], tracker, GRACE, NOW)
    assert first.to_remove == []
    assert tracker.last_seen(route.key()) == NOW

    almost = reconcile([route], [], tracker, GRACE, NOW + GRACE - 1)
    assert almost.to_remove == []

    expired = reconcile([route], [], tracker, GRACE, NOW + GRACE)
    assert expired.to_remove == [route]


def test_grace_boundary() -> None:
    route = managed("fd00:bbbb::/64", "b")

    inside = GraceTracker()
    inside.touch(route.key(), NOW - GRACE + 1)
    assert reconcile([route], [], inside, GRACE, NOW).to_remove == []

    outside = GraceTracker()
    outside.touch(route.key(), NOW - GRACE - 1)
    assert reconcile([route], [], outside, GRACE, NOW).to_remove == [route]

    exact = GraceTracker()
    exact.touch(route.key(), NOW - GRACE)
    assert reconcile([route], [], exact, GRACE, NOW).to_remove == [route]


def test_unmanaged_routes_are_never_removed() -> None:
    manual = RouterRoute(
        prefix="fd00:dddd::/64", next_hop=NEXT_HOP, label="my manual route", id="m"
    )
    tracker = GraceTracker()
    tracker.touch(manual.key(), NOW - 10 * GRACE)

    result = reconcile([manual], [], tracker, GRACE, NOW)

    assert result.to_remove == []
    assert result.to_add == []
    assert tracker.last_seen(manual.key()) == NOW - 10 * GRACE


def test_unmanaged_route_satisfies_desired_key() -> None:
    manual = RouterRoute(prefix="fd00:aaaa::/64", next_hop=NEXT_HOP, label="manual")
    result = reconcile([manual], [desired("fd00:aaaa::/64")], GraceTracker(), GRACE, NOW)
    assert result.to_add == []


def test_keys_compare_normalized() -> None:
    current = managed("fd00:aaaa:0::/64", "a", next_hop="2001:4860:4860:1234:0:0:0:ff")
    result = reconcile([current], [desired("fd00:aaaa::/64")], GraceTracker(), GRACE, NOW)
    assert result.changed is False


def test_same_prefix_different_next_hop_is_a_different_route() -> None:
    current = managed("fd00:aaaa::/64", "a", next_hop="2001:4860:4860:1234::fe")
    tracker = GraceTracker()
    tracker.touch(current.key(), NOW - 2 * GRACE)

    result = reconcile([current], [desired("fd00:aaaa::/64")], tracker, GRACE, NOW)

    assert [route.next_hop for route in result.to_add] == [NEXT_HOP]
    assert result.to_remove == [current]


def test_zero_grace_period_removes_immediately_once_tracked() -> None:
    route = managed("fd00:bbbb::/64", "b")
    tracker = GraceTracker()
    tracker.touch(route.key(), NOW)
    assert reconcile([route], [], tracker, 0.0, NOW).to_remove == [route]


def test_duplicate_desired_entries_add_once() -> None:
    result = reconcile(
        [], [desired("fd00:cccc::/64"), desired("fd00:cccc::/64")], GraceTracker(), GRACE, NOW
    )
    assert len(result.to_add) == 1


class TestGraceTracker:
    def test_seed_only_when_untracked(self) -> None:
        tracker = GraceTracker()
        key = RouteKey.of("fd00:aaaa::/64", NEXT_HOP)
        assert tracker.seed(key, 1.0) is True
        assert tracker.seed(key, 2.0) is False
        assert tracker.last_seen(key) == 1.0
        assert key in tracker
        assert len(tracker) == 1

    def test_remaining_and_pending(self) -> None:
        tracker = GraceTracker()
        soon = RouteKey.of("fd00:aaaa::/64", NEXT_HOP)
        later = RouteKey.of("fd00:bbbb::/64", NEXT_HOP)
        gone = RouteKey.of("fd00:cccc::/64", NEXT_HOP)
        tracker.touch(soon, NOW - 500)
        tracker.touch(later, NOW - 100)
        tracker.touch(gone, NOW - 700)

        assert tracker.remaining(soon, GRACE, NOW) == 100
        assert tracker.remaining(gone, GRACE, NOW) == 0.0
        assert tracker.remaining(RouteKey.of("fd00::/64", NEXT_HOP), GRACE, NOW) is None
        assert tracker.pending(GRACE, NOW) == [(soon, 100), (later, 500)]

    def test_forget(self) -> None:
        tracker = GraceTracker()
        key = RouteKey.of("fd00:aaaa::/64", NEXT_HOP)
        tracker.touch(key, NOW)
        assert tracker.forget(key) is True
        assert tracker.forget(key) is False
        assert list(tracker) == []
