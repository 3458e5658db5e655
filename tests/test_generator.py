from ipaddress import IPv4Address

from threadroute.datastructures.route_types import BorderRouter, DesiredRoute, Device
from threadroute.routing.generator import generate_routes

from tests.conftest import make_device, make_router

DEVICE_PREFIX = "fd00:1111:2222:3333::/64"
ROUTER_PREFIX = "2001:4860:4860:1234::/64"


def test_two_devices_two_routers_yield_two_routes() -> None:
    devices = [
        make_device("fd00:1111:2222:3333::1", "Light"),
        make_device("fd00:1111:2222:3333::2", "Lock"),
    ]
    routers = [
        make_router("2001:4860:4860:1234::fe", ROUTER_PREFIX, "Router A"),
        make_router("2001:4860:4860:1234::ff", ROUTER_PREFIX, "Router B"),
    ]

    routes = generate_routes(devices, routers)

    assert routes == [
        DesiredRoute(DEVICE_PREFIX, "2001:4860:4860:1234::fe", "Router A"),
        DesiredRoute(DEVICE_PREFIX, "2001:4860:4860:1234::ff", "Router B"),
    ]
    assert [route.router_name for route in routes] == ["Router A", "Router B"]


def test_no_devices() -> None:
    routers = [make_router("2001:4860:4860:1234::ff", ROUTER_PREFIX)]
    assert generate_routes([], routers) == []


def test_no_routers() -> None:
    assert generate_routes([make_device("fd00:1234:5678:9abc::1")], []) == []


def test_devices_and_routers_in_different_prefixes() -> None:
    routes = generate_routes(
        [make_device("fd00:1234:5678:9abc::1")],
        [make_router("2001:4860:4860:5678::ff", "2001:4860:4860:5678::/64")],
    )
    assert len(routes) == 1
    assert routes[0].prefix == "fd00:1234:5678:9abc::/64"


def test_many_devices_in_one_prefix_collapse() -> None:
    devices = [make_device(f"fd00:1111:2222:3333::{n}") for n in range(1, 4)]
    routers = [
        make_router("2001:4860:4860:1234::ff", ROUTER_PREFIX, "Router1"),
        make_router("2001:4860:4860:1234::fe", ROUTER_PREFIX, "Router2"),
    ]

    routes = generate_routes(devices, routers)

    assert len(routes) == 2
    assert {route.prefix for route in routes} == {DEVICE_PREFIX}
    assert all(route.router_name and route.next_hop for route in routes)


def test_invalid_device_addresses_are_skipped() -> None:
    devices = [
        Device(name="Device1", address=None),
        Device(name="Device2", address=IPv4Address("192.168.1.1")),  # type: ignore[arg-type]
    ]
    routers = [make_router("2001:4860:4860:1234::ff", ROUTER_PREFIX)]
    assert generate_routes(devices, routers) == []


def test_invalid_router_addresses_are_skipped() -> None:
    routers = [
        BorderRouter(name="Router1", address=None, prefix=ROUTER_PREFIX),
        BorderRouter(
            name="Router2",
            address=IPv4Address("192.168.1.1"),  # type: ignore[arg-type]
            prefix=ROUTER_PREFIX,
        ),
    ]
    assert generate_routes([make_device("fd00:1111:2222:3333::1")], routers) == []


def test_device_in_router_prefix_needs_no_route() -> None:
    routes = generate_routes(
        [make_device("fd00:1111:2222:3333::1")],
        [make_router("2001:4860:4860:1234::ff", DEVICE_PREFIX)],
    )
    assert routes == []


def test_non_routable_device_prefixes_are_filtered() -> None:
    devices = [make_device("fe80::1"), make_device("ff02::1")]
    routers = [make_router("2001:4860:4860:1234::ff", ROUTER_PREFIX)]
    assert generate_routes(devices, routers) == []


def test_router_with_link_local_prefix_still_routes() -> None:
    routes = generate_routes(
        [make_device("fd00:1111:2222:3333::1")],
        [make_router("2001:4860:4860:1234::ff", "fe80::/64")],
    )
    assert len(routes) == 1


def test_unique_local_next_hop_is_not_used() -> None:
    routes = generate_routes(
        [make_device("fd00:1111:2222:3333::1")],
        [make_router("fd00:aaaa::1", "fd00:aaaa::/64")],
    )
    assert routes == []


def test_duplicate_routers_produce_one_route() -> None:
    routers = [
        make_router("2001:4860:4860:1234::ff", ROUTER_PREFIX, "Router1"),
        make_router("2001:4860:4860:1234:0::ff", ROUTER_PREFIX, "Router1 again"),
    ]
    routes = generate_routes([make_device("fd00:1111:2222:3333::1")], routers)
    assert len(routes) == 1
    assert routes[0].router_name == "Router1"


def test_output_is_sorted() -> None:
    devices = [
        make_device("fd00:9999::1"),
        make_device("fd00:1111::1"),
    ]
    routers = [
        make_router("2001:4860:4860:1234::ff", ROUTER_PREFIX),
        make_router("2001:4860:4860:1234::1", ROUTER_PREFIX),
    ]
    routes = generate_routes(devices, routers)
    assert routes == sorted(routes)
    assert [route.key() for route in routes] == sorted(route.key() for route in routes)
