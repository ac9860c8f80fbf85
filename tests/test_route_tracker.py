import pytest

from models.package import Package, PackageStatus
from models.route import Route, RouteStatus
from models.stop import Stop, StopStatus
from models.user import User
from services.route_tracker import RouteTracker, SCAN_PROGRESSION, counter_delta
from utils.errors import AppError


@pytest.fixture
def user(db):
    user = User(email="tracker@example.com", password_hash="x", first_name="T", last_name="R")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def tracker(db):
    return RouteTracker(db, decrement_on_revert=False)


@pytest.fixture
def route(tracker, user):
    return tracker.create_route(user.user_id, name="Morning Run")


def counters(db, route_id):
    db.expire_all()
    r = db.query(Route).filter(Route.route_id == route_id).one()
    return r.total_stops, r.completed_stops, r.total_packages, r.delivered_packages


def child_counts(db, route_id):
    return (
        db.query(Stop).filter(Stop.route_id == route_id).count(),
        db.query(Stop).filter(Stop.route_id == route_id, Stop.status == StopStatus.COMPLETED).count(),
        db.query(Package).filter(Package.route_id == route_id).count(),
        db.query(Package).filter(Package.route_id == route_id, Package.status == PackageStatus.DELIVERED).count(),
    )


@pytest.mark.parametrize("previous,new,revert,expected", [
    (StopStatus.PENDING, StopStatus.COMPLETED, False, 1),
    (StopStatus.COMPLETED, StopStatus.COMPLETED, False, 0),
    (StopStatus.COMPLETED, StopStatus.SKIPPED, False, 0),
    (StopStatus.COMPLETED, StopStatus.SKIPPED, True, -1),
    (StopStatus.ARRIVED, StopStatus.SKIPPED, True, 0),
])
def test_counter_delta(previous, new, revert, expected):
    assert counter_delta(previous, new, StopStatus.COMPLETED, revert) == expected


def test_scan_progression_table():
    assert SCAN_PROGRESSION == {
        PackageStatus.SCANNED_IN: PackageStatus.OUT_FOR_DELIVERY,
        PackageStatus.OUT_FOR_DELIVERY: PackageStatus.DELIVERED,
    }


def test_new_route_starts_assigned_with_zero_counters(db, route):
    assert route.status == RouteStatus.ASSIGNED
    assert counters(db, route.route_id) == (0, 0, 0, 0)


def test_create_route_rejects_foreign_platform_link(tracker, user):
    with pytest.raises(AppError) as exc:
        tracker.create_route(user.user_id, name="Run", platform_link_id=999)
    assert exc.value.status_code == 404


def test_route_is_invisible_to_other_users(tracker, route):
    with pytest.raises(AppError) as exc:
        tracker.get_route(route.user_id + 1, route.route_id)
    assert exc.value.status_code == 404


def test_add_stop_assigns_next_sequence(db, tracker, route):
    first = tracker.add_stop(route.user_id, route.route_id, address="1 Main St")
    second = tracker.add_stop(route.user_id, route.route_id, address="2 Main St")
    explicit = tracker.add_stop(route.user_id, route.route_id, sequence=10, address="10 Main St")
    after = tracker.add_stop(route.user_id, route.route_id, address="11 Main St")

    assert [first.sequence, second.sequence, explicit.sequence, after.sequence] == [1, 2, 10, 11]
    assert counters(db, route.route_id)[0] == 4


def test_bulk_add_stops_is_contiguous_and_counted_once(db, tracker, route):
    tracker.add_stop(route.user_id, route.route_id, address="Depot")
    stops = tracker.bulk_add_stops(route.user_id, route.route_id, [
        {"address": "A"}, {"address": "B"}, {"address": "C"},
    ])

    assert [s.sequence for s in stops] == [2, 3, 4]
    assert counters(db, route.route_id)[0] == 4


def test_bulk_add_stops_requires_at_least_one(tracker, route):
    with pytest.raises(AppError) as exc:
        tracker.bulk_add_stops(route.user_id, route.route_id, [])
    assert exc.value.status_code == 400


def test_completing_a_stop_twice_counts_once(db, tracker, route):
    stop = tracker.add_stop(route.user_id, route.route_id, address="1 Main St")

    first = tracker.update_stop_status(route.user_id, route.route_id, stop.stop_id, StopStatus.COMPLETED)
    completed_at = first.completed_at
    tracker.update_stop_status(route.user_id, route.route_id, stop.stop_id, StopStatus.COMPLETED)

    assert counters(db, route.route_id)[1] == 1
    assert db.get(Stop, stop.stop_id).completed_at == completed_at


def test_arrived_at_set_on_first_arrival_only(tracker, route):
    stop = tracker.add_stop(route.user_id, route.route_id, address="1 Main St")

    arrived = tracker.update_stop_status(route.user_id, route.route_id, stop.stop_id, StopStatus.ARRIVED)
    first_arrival = arrived.arrived_at
    again = tracker.update_stop_status(route.user_id, route.route_id, stop.stop_id, StopStatus.ARRIVED, notes="gate code 12")

    assert first_arrival is not None
    assert again.arrived_at == first_arrival
    assert again.notes == "gate code 12"


def test_one_way_counters_keep_count_after_revert(db, tracker, route):
    stop = tracker.add_stop(route.user_id, route.route_id, address="1 Main St")
    tracker.update_stop_status(route.user_id, route.route_id, stop.stop_id, StopStatus.COMPLETED)
    tracker.update_stop_status(route.user_id, route.route_id, stop.stop_id, StopStatus.SKIPPED)

    assert counters(db, route.route_id)[1] == 1


def test_reverting_counters_track_child_rows(db, user):
    tracker = RouteTracker(db, decrement_on_revert=True)
    route = tracker.create_route(user.user_id, name="Revert Run")
    stop = tracker.add_stop(user.user_id, route.route_id, address="1 Main St")
    package = tracker.add_package(user.user_id, route.route_id, "TRK-1", barcode="B1")

    tracker.update_stop_status(user.user_id, route.route_id, stop.stop_id, StopStatus.COMPLETED)
    tracker.update_package_status(user.user_id, route.route_id, package.package_id, PackageStatus.DELIVERED)
    tracker.update_stop_status(user.user_id, route.route_id, stop.stop_id, StopStatus.ATTEMPTED)
    tracker.update_package_status(user.user_id, route.route_id, package.package_id, PackageStatus.RETURNED)

    assert counters(db, route.route_id) == child_counts(db, route.route_id) == (1, 0, 1, 0)


def test_add_package_starts_scanned_in(db, tracker, route):
    package = tracker.add_package(route.user_id, route.route_id, "TRK-1", barcode="B1", recipient_name="Pat")

    assert package.status == PackageStatus.SCANNED_IN
    assert package.scanned_at is not None
    assert package.delivered_at is None
    assert counters(db, route.route_id)[2] == 1


def test_add_package_rejects_stop_from_another_route(tracker, route, user):
    other = tracker.create_route(user.user_id, name="Other")
    foreign_stop = tracker.add_stop(user.user_id, other.route_id, address="Elsewhere")

    with pytest.raises(AppError) as exc:
        tracker.add_package(user.user_id, route.route_id, "TRK-1", stop_id=foreign_stop.stop_id)
    assert exc.value.status_code == 404


def test_duplicate_barcode_on_route_conflicts(db, tracker, route):
    tracker.add_package(route.user_id, route.route_id, "TRK-1", barcode="B1")

    with pytest.raises(AppError) as exc:
        tracker.add_package(route.user_id, route.route_id, "TRK-2", barcode="B1")
    assert exc.value.status_code == 409
    assert counters(db, route.route_id)[2] == 1


def test_packages_without_barcode_may_repeat(db, tracker, route):
    tracker.add_package(route.user_id, route.route_id, "TRK-1")
    tracker.add_package(route.user_id, route.route_id, "TRK-2")

    assert counters(db, route.route_id)[2] == 2


def test_scan_walks_the_progression_and_counts_delivery_once(db, tracker, route):
    tracker.add_package(route.user_id, route.route_id, "TRK-1", barcode="B1")

    statuses = [tracker.scan_package(route.user_id, route.route_id, "B1").status for _ in range(4)]

    assert statuses == [
        PackageStatus.OUT_FOR_DELIVERY,
        PackageStatus.DELIVERED,
        PackageStatus.DELIVERED,
        PackageStatus.DELIVERED,
    ]
    assert counters(db, route.route_id)[3] == 1


def test_scan_leaves_returned_package_alone(db, tracker, route):
    package = tracker.add_package(route.user_id, route.route_id, "TRK-1", barcode="B1")
    tracker.update_package_status(route.user_id, route.route_id, package.package_id, PackageStatus.RETURNED)

    scanned = tracker.scan_package(route.user_id, route.route_id, "B1")

    assert scanned.status == PackageStatus.RETURNED
    assert counters(db, route.route_id)[3] == 0


def test_scan_unknown_barcode_is_not_found(tracker, route):
    with pytest.raises(AppError) as exc:
        tracker.scan_package(route.user_id, route.route_id, "NOPE")
    assert exc.value.status_code == 404


def test_explicit_delivery_sets_timestamp_once(db, tracker, route):
    package = tracker.add_package(route.user_id, route.route_id, "TRK-1")

    first = tracker.update_package_status(route.user_id, route.route_id, package.package_id, PackageStatus.DELIVERED)
    delivered_at = first.delivered_at
    again = tracker.update_package_status(
        route.user_id, route.route_id, package.package_id, PackageStatus.DELIVERED, recipient_name="Front desk"
    )

    assert delivered_at is not None
    assert again.delivered_at == delivered_at
    assert again.recipient_name == "Front desk"
    assert counters(db, route.route_id)[3] == 1


def test_route_status_timestamps_are_set_once(tracker, route):
    started = tracker.update_route_status(route.user_id, route.route_id, RouteStatus.IN_PROGRESS)
    started_at = started.started_at
    tracker.update_route_status(route.user_id, route.route_id, RouteStatus.ASSIGNED)
    again = tracker.update_route_status(route.user_id, route.route_id, RouteStatus.IN_PROGRESS)
    done = tracker.update_route_status(route.user_id, route.route_id, RouteStatus.COMPLETED)

    assert again.started_at == started_at
    assert done.completed_at is not None


def test_list_packages_filters_by_status(tracker, route):
    tracker.add_package(route.user_id, route.route_id, "TRK-1", barcode="B1")
    tracker.add_package(route.user_id, route.route_id, "TRK-2", barcode="B2")
    tracker.scan_package(route.user_id, route.route_id, "B2")

    out = tracker.list_packages(route.user_id, route.route_id, status=PackageStatus.OUT_FOR_DELIVERY)

    assert [p.tracking_number for p in out] == ["TRK-2"]
    assert len(tracker.list_packages(route.user_id, route.route_id)) == 2
