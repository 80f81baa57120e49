import threading

from relay.state.member_registry import MemberRegistry


def test_upsert_then_lookup(make_conn):
    registry = MemberRegistry()
    a = make_conn("a")

    member = registry.upsert_member(a, "Alice", "ROOM1")

    assert registry.find_by_connection(a) is member
    assert member.display_name == "Alice"
    assert member.room_id == "ROOM1"
    assert member.member_id.startswith("user_")
    assert registry.members_of("ROOM1") == [member]


def test_rejoin_moves_member_between_rooms(make_conn):
    registry = MemberRegistry()
    a, b = make_conn("a"), make_conn("b")
    registry.upsert_member(a, "Alice", "ROOM1")
    registry.upsert_member(b, "Bob", "ROOM1")

    moved = registry.upsert_member(a, "Alice", "ROOM2")

    assert [m.display_name for m in registry.members_of("ROOM1")] == ["Bob"]
    assert registry.members_of("ROOM2") == [moved]
    assert len(registry) == 2


def test_rejoin_issues_fresh_member_id(make_conn):
    registry = MemberRegistry()
    a = make_conn("a")
    first = registry.upsert_member(a, "Alice", "ROOM1")
    second = registry.upsert_member(a, "Alice", "ROOM1")

    assert first.member_id != second.member_id
    assert registry.count("ROOM1") == 1


def test_remove_returns_prior_membership_once(make_conn):
    registry = MemberRegistry()
    a = make_conn("a")
    member = registry.upsert_member(a, "Alice", "ROOM1")

    assert registry.remove_by_connection(a) is member
    assert registry.remove_by_connection(a) is None
    assert registry.find_by_connection(a) is None


def test_remove_unknown_connection_is_noop(make_conn):
    registry = MemberRegistry()
    assert registry.remove_by_connection(make_conn("ghost")) is None
    assert len(registry) == 0


def test_last_member_leaving_drops_room(make_conn):
    registry = MemberRegistry()
    a = make_conn("a")
    registry.upsert_member(a, "Alice", "ROOM1")
    assert registry.room_ids() == ["ROOM1"]

    registry.remove_by_connection(a)

    assert registry.room_ids() == []
    assert registry.members_of("ROOM1") == []
    assert registry.count("ROOM1") == 0


def test_members_of_returns_snapshot(make_conn):
    registry = MemberRegistry()
    a = make_conn("a")
    registry.upsert_member(a, "Alice", "ROOM1")

    snapshot = registry.members_of("ROOM1")
    registry.upsert_member(make_conn("b"), "Bob", "ROOM1")

    assert len(snapshot) == 1
    assert registry.count("ROOM1") == 2


def test_concurrent_rejoins_leave_one_membership_per_connection(make_conn):
    registry = MemberRegistry()
    conns = [make_conn(f"c{i}") for i in range(8)]
    rooms = ["R1", "R2", "R3"]

    def churn(conn):
        for i in range(200):
            registry.upsert_member(conn, conn.name, rooms[i % len(rooms)])

    threads = [threading.Thread(target=churn, args=(c,)) for c in conns]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(registry) == len(conns)
    assert sum(registry.count(r) for r in rooms) == len(conns)
    for conn in conns:
        member = registry.find_by_connection(conn)
        assert member in registry.members_of(member.room_id)
