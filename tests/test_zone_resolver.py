import asyncio

import pytest

from praise_admin.domain.errors import ResolutionError
from praise_admin.domain.roles import UserRole
from praise_admin.domain.zones import ZoneTable
from praise_admin.session.zone_resolver import ZoneResolver

SUPER_ADMIN_EMAIL = "boss@example.org"


@pytest.mark.asyncio
async def test_super_admin_gets_every_zone_without_lookups(zone_table, memberships) -> None:
    memberships.add_zone("boss", "zone-2", "member")
    resolver = ZoneResolver(zone_table, memberships)

    state = (await resolver.resolve("boss", SUPER_ADMIN_EMAIL)).unwrap()

    assert state.role is UserRole.SUPER_ADMIN
    assert state.is_super_admin
    assert state.user_zones == zone_table.zones
    assert state.current_zone_id == "zone-1"
    assert sum(memberships.calls.values()) == 0
    assert resolver.fetch_count == 0


@pytest.mark.asyncio
async def test_super_admin_honours_preference(zone_table, memberships) -> None:
    resolver = ZoneResolver(zone_table, memberships)
    state = (await resolver.resolve("boss", SUPER_ADMIN_EMAIL, "hq-1")).unwrap()

    assert state.current_zone_id == "hq-1"
    assert state.role is UserRole.SUPER_ADMIN


@pytest.mark.asyncio
async def test_coordinator_membership(zone_table, memberships) -> None:
    memberships.add_zone("u1", "zone-1", "coordinator")
    resolver = ZoneResolver(zone_table, memberships)

    state = (await resolver.resolve("u1", "u1@example.org")).unwrap()

    assert state.role is UserRole.ZONE_COORDINATOR
    assert state.current_zone_id == "zone-1"
    assert not state.is_super_admin
    assert memberships.calls["zone"] == 1
    assert memberships.calls["hq"] == 1


@pytest.mark.asyncio
async def test_hq_only_membership(zone_table, memberships) -> None:
    memberships.add_hq("u2", "hq-1")
    state = (await ZoneResolver(zone_table, memberships).resolve("u2", None)).unwrap()

    assert state.role is UserRole.HQ_MEMBER
    assert state.current_zone_id == "hq-1"
    assert state.current_membership.is_hq_member


@pytest.mark.asyncio
async def test_no_memberships_is_a_valid_empty_state(zone_table, memberships) -> None:
    result = await ZoneResolver(zone_table, memberships).resolve("nobody", "nobody@example.org")

    assert result.is_success()
    state = result.unwrap()
    assert state.current_zone is None
    assert state.user_zones == ()
    assert state.role is UserRole.ZONE_MEMBER
    assert not state.has_access


@pytest.mark.asyncio
async def test_preferred_zone_selects_matching_membership(zone_table, memberships) -> None:
    memberships.add_zone("u1", "zone-1", "member")
    memberships.add_zone("u1", "zone-2", "coordinator")
    resolver = ZoneResolver(zone_table, memberships)

    state = (await resolver.resolve("u1", None, "zone-2")).unwrap()
    assert state.current_zone_id == "zone-2"
    assert state.role is UserRole.ZONE_COORDINATOR

    fallback = (await resolver.resolve("u1", None, "zone-gone")).unwrap()
    assert fallback.current_zone_id == "zone-1"
    assert fallback.role is UserRole.ZONE_MEMBER


@pytest.mark.asyncio
async def test_unknown_and_duplicate_zones_are_dropped(zone_table, memberships) -> None:
    memberships.add_zone("u1", "zone-unknown", "coordinator")
    memberships.add_zone("u1", "zone-2")
    memberships.add_zone("u1", "zone-2", "coordinator")
    memberships.add_hq("u1", "hq-1")

    state = (await ZoneResolver(zone_table, memberships).resolve("u1", None)).unwrap()

    assert [zone.id for zone in state.user_zones] == ["zone-2", "hq-1"]
    assert state.current_zone_id == "zone-2"


@pytest.mark.asyncio
async def test_only_unknown_zones_resolves_to_no_access(zone_table, memberships) -> None:
    memberships.add_zone("u1", "zone-unknown", "coordinator")
    state = (await ZoneResolver(zone_table, memberships).resolve("u1", None)).unwrap()

    assert not state.has_access
    assert state.current_zone is None


@pytest.mark.asyncio
async def test_lookup_failure_is_returned_not_raised(zone_table, memberships) -> None:
    memberships.fail = ConnectionError("database unreachable")
    resolver = ZoneResolver(zone_table, memberships)

    result = await resolver.resolve("u1", None)

    assert result.is_failure()
    error = result.error_or_none()
    assert isinstance(error, ResolutionError)
    assert error.retryable
    assert isinstance(error.cause, ConnectionError)
    assert not resolver.is_resolving("u1")


@pytest.mark.asyncio
async def test_super_admin_predicate_failure_is_returned(zone_table, memberships) -> None:
    def _broken(email, user_id):
        raise RuntimeError("allow-list unavailable")

    resolver = ZoneResolver(ZoneTable(zone_table.zones, is_super_admin=_broken), memberships)
    result = await resolver.resolve("u1", "u1@example.org")

    assert isinstance(result.error_or_none(), ResolutionError)


@pytest.mark.asyncio
async def test_concurrent_resolves_share_one_fetch(zone_table, memberships) -> None:
    memberships.add_zone("u1", "zone-1", "coordinator")
    memberships.gate = asyncio.Event()
    resolver = ZoneResolver(zone_table, memberships)

    first = asyncio.create_task(resolver.resolve("u1", None))
    await asyncio.sleep(0)
    assert resolver.is_resolving("u1")
    second = asyncio.create_task(resolver.resolve("u1", None))
    await asyncio.sleep(0)

    memberships.gate.set()
    results = await asyncio.gather(first, second)

    assert resolver.fetch_count == 1
    assert memberships.calls["zone"] == 1
    assert results[0].unwrap() == results[1].unwrap()
    assert not resolver.is_resolving("u1")


@pytest.mark.asyncio
async def test_resolves_for_different_users_run_independently(zone_table, memberships) -> None:
    memberships.add_zone("u1", "zone-1")
    memberships.add_zone("u2", "zone-2")
    resolver = ZoneResolver(zone_table, memberships)

    one, two = await asyncio.gather(resolver.resolve("u1", None), resolver.resolve("u2", None))

    assert one.unwrap().current_zone_id == "zone-1"
    assert two.unwrap().current_zone_id == "zone-2"
    assert resolver.fetch_count == 2


@pytest.mark.asyncio
async def test_malformed_membership_document_fails_every_waiter(zone_table, memberships) -> None:
    memberships.zone_docs["u1"] = [None]
    memberships.gate = asyncio.Event()
    resolver = ZoneResolver(zone_table, memberships)

    first = asyncio.create_task(resolver.resolve("u1", None))
    await asyncio.sleep(0)
    second = asyncio.create_task(resolver.resolve("u1", None))
    await asyncio.sleep(0)
    memberships.gate.set()

    results = await asyncio.wait_for(asyncio.gather(first, second), timeout=1)

    for result in results:
        error = result.error_or_none()
        assert isinstance(error, ResolutionError)
        assert isinstance(error.cause, AttributeError)
    assert not resolver.is_resolving("u1")
