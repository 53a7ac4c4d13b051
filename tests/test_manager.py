from __future__ import annotations

import asyncio
import itertools

import pytest

from camwatch.detection.dispatcher import AlertDispatcher
from camwatch.detection.manager import AlertLifecycleManager, create_alert_manager
from camwatch.errors import AlertNotFound, InvalidTransition, PermissionDenied
from camwatch.models import (
    ALLOWED_TRANSITIONS,
    Actor,
    AlertSeverity,
    AlertStatus,
    AlertType,
)

from conftest import RecordingChannel, at_ms


async def test_admit_fires_side_effects_once(manager, make_alert, channel, sound_sink):
    alert = make_alert()

    assert await manager.admit(alert) is True

    assert manager.get(alert.alert_id) == alert
    assert [a.alert_id for a in channel.received] == [alert.alert_id]
    assert list(sound_sink.played) == [("alert-motion", 0.7)]


async def test_duplicate_admission_is_ignored(manager, make_alert, channel, sound_sink):
    alert = make_alert()
    await manager.admit(alert)

    assert await manager.admit(alert) is False
    assert await manager.admit(alert) is False

    assert len(manager) == 1
    assert len(channel.received) == 1
    assert len(sound_sink.played) == 1


async def test_acknowledge_then_investigate_then_dismiss(manager, make_alert, manager_actor):
    alert = make_alert()
    await manager.admit(alert)

    await manager.transition(alert.alert_id, AlertStatus.ACKNOWLEDGED, manager_actor, at_ms(10))
    await manager.transition(alert.alert_id, AlertStatus.INVESTIGATING, manager_actor, at_ms(20))
    final = await manager.transition(
        alert.alert_id, AlertStatus.DISMISSED, manager_actor, at_ms(30)
    )

    assert final.status == AlertStatus.DISMISSED
    assert [c.status for c in final.status_history] == [
        AlertStatus.NEW,
        AlertStatus.ACKNOWLEDGED,
        AlertStatus.INVESTIGATING,
        AlertStatus.DISMISSED,
    ]
    assert final.status_history[-1].changed_at == at_ms(30)
    assert manager.get(alert.alert_id) == final
    assert final.created_at == alert.created_at


@pytest.mark.parametrize(
    "current, target",
    list(itertools.product(list(AlertStatus), list(AlertStatus))),
)
async def test_only_state_machine_edges_are_allowed(
    manager, make_alert, manager_actor, current, target
):
    alert = make_alert(status=current)
    await manager.admit(alert)
    allowed = target in ALLOWED_TRANSITIONS[current]

    if allowed:
        updated = await manager.transition(alert.alert_id, target, manager_actor)
        assert updated.status == target
    else:
        with pytest.raises(InvalidTransition):
            await manager.transition(alert.alert_id, target, manager_actor)
        assert manager.get(alert.alert_id) == alert


async def test_dismissed_is_terminal(manager, make_alert, manager_actor):
    alert = make_alert()
    await manager.admit(alert)
    await manager.transition(alert.alert_id, AlertStatus.DISMISSED, manager_actor)

    for target in AlertStatus:
        with pytest.raises(InvalidTransition):
            await manager.transition(alert.alert_id, target, manager_actor)


async def test_operator_cannot_acknowledge_or_dismiss(manager, make_alert, operator_actor):
    alert = make_alert()
    await manager.admit(alert)

    with pytest.raises(PermissionDenied) as exc:
        await manager.transition(alert.alert_id, AlertStatus.ACKNOWLEDGED, operator_actor)
    assert exc.value.permission == "acknowledge_alerts"

    with pytest.raises(PermissionDenied):
        await manager.transition(alert.alert_id, AlertStatus.DISMISSED, operator_actor)

    assert manager.get(alert.alert_id).status == AlertStatus.NEW


async def test_investigating_needs_no_permission(manager, make_alert, operator_actor):
    alert = make_alert()
    await manager.admit(alert)

    updated = await manager.transition(
        alert.alert_id, AlertStatus.INVESTIGATING, operator_actor
    )

    assert updated.status == AlertStatus.INVESTIGATING


async def test_permission_granted_directly_on_actor(manager, make_alert):
    alert = make_alert()
    await manager.admit(alert)
    actor = Actor(actor_id="svc", role="operator", permissions={"dismiss_alerts"})

    updated = await manager.transition(alert.alert_id, AlertStatus.DISMISSED, actor)

    assert updated.status == AlertStatus.DISMISSED


async def test_unknown_alert_raises_not_found(manager, operator_actor):
    with pytest.raises(AlertNotFound):
        await manager.transition("nope", AlertStatus.DISMISSED, operator_actor)


@pytest.mark.parametrize("target", list(AlertStatus))
async def test_dismissed_is_terminal_for_any_actor(manager, make_alert, operator_actor, target):
    alert = make_alert(status=AlertStatus.DISMISSED)
    await manager.admit(alert)

    with pytest.raises(InvalidTransition):
        await manager.transition(alert.alert_id, target, operator_actor)
    assert manager.get(alert.alert_id) == alert


async def test_legal_edge_still_checks_permission(manager, make_alert, operator_actor):
    alert = make_alert(status=AlertStatus.ACKNOWLEDGED)
    await manager.admit(alert)

    with pytest.raises(PermissionDenied):
        await manager.transition(alert.alert_id, AlertStatus.DISMISSED, operator_actor)


async def test_bulk_transition_reports_each_id(manager, make_alert, manager_actor):
    fresh = make_alert()
    done = make_alert(status=AlertStatus.DISMISSED)
    await manager.admit(fresh)
    await manager.admit(done)

    results = await manager.bulk_transition(
        [fresh.alert_id, done.alert_id, "missing"],
        AlertStatus.ACKNOWLEDGED,
        manager_actor,
    )

    assert list(results) == [fresh.alert_id, done.alert_id, "missing"]
    assert results[fresh.alert_id].success is True
    assert results[fresh.alert_id].status == AlertStatus.ACKNOWLEDGED
    assert results[done.alert_id].success is False
    assert results[done.alert_id].error == "InvalidTransition"
    assert results[done.alert_id].status == AlertStatus.DISMISSED
    assert results["missing"].error == "AlertNotFound"
    assert results["missing"].status is None
    assert manager.get(fresh.alert_id).status == AlertStatus.ACKNOWLEDGED


async def test_bulk_transition_applies_repeated_id_once(manager, make_alert, manager_actor):
    alert = make_alert()
    await manager.admit(alert)
    changed = []
    manager.subscribe_changed(lambda a, previous: changed.append(a.alert_id))

    results = await manager.bulk_transition(
        [alert.alert_id, alert.alert_id], AlertStatus.ACKNOWLEDGED, manager_actor
    )

    assert list(results) == [alert.alert_id]
    assert results[alert.alert_id].success is True
    assert results[alert.alert_id].error is None
    assert manager.get(alert.alert_id).status == AlertStatus.ACKNOWLEDGED
    assert changed == [alert.alert_id]


async def test_bulk_transition_permission_failures_do_not_abort(
    manager, make_alert, operator_actor
):
    a, b = make_alert(), make_alert()
    await manager.admit(a)
    await manager.admit(b)

    results = await manager.bulk_transition(
        [a.alert_id, b.alert_id], AlertStatus.DISMISSED, operator_actor
    )

    assert all(r.error == "PermissionDenied" for r in results.values())
    assert manager.count_by_status()[AlertStatus.NEW] == 2


async def test_clear_all_dismisses_every_active_alert(manager, make_alert, manager_actor):
    alerts = [
        make_alert(),
        make_alert(status=AlertStatus.ACKNOWLEDGED),
        make_alert(status=AlertStatus.INVESTIGATING),
        make_alert(status=AlertStatus.DISMISSED),
    ]
    for a in alerts:
        await manager.admit(a)

    cleared = await manager.clear_all(manager_actor)

    assert len(cleared) == 3
    assert len(manager) == 4
    assert manager.counts().dismissed == 4
    assert all(a.status == AlertStatus.DISMISSED for a in manager.list_alerts())


async def test_clear_all_checks_dismiss_permission(manager, make_alert, operator_actor):
    await manager.admit(make_alert())

    with pytest.raises(PermissionDenied):
        await manager.clear_all(operator_actor)

    assert manager.counts().new == 1


async def test_clear_all_without_actor_is_a_system_action(manager, make_alert):
    await manager.admit(make_alert())

    cleared = await manager.clear_all()

    assert len(cleared) == 1


async def test_list_alerts_is_most_recent_first_and_filters(manager, make_alert):
    first = make_alert(severity=AlertSeverity.LOW, source_id="CAM-1")
    second = make_alert(
        severity=AlertSeverity.CRITICAL,
        source_id="CAM-2",
        source_name="Parking Lot",
        alert_type=AlertType.CONNECTION_LOST,
        description="Camera connection lost - attempting to reconnect",
    )
    third = make_alert(severity=AlertSeverity.CRITICAL, source_id="CAM-1")
    for a in (first, second, third):
        await manager.admit(a)

    assert [a.alert_id for a in manager.list_alerts()] == [
        third.alert_id,
        second.alert_id,
        first.alert_id,
    ]
    assert [a.alert_id for a in manager.list_alerts(severity=AlertSeverity.CRITICAL)] == [
        third.alert_id,
        second.alert_id,
    ]
    assert [a.alert_id for a in manager.list_alerts(source_id="CAM-1")] == [
        third.alert_id,
        first.alert_id,
    ]
    assert [a.alert_id for a in manager.list_alerts(alert_type=AlertType.CONNECTION_LOST)] == [
        second.alert_id
    ]
    assert [a.alert_id for a in manager.list_alerts(search="PARKING")] == [second.alert_id]
    assert [a.alert_id for a in manager.list_alerts(search="connection lost")] == [
        second.alert_id
    ]
    assert manager.list_alerts(status=AlertStatus.DISMISSED) == []


async def test_transition_keeps_recency_order(manager, make_alert, manager_actor):
    older, newer = make_alert(), make_alert()
    await manager.admit(older)
    await manager.admit(newer)

    await manager.transition(older.alert_id, AlertStatus.ACKNOWLEDGED, manager_actor)

    assert [a.alert_id for a in manager.list_alerts()] == [newer.alert_id, older.alert_id]


async def test_counts(manager, make_alert, manager_actor):
    a = make_alert(severity=AlertSeverity.HIGH)
    b = make_alert(severity=AlertSeverity.HIGH)
    c = make_alert(severity=AlertSeverity.LOW)
    for alert in (a, b, c):
        await manager.admit(alert)
    await manager.transition(b.alert_id, AlertStatus.ACKNOWLEDGED, manager_actor)

    counts = manager.counts()
    by_severity = manager.count_by_severity()

    assert (counts.total, counts.new, counts.acknowledged) == (3, 2, 1)
    assert counts.investigating == 0 and counts.dismissed == 0
    assert by_severity[AlertSeverity.HIGH] == 2
    assert by_severity[AlertSeverity.CRITICAL] == 0


async def test_channel_failure_does_not_roll_back_admission(make_alert, sound_sink):
    dispatcher = AlertDispatcher(
        channels={"console": RecordingChannel(fail=True)},
        sound_sink=sound_sink,
    )
    manager = AlertLifecycleManager(dispatcher=dispatcher)
    alert = make_alert()

    assert await manager.admit(alert) is True

    assert alert.alert_id in manager
    assert len(dispatcher.delivery_failures) == 1
    failure = dispatcher.delivery_failures[0]
    assert failure.sink == "console"
    assert failure.alert_id == alert.alert_id
    assert len(sound_sink.played) == 1


async def test_subscribers_sync_and_async(manager, make_alert, manager_actor):
    admitted = []
    changed = []

    def on_admitted(alert):
        admitted.append(alert.alert_id)

    async def on_changed(alert, previous):
        changed.append((alert.alert_id, previous, alert.status))

    manager.subscribe_admitted(on_admitted)
    manager.subscribe_changed(on_changed)
    alert = make_alert()

    await manager.admit(alert)
    await manager.admit(alert)
    await manager.transition(alert.alert_id, AlertStatus.ACKNOWLEDGED, manager_actor)

    assert admitted == [alert.alert_id]
    assert changed == [(alert.alert_id, AlertStatus.NEW, AlertStatus.ACKNOWLEDGED)]


async def test_failing_subscriber_does_not_affect_state(manager, make_alert):
    calls = []

    def broken(alert):
        raise RuntimeError("ui gone")

    manager.subscribe_admitted(broken)
    manager.subscribe_admitted(lambda alert: calls.append(alert.alert_id))
    alert = make_alert()

    assert await manager.admit(alert) is True
    assert calls == [alert.alert_id]


async def test_manager_without_dispatcher(make_alert):
    manager = await create_alert_manager()

    assert await manager.admit(make_alert()) is True
    assert len(manager) == 1


async def test_concurrent_admission_of_same_id(manager, make_alert, channel):
    alert = make_alert()

    results = await asyncio.gather(*(manager.admit(alert) for _ in range(10)))

    assert results.count(True) == 1
    assert len(manager) == 1
    assert len(channel.received) == 1
