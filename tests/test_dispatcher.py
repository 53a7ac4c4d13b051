from __future__ import annotations

import io

import pytest

from camwatch.detection.channels import (
    ConsoleChannel,
    LogSoundSink,
    OutputFormat,
    WebhookChannel,
    notification_title,
)
from camwatch.detection.dispatcher import (
    DEFAULT_SEVERITY_CHANNELS,
    AlertDispatcher,
    create_dispatcher,
)
from camwatch.models import AlertSeverity, AlertType

from conftest import FailingSoundSink, RecordingChannel


class _FakeResponse:
    def __init__(self, status: int) -> None:
        self.status = status

    async def text(self) -> str:
        return "upstream unavailable"

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class _FakeSession:
    def __init__(self, status: int = 200) -> None:
        self.status = status
        self.closed = False
        self.posts = []

    def post(self, url, json=None):
        self.posts.append((url, json))
        return _FakeResponse(self.status)

    async def close(self) -> None:
        self.closed = True


async def test_routes_by_severity(make_alert, sound_sink):
    console, webhook = RecordingChannel(), RecordingChannel()
    dispatcher = AlertDispatcher(
        channels={"console": console, "webhook": webhook},
        sound_sink=sound_sink,
    )

    await dispatcher.dispatch(make_alert(severity=AlertSeverity.MEDIUM))
    await dispatcher.dispatch(make_alert(severity=AlertSeverity.CRITICAL))

    assert len(console.received) == 2
    assert [a.severity for a in webhook.received] == [AlertSeverity.CRITICAL]


async def test_default_routing_skips_unconfigured_channels(make_alert):
    dispatcher = AlertDispatcher(channels={"console": RecordingChannel()})

    assert dispatcher.get_channels_for_severity(AlertSeverity.CRITICAL) == ["console"]
    assert await dispatcher.dispatch(make_alert(severity=AlertSeverity.CRITICAL)) == 1


async def test_sound_cue_per_alert_type(make_alert, sound_sink):
    dispatcher = AlertDispatcher(sound_sink=sound_sink, volume=0.4)

    await dispatcher.dispatch(make_alert(alert_type=AlertType.CONNECTION_LOST))

    assert list(sound_sink.played) == [("alert-connection_lost", 0.4)]


async def test_toggles_suppress_side_effects(make_alert, channel, sound_sink):
    dispatcher = AlertDispatcher(channels={"console": channel}, sound_sink=sound_sink)

    dispatcher.set_sound_enabled(False)
    await dispatcher.dispatch(make_alert())
    dispatcher.set_sound_enabled(True)
    dispatcher.set_notifications_enabled(False)
    await dispatcher.dispatch(make_alert())

    assert len(channel.received) == 1
    assert len(sound_sink.played) == 1


async def test_sound_failure_is_recorded_not_raised(make_alert, channel):
    dispatcher = AlertDispatcher(channels={"console": channel}, sound_sink=FailingSoundSink())
    alert = make_alert()

    delivered = await dispatcher.dispatch(alert)

    assert delivered == 1
    assert [f.sink for f in dispatcher.delivery_failures] == ["sound"]
    assert isinstance(dispatcher.delivery_failures[0].cause, RuntimeError)


@pytest.mark.parametrize("volume", [-0.1, 1.5])
def test_volume_must_be_in_range(volume):
    dispatcher = AlertDispatcher()

    with pytest.raises(ValueError):
        dispatcher.set_volume(volume)
    assert dispatcher.volume == 0.7


def test_add_and_remove_channel():
    dispatcher = AlertDispatcher()

    dispatcher.add_channel("pager", RecordingChannel())
    dispatcher.set_severity_channels(AlertSeverity.CRITICAL, ["pager"])

    assert dispatcher.get_channels_for_severity(AlertSeverity.CRITICAL) == ["pager"]
    assert dispatcher.remove_channel("pager") is True
    assert dispatcher.remove_channel("pager") is False


async def test_create_dispatcher_drops_routes_to_missing_channels():
    dispatcher = await create_dispatcher(
        webhook_url=None,
        severity_channels={AlertSeverity.HIGH: ["console", "webhook"]},
    )

    assert set(dispatcher.channels) == {"console"}
    assert dispatcher.get_channels_for_severity(AlertSeverity.HIGH) == ["console"]
    assert isinstance(dispatcher.sound_sink, LogSoundSink)


async def test_create_dispatcher_with_webhook():
    dispatcher = await create_dispatcher(webhook_url="http://hooks.local/alerts")

    assert isinstance(dispatcher.channels["webhook"], WebhookChannel)
    assert dispatcher.get_channels_for_severity(AlertSeverity.HIGH) == ["console", "webhook"]
    await dispatcher.close()


async def test_console_simple_line(make_alert):
    stream = io.StringIO()
    console = ConsoleChannel(format=OutputFormat.SIMPLE, use_colors=False, stream=stream)
    alert = make_alert(
        severity=AlertSeverity.CRITICAL,
        description="Motion detected (95.0% intensity)",
    )

    await console.notify(alert)

    assert stream.getvalue() == (
        "[CRITICAL] Security Alert - Front Door: Motion detected (95.0% intensity)\n"
    )


def test_console_colours_label(make_alert):
    console = ConsoleChannel(format=OutputFormat.SIMPLE, use_colors=True)

    line = console.format_line(make_alert(severity=AlertSeverity.LOW))

    assert line.startswith("\033[34m[LOW]\033[0m")


async def test_webhook_posts_payload(make_alert):
    session = _FakeSession()
    channel = WebhookChannel("http://hooks.local/alerts", session=session)
    alert = make_alert(severity=AlertSeverity.HIGH)

    await channel.notify(alert)

    [(url, payload)] = session.posts
    assert url == "http://hooks.local/alerts"
    assert payload["title"] == notification_title(alert) == "Security Alert - Front Door"
    assert payload["tag"] == alert.alert_id
    assert payload["severity"] == "high"
    assert payload["require_interaction"] is True


async def test_webhook_error_status_raises_connection_error(make_alert):
    channel = WebhookChannel("http://hooks.local/alerts", session=_FakeSession(status=503))

    with pytest.raises(ConnectionError):
        await channel.notify(make_alert())


async def test_webhook_failure_recorded_by_dispatcher(make_alert):
    webhook = WebhookChannel("http://hooks.local/alerts", session=_FakeSession(status=500))
    dispatcher = AlertDispatcher(channels={"webhook": webhook})

    delivered = await dispatcher.dispatch(make_alert(severity=AlertSeverity.CRITICAL))

    assert delivered == 0
    assert dispatcher.delivery_failures[0].sink == "webhook"


async def test_disabled_webhook_sends_nothing(make_alert):
    session = _FakeSession()
    channel = WebhookChannel("http://hooks.local/alerts", enabled=False, session=session)

    await channel.notify(make_alert())

    assert session.posts == []


async def test_close_leaves_injected_session_open():
    session = _FakeSession()
    dispatcher = AlertDispatcher(
        channels={"webhook": WebhookChannel("http://hooks.local/alerts", session=session)}
    )

    await dispatcher.close()

    assert session.closed is False


async def test_close_closes_session_the_channel_created():
    channel = WebhookChannel("http://hooks.local/alerts")
    session = await channel._ensure_session()

    await channel.close()

    assert session.closed is True


def test_routing_is_copied_from_the_caller():
    routing = {AlertSeverity.LOW: ["console"]}
    dispatcher = AlertDispatcher(
        channels={"console": RecordingChannel()}, severity_channels=routing
    )
    other = AlertDispatcher(severity_channels=DEFAULT_SEVERITY_CHANNELS)

    dispatcher.set_severity_channels(AlertSeverity.LOW, ["pager"])
    other.set_severity_channels(AlertSeverity.LOW, ["pager"])

    assert routing == {AlertSeverity.LOW: ["console"]}
    assert DEFAULT_SEVERITY_CHANNELS[AlertSeverity.LOW] == ["console"]
    assert AlertDispatcher().get_channels_for_severity(AlertSeverity.LOW) == []
