import asyncio

import pytest

from chatcmd.bus.events import (
    CallbackEvent,
    CallbackException,
    CallbackNotFound,
    CommandException,
    CommandNotFound,
    Notification,
)
from chatcmd.config.schema import Config, RouterConfig
from chatcmd.router.service import EventRouter

from conftest import (
    RecordingCallbackWaiter,
    RecordingReplyWaiter,
    make_message,
)


def collect(router: EventRouter, kind=Notification) -> list:
    received = []
    router.bus.subscribe(kind, received.append)
    return received


@pytest.mark.asyncio
async def test_command_is_executed(registry, echo, transport):
    router = EventRouter(registry)

    handled = await router.process_message(transport, make_message("/echo hello world"))

    assert handled is True
    assert echo.calls == [["hello", "world"]]
    assert transport.sent[0].text == "hello world"


@pytest.mark.asyncio
async def test_router_seals_registry(registry):
    EventRouter(registry)

    assert registry.sealed


@pytest.mark.asyncio
async def test_empty_text_is_ignored(registry, transport):
    router = EventRouter(registry)

    assert await router.process_message(transport, make_message(None)) is False
    assert await router.process_message(transport, make_message("")) is False


@pytest.mark.asyncio
async def test_unknown_command_notifies_once(registry, transport):
    async with EventRouter(registry) as router:
        received = collect(router)

        handled = await router.process_message(transport, make_message("/nosuch arg"))
        await router.bus.join()

    assert handled is False
    assert len(received) == 1
    event = received[0]
    assert isinstance(event, CommandNotFound)
    assert event.parameters.command_name == "nosuch"
    assert event.parameters.arguments == ["arg"]


@pytest.mark.asyncio
async def test_unstarted_router_still_delivers_notifications(registry, transport):
    router = EventRouter(registry)
    seen = []
    router.on_command_not_found(seen.append)

    for i in range(200):
        await router.process_message(transport, make_message("/nosuch", message_id=i))
    await asyncio.wait_for(router.bus.join(), timeout=2)

    assert len(seen) == 200
    assert router.bus.queue.qsize() == 0
    await router.stop()


@pytest.mark.asyncio
async def test_command_exception_is_notified_and_isolated(registry, echo, transport):
    async with EventRouter(registry) as router:
        failures = collect(router, CommandException)

        handled = await router.process_message(transport, make_message("/explode now"))
        after = await router.process_message(transport, make_message("/echo still alive", message_id=2))
        await router.bus.join()

    assert handled is False
    assert after is True
    assert len(failures) == 1
    assert failures[0].parameters.command_name == "explode"
    assert isinstance(failures[0].error, RuntimeError)
    assert echo.calls == [["still", "alive"]]


@pytest.mark.asyncio
async def test_disabled_routing_drops_non_debug_commands(registry, echo, transport):
    async with EventRouter(registry) as router:
        router.enabled = False
        received = collect(router)

        dropped = await router.process_message(transport, make_message("/echo hi"))
        unknown = await router.process_message(transport, make_message("/nosuch"))
        debug = await router.process_message(transport, make_message("/debug hi"))
        await router.bus.join()

    assert dropped is False
    assert unknown is False
    assert debug is True
    assert echo.calls == []
    assert received == []
    assert registry.enabled is False


@pytest.mark.asyncio
async def test_reply_is_routed_by_replied_to_message(registry, transport):
    router = EventRouter(registry)
    waiter = RecordingReplyWaiter(result=True)
    sent = make_message("What's your name?", message_id=7)
    router.expect_reply(waiter, sent)

    wrong = await router.process_message(transport, make_message("Ada", message_id=7))
    handled = await router.process_message(transport, make_message("Ada", message_id=8, reply_to=7))

    assert wrong is False
    assert handled is True
    assert [m.text for m in waiter.replies] == ["Ada"]
    assert (42, 7) not in router.tracker


@pytest.mark.asyncio
async def test_reply_without_waiter_is_dropped(registry, transport):
    router = EventRouter(registry)

    assert await router.process_message(transport, make_message("hi")) is False
    assert await router.process_message(transport, make_message("hi", reply_to=3)) is False


@pytest.mark.asyncio
async def test_reply_waiter_fires_once_for_concurrent_replies(registry, transport):
    router = EventRouter(registry)
    waiter = RecordingReplyWaiter()
    router.expect_reply(waiter, make_message("question", message_id=5))

    results = await asyncio.gather(
        router.process_message(transport, make_message("a", message_id=6, reply_to=5)),
        router.process_message(transport, make_message("b", message_id=7, reply_to=5)),
    )

    assert sorted(results) == [False, True]
    assert len(waiter.replies) == 1


@pytest.mark.asyncio
async def test_failing_reply_waiter_is_consumed(registry, transport):
    router = EventRouter(registry)
    waiter = RecordingReplyWaiter(fail=True)
    router.expect_reply(waiter, make_message("question", message_id=5))

    first = await router.process_message(transport, make_message("a", message_id=6, reply_to=5))
    second = await router.process_message(transport, make_message("b", message_id=7, reply_to=5))

    assert first is False
    assert second is False
    assert len(waiter.replies) == 1


@pytest.mark.asyncio
async def test_expect_reply_by_identifier(registry, transport):
    registry_waiter = RecordingReplyWaiter("named")
    registry.register_reply_waiter(registry_waiter)
    router = EventRouter(registry)

    router.expect_reply("named", make_message("q", message_id=3))
    await router.process_message(transport, make_message("answer", message_id=4, reply_to=3))

    assert len(registry_waiter.replies) == 1
    with pytest.raises(KeyError):
        router.expect_reply("unknown", make_message("q", message_id=9))


@pytest.mark.asyncio
async def test_callback_is_delivered_once(registry, transport):
    router = EventRouter(registry)
    waiter = RecordingCallbackWaiter(result=True)
    sent = make_message("Proceed?", message_id=11)
    router.expect_callback(waiter, sent)

    press = CallbackEvent(id="cb1", data="yes", message=sent)
    first = await router.process_callback_event(transport, press)
    second = await router.process_callback_event(transport, press)

    assert first is True
    assert second is False
    assert [c.data for c in waiter.callbacks] == ["yes"]


@pytest.mark.asyncio
async def test_callback_without_message_is_noop(registry, transport):
    async with EventRouter(registry) as router:
        received = collect(router)

        handled = await router.process_callback_event(transport, CallbackEvent(id="x", data="d"))
        await router.bus.join()

    assert handled is False
    assert received == []


@pytest.mark.asyncio
async def test_unmatched_callback_notifies_and_clears_stale_entry(registry, transport):
    async with EventRouter(registry) as router:
        received = collect(router, CallbackNotFound)
        sent = make_message("question", message_id=12)
        router.expect_reply(RecordingReplyWaiter(), sent)

        handled = await router.process_callback_event(
            transport, CallbackEvent(id="cb", data="yes", message=sent)
        )
        await router.bus.join()

    assert handled is False
    assert (42, 12) not in router.tracker
    assert len(received) == 1
    assert received[0].callback.data == "yes"


@pytest.mark.asyncio
async def test_failing_callback_waiter_is_notified(registry, transport):
    async with EventRouter(registry) as router:
        received = collect(router, CallbackException)
        sent = make_message("Proceed?", message_id=13)
        router.expect_callback(RecordingCallbackWaiter(fail=True), sent)

        handled = await router.process_callback_event(
            transport, CallbackEvent(id="cb", data="no", message=sent)
        )
        await router.bus.join()

    assert handled is False
    assert len(received) == 1
    assert isinstance(received[0].error, ValueError)


@pytest.mark.asyncio
async def test_router_does_not_wait_for_listeners(registry, transport):
    release = asyncio.Event()
    seen = []

    async def slow_listener(event):
        await release.wait()
        seen.append(event)

    async with EventRouter(registry) as router:
        router.on_command_not_found(slow_listener)

        handled = await asyncio.wait_for(
            router.process_message(transport, make_message("/nosuch")), timeout=1
        )
        assert handled is False
        assert seen == []

        release.set()
        await router.bus.join()

    assert len(seen) == 1


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_routing(registry, echo, transport):
    def broken(event):
        raise RuntimeError("listener failed")

    async with EventRouter(registry) as router:
        router.on_command_not_found(broken)
        received = collect(router, CommandNotFound)

        await router.process_message(transport, make_message("/nosuch"))
        await router.bus.join()
        handled = await router.process_message(transport, make_message("/echo ok", message_id=2))

    assert handled is True
    assert len(received) == 1


@pytest.mark.asyncio
async def test_process_update_routes_raw_payloads(registry, echo, transport):
    router = EventRouter(registry)
    waiter = RecordingCallbackWaiter()
    router.expect_callback(waiter, make_message("Proceed?", chat_id=5, message_id=20))

    command = await router.process_update(transport, {
        "update_id": 1,
        "message": {"message_id": 21, "chat": {"id": 5}, "text": "/echo raw"},
    })
    callback = await router.process_update(transport, {
        "update_id": 2,
        "callback_query": {
            "id": "q",
            "data": "yes",
            "message": {"message_id": 20, "chat": {"id": 5}},
        },
    })
    other = await router.process_update(transport, {"update_id": 3, "poll": {}})

    assert command is True
    assert callback is True
    assert other is False
    assert echo.calls == [["raw"]]


@pytest.mark.asyncio
async def test_from_config_applies_router_settings(registry, echo, transport):
    config = Config(router=RouterConfig(enabled=False, bot_username="testbot"))

    router = EventRouter.from_config(config, registry)
    router.enabled = True
    handled = await router.process_message(transport, make_message("/echo@testbot hi"))

    assert handled is True
    assert echo.calls == [["hi"]]
    assert router.bot_username == "testbot"


def test_from_config_disables_routing(registry):
    router = EventRouter.from_config(Config(router=RouterConfig(enabled=False)), registry)

    assert router.enabled is False
