import asyncio
import threading

import pytest

from app.events import EventBus, channels


def test_channel_names():
    assert channels.booking_new(7) == "booking:new:7"
    assert channels.booking_status(3) == "booking:status:3"
    assert channels.booking_chat(3) == "booking:chat:3"
    assert channels.booking_items(3) == "booking:items:3"
    assert channels.booking_attachments(3) == "booking:attachments:3"
    assert channels.provider_location(9) == "provider:loc:9"


def test_publish_fans_out_to_every_subscriber():
    bus = EventBus()

    async def scenario():
        first = bus.subscribe("booking:status:1")
        second = bus.subscribe("booking:status:1")
        other = bus.subscribe("booking:status:2")
        reached = bus.publish("booking:status:1", {"status": "CONFIRMED"})
        received = [await first.get(timeout=1), await second.get(timeout=1)]
        assert other.queue.empty()
        return reached, received

    reached, received = asyncio.run(scenario())
    assert reached == 2
    assert received == [{"status": "CONFIRMED"}] * 2


def test_publish_without_subscribers():
    assert EventBus().publish("booking:status:404", {"x": 1}) == 0


def test_full_queue_drops_oldest():
    bus = EventBus(queue_size=2)

    async def scenario():
        subscription = bus.subscribe("provider:loc:1")
        for i in range(4):
            bus.publish("provider:loc:1", i)
        return [await subscription.get(timeout=1) for _ in range(2)], subscription.dropped

    messages, dropped = asyncio.run(scenario())
    assert messages == [2, 3]
    assert dropped == 2


def test_unsubscribe_stops_delivery():
    bus = EventBus()

    async def scenario():
        with bus.subscribe("booking:chat:1"):
            assert bus.subscriber_count("booking:chat:1") == 1
        return bus.publish("booking:chat:1", "hello")

    assert asyncio.run(scenario()) == 0


def test_publish_from_another_thread():
    bus = EventBus()

    async def scenario():
        subscription = bus.subscribe("booking:items:5")
        thread = threading.Thread(target=bus.publish, args=("booking:items:5", {"price": 10}))
        thread.start()
        message = await subscription.get(timeout=2)
        thread.join()
        return message

    assert asyncio.run(scenario()) == {"price": 10}


def test_get_times_out():
    bus = EventBus()

    async def scenario():
        subscription = bus.subscribe("booking:new:1")
        await subscription.get(timeout=0.01)

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(scenario())
