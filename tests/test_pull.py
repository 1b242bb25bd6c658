"""Tests for one-shot pull futures."""

from __future__ import annotations

import asyncio
import unittest

from typed_event.event import Event


class PullTests(unittest.IsolatedAsyncioTestCase):
    """Validate that pull resolves with exactly the next dispatch."""

    async def test_pull_resolves_with_next_dispatch_arguments(self) -> None:
        event: Event[int, str] = Event()
        pending = event.pull()
        self.assertFalse(pending.done())

        await event.dispatch(1, "first")
        await event.dispatch(2, "second")

        self.assertEqual(await pending, (1, "first"))
        self.assertEqual(len(event), 0)

    async def test_pull_ignores_dispatches_before_the_call(self) -> None:
        event: Event[int] = Event()
        await event.dispatch(1)
        pending = event.pull()
        await event.dispatch(2)
        self.assertEqual(await pending, (2,))

    async def test_awaiting_pull_in_task(self) -> None:
        event: Event[str] = Event()

        async def waiter() -> tuple[str]:
            return await event.pull()

        task = asyncio.create_task(waiter())
        await asyncio.sleep(0)  # Let the waiter subscribe.
        await event.dispatch("ready")
        self.assertEqual(await task, ("ready",))

    async def test_pull_with_no_arguments(self) -> None:
        event: Event[()] = Event()
        pending = event.pull()
        await event.dispatch()
        self.assertEqual(await pending, ())

    async def test_pull_keeps_order_with_other_listeners(self) -> None:
        event: Event[int] = Event()
        order: list[str] = []
        event.subscribe(lambda value: order.append("before"))
        pending = event.pull()
        pending.add_done_callback(lambda _: order.append("pulled"))
        event.subscribe(lambda value: order.append("after"))

        await event.dispatch(9)
        await asyncio.sleep(0)  # Done callbacks run on the next loop iteration.
        self.assertEqual(order, ["before", "after", "pulled"])
        self.assertEqual(pending.result(), (9,))

    async def test_cancelled_pull_unsubscribes_its_listener(self) -> None:
        event: Event[int] = Event()
        pending = event.pull()
        self.assertEqual(len(event), 1)

        pending.cancel()
        await asyncio.sleep(0)
        self.assertEqual(len(event), 0)
        await event.dispatch(1)
        self.assertTrue(pending.cancelled())

    async def test_concurrent_pulls_all_resolve(self) -> None:
        event: Event[int] = Event()
        first = event.pull()
        second = event.pull()
        await event.dispatch(4)
        self.assertEqual(await asyncio.gather(first, second), [(4,), (4,)])


if __name__ == "__main__":
    unittest.main()
