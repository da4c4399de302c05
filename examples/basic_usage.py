#!/usr/bin/env python3
"""
Basic usage examples for wrapkit.

A tiny in-process client stands in for a real SDK so the examples run
without network access or API keys.
"""

import asyncio
import random
import time

from wrapkit import AccessDeniedError, CallArgs, define_plugin, wrap
from wrapkit.utils.logging import setup_logging


class Completions:
    async def create(self, model, messages, **kwargs):
        await asyncio.sleep(random.uniform(0.01, 0.05))
        if kwargs.get("fail"):
            raise ConnectionError("upstream unavailable")
        return {"model": model, "content": f"echo: {messages[-1]['content']}"}


class Chat:
    def __init__(self):
        self.completions = Completions()


class Files:
    async def create(self, name):
        return {"id": f"file-{name}"}

    async def delete(self, file_id):
        return {"deleted": file_id}


class DemoClient:
    def __init__(self):
        self.chat = Chat()
        self.files = Files()
        self.base_url = "https://api.example.com/v1"


MESSAGES = [{"role": "user", "content": "hello"}]


async def access_control():
    """Block destructive calls."""
    print("\n=== Access Control ===\n")

    client = wrap(DemoClient(), blocklist=["files.delete"])

    print(await client.files.create("report"))
    try:
        client.files.delete("file-report")
    except AccessDeniedError as e:
        print(f"Denied: {e}")


async def rate_limiting():
    """Throttle calls per method path."""
    print("\n=== Rate Limiting ===\n")

    client = wrap(DemoClient(), rate_limit={"requests_per_second": 2})
    client.on("rate_limited", lambda e: print(f"  waiting {e.data['retry_after']}ms"))

    start = time.monotonic()
    await asyncio.gather(
        *(client.chat.completions.create(model="gpt-4o", messages=MESSAGES) for _ in range(4))
    )
    print(f"4 calls at 2 rps took {time.monotonic() - start:.2f}s")


async def priority_queue():
    """Let urgent calls jump the queue."""
    print("\n=== Priority Queue ===\n")

    client = wrap(DemoClient(), queue={"concurrency": 1})
    order = []
    client.on("executing", lambda e: order.append(e.method))

    client.queue.pause()
    background = client.with_options(priority="low").files.create("bulk")
    urgent = client.with_options(priority="critical").chat.completions.create(
        model="gpt-4o", messages=MESSAGES
    )
    print(f"Queued: {client.queue.size}")
    client.queue.resume()
    await asyncio.gather(background, urgent)

    print(f"Execution order: {order}")


async def hooks_and_plugins():
    """Rewrite arguments, recover from errors and time calls."""
    print("\n=== Hooks and Plugins ===\n")

    def before(method, args, kwargs):
        if method == "chat.completions.create":
            return CallArgs(args, {**kwargs, "model": "gpt-4o-mini"})

    async def on_error(method, error, helpers):
        print(f"  {method} failed: {error}")
        return {"model": None, "content": "fallback"}

    timer = define_plugin(
        "timer",
        before=lambda ctx: time.monotonic(),
        after=lambda ctx: print(f"  {ctx.method} took {(time.monotonic() - ctx.context) * 1000:.0f}ms"),
    )

    client = wrap(DemoClient(), hooks={"before": before, "on_error": on_error}).use(timer)

    print(await client.chat.completions.create(model="gpt-4o", messages=MESSAGES))
    print(await client.chat.completions.create(model="gpt-4o", messages=MESSAGES, fail=True))


async def stats():
    """Read aggregated call statistics."""
    print("\n=== Stats ===\n")

    client = wrap(DemoClient())
    for _ in range(5):
        await client.chat.completions.create(model="gpt-4o", messages=MESSAGES)

    snapshot = client.stats
    print(f"Total requests: {snapshot.total_requests}")
    print(f"Average latency: {snapshot.average_latency:.1f}ms")
    print(f"Error rate: {snapshot.error_rate:.0%}")


async def main():
    setup_logging(level="WARNING")

    await access_control()
    await rate_limiting()
    await priority_queue()
    await hooks_and_plugins()
    await stats()


if __name__ == "__main__":
    asyncio.run(main())
