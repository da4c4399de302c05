"""End-to-end tests combining every pipeline stage on one client."""

import asyncio
import time

import pytest

from wrapkit import (
    AccessDeniedError,
    CallArgs,
    EventType,
    WrapConfig,
    WrapHooks,
    define_plugin,
    wrap,
)


class Completions:
    def __init__(self, owner):
        self._owner = owner

    async def create(self, model, messages):
        self._owner.calls.append(model)
        await asyncio.sleep(0.01)
        if model == "broken":
            raise ConnectionError("upstream unavailable")
        return {"model": model, "content": messages[-1]["content"].upper()}


class Chat:
    def __init__(self, owner):
        self.completions = Completions(owner)


class Files:
    async def delete(self, file_id):
        return {"deleted": file_id}


class FakeSDK:
    """Small stand-in for a real SDK client object graph."""

    def __init__(self):
        self.calls = []
        self.chat = Chat(self)
        self.files = Files()
        self.api_key = "sk-test"


@pytest.fixture
def sdk():
    return FakeSDK()


class TestFullPipeline:

    @pytest.mark.asyncio
    async def test_all_stages(self, sdk):
        timings = {}

        def before(method, args, kwargs):
            return CallArgs(args, {**kwargs, "model": kwargs["model"].lower()})

        async def on_error(method, error, helpers):
            return {"model": "fallback", "content": str(error)}

        timer = define_plugin(
            "timer",
            before=lambda ctx: time.monotonic(),
            after=lambda ctx: timings.setdefault(ctx.method, time.monotonic() - ctx.context),
        )

        client = wrap(
            sdk,
            hooks={"before": before, "on_error": on_error},
            rate_limit={"requests_per_second": 50, "concurrency": 2},
            queue={"concurrency": 4, "timeout": 5000},
            blocklist=["files.*"],
        ).use(timer)

        events = []
        for event_type in EventType:
            client.on(event_type, events.append)

        messages = [{"role": "user", "content": "hello"}]
        results = await asyncio.gather(
            *(client.chat.completions.create(model="GPT-4O", messages=messages) for _ in range(5))
        )
        fallback = await client.chat.completions.create(model="BROKEN", messages=messages)

        assert results == [{"model": "gpt-4o", "content": "HELLO"}] * 5
        assert fallback == {"model": "fallback", "content": "upstream unavailable"}
        assert sdk.calls == ["gpt-4o"] * 5 + ["broken"]
        assert "chat.completions.create" in timings

        with pytest.raises(AccessDeniedError):
            client.files.delete("file-1")
        assert client.api_key == "sk-test"

        stats = client.stats
        assert stats.total_requests == 6
        assert stats.error_rate == 0.0
        assert stats.average_latency >= 10

        kinds = {e.event_type for e in events}
        assert {EventType.QUEUED, EventType.EXECUTING, EventType.COMPLETED, EventType.ERROR} <= kinds
        assert sum(e.event_type is EventType.COMPLETED for e in events) == 6

    @pytest.mark.asyncio
    async def test_yaml_config(self, sdk, tmp_path):
        path = tmp_path / "wrapkit.yaml"
        path.write_text(
            "allowlist:\n"
            '  - "chat.**"\n'
            "queue:\n"
            "  concurrency: 1\n"
        )
        seen = []
        config = WrapConfig.from_yaml(path, hooks=WrapHooks(after=lambda m, r: seen.append(m)))

        client = wrap(sdk, config)

        await client.chat.completions.create(model="gpt-4o", messages=[{"content": "x"}])
        with pytest.raises(AccessDeniedError):
            client.files.delete("file-1")

        assert seen == ["chat.completions.create"]

    @pytest.mark.asyncio
    async def test_priority_views_over_shared_queue(self, sdk):
        client = wrap(sdk, queue={"concurrency": 1})
        urgent = client.with_options(priority="critical")
        background = client.with_options(priority="low")
        messages = [{"content": "x"}]

        client.queue.pause()
        pending = [
            background.chat.completions.create(model="low-1", messages=messages),
            client.chat.completions.create(model="normal-1", messages=messages),
            urgent.chat.completions.create(model="critical-1", messages=messages),
            background.chat.completions.create(model="low-2", messages=messages),
        ]
        assert client.queue.size == 4
        client.queue.resume()
        await asyncio.gather(*pending)

        assert sdk.calls == ["critical-1", "normal-1", "low-1", "low-2"]
