from __future__ import annotations

import asyncio
import json
import logging

import httpx
from pygame.math import Vector2

from spiritpond.services.fallbacks import FALLBACK_NAMES, fallback_name
from spiritpond.services.naming import GenerativeTextService, build_text_service, extract_text
from spiritpond.sim.core.agent import DeathReason
from spiritpond.sim.core.config import NamingConfig, SimulationConfig
from spiritpond.sim.core.species import default_catalog
from spiritpond.sim.core.world import World
from spiritpond.sim.systems import lifecycle

SPECIES = default_catalog().get("kodama")


def _payload(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _service(handler, **overrides) -> GenerativeTextService:
    config = NamingConfig(enabled=True, api_key="test-key", retry_delay_seconds=0.0, **overrides)
    return GenerativeTextService(config, transport=httpx.MockTransport(handler))


class StaticService:
    def __init__(self, name: str | None = "Mizu", phrase: str | None = "Ripples remember."):
        self.name = name
        self.phrase = phrase

    async def generate_name(self, species):
        return self.name

    async def generate_phrase(self, species, name):
        return self.phrase


def test_extract_text_handles_missing_fields():
    assert extract_text(_payload("  Suiren \n")) == "Suiren"
    assert extract_text({"candidates": []}) is None
    assert extract_text({}) is None
    assert extract_text(_payload("   ")) is None


def test_service_posts_prompt_and_returns_name():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_payload("Suiren"))

    async def run():
        async with _service(handler) as service:
            return await service.generate_name(SPECIES)

    assert asyncio.run(run()) == "Suiren"
    assert len(seen) == 1
    assert seen[0].url.params["key"] == "test-key"
    body = json.loads(seen[0].content)
    assert "Kodama Tetra" in body["contents"][0]["parts"][0]["text"]


def test_service_retries_once_then_succeeds():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json=_payload("Hello, waver."))

    async def run():
        async with _service(handler) as service:
            return await service.generate_phrase(SPECIES, "Kiki")

    assert asyncio.run(run()) == "Hello, waver."
    assert len(calls) == 2


def test_service_gives_up_after_one_retry():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("pond offline", request=request)

    async def run():
        async with _service(handler) as service:
            return await service.generate_name(SPECIES)

    assert asyncio.run(run()) is None
    assert len(calls) == 2


def test_build_text_service_requires_opt_in_and_key():
    assert build_text_service(NamingConfig()) is None
    assert build_text_service(NamingConfig(enabled=True)) is None
    assert isinstance(build_text_service(NamingConfig(enabled=True, api_key="k")), GenerativeTextService)


def test_fallback_names_are_stable():
    assert fallback_name(3) == fallback_name(3)
    assert fallback_name(3) in FALLBACK_NAMES


def test_generated_name_is_applied_on_next_tick():
    async def run():
        world = World(default_catalog(), SimulationConfig(initial_population=0), text_service=StaticService())
        agent = world.add_agent("basic", Vector2(300, 300))
        original = agent.name
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert agent.name == original
        world.tick()
        return agent

    agent = asyncio.run(run())
    assert agent.name == "Mizu"


def test_stale_name_for_departed_agent_is_dropped():
    async def run():
        world = World(default_catalog(), SimulationConfig(initial_population=0), text_service=StaticService())
        agent = world.add_agent("basic", Vector2(300, 300))
        original = agent.name
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        lifecycle.kill(world, agent, DeathReason.SUDDEN_ILLNESS)
        world.tick()
        return agent, original, world

    agent, original, world = asyncio.run(run())
    assert agent.name == original
    assert world.names.queued_results == 0


def test_phrase_request_waits_for_service_and_falls_back_on_failure():
    async def run():
        world = World(default_catalog(), SimulationConfig(initial_population=0), text_service=StaticService(phrase=None))
        agent = world.add_agent("forest", Vector2(300, 300))
        assert world.request_phrase(agent.id)
        assert agent.is_talking
        assert agent.phrase == "..."
        assert not world.request_phrase(agent.id)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        world.tick()
        return agent

    agent = asyncio.run(run())
    assert not agent.is_talking
    assert agent.phrase not in (None, "...")
    assert 4.9 < agent.phrase_timer <= 5.0


class FailingService:
    async def generate_name(self, species):
        raise asyncio.TimeoutError("text service timed out")

    async def generate_phrase(self, species, name):
        raise asyncio.TimeoutError("text service timed out")


def test_service_errors_fall_back_to_local_text(caplog):
    async def run():
        world = World(default_catalog(), SimulationConfig(initial_population=0), text_service=FailingService())
        agent = world.add_agent("forest", Vector2(300, 300))
        original = agent.name
        assert world.request_phrase(agent.id)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        world.tick()
        return world, agent, original

    with caplog.at_level(logging.WARNING):
        world, agent, original = asyncio.run(run())

    assert agent.name == original
    assert not agent.is_talking
    assert agent.phrase not in (None, "...")
    assert world.names.pending == 0
    assert "timed out" in caplog.text
