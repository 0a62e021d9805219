from __future__ import annotations

import asyncio

from pygame.math import Vector2

from spiritpond.app.controller import SimulationController
from spiritpond.services.naming import GenerativeTextService
from spiritpond.sim.core.config import NamingConfig, SimulationConfig
from spiritpond.sim.core.world import TimeScale
from spiritpond.sim.systems import lifecycle


def _controller(**overrides) -> SimulationController:
    return SimulationController(SimulationConfig(seed=11, initial_population=3, **overrides))


def test_advance_ticks_the_world():
    async def run():
        controller = _controller()
        metrics = await controller.advance(5)
        return controller, metrics

    controller, metrics = asyncio.run(run())
    assert controller.tick == 5
    assert metrics.tick == 4
    assert metrics.population == 3


def test_host_commands_reach_the_world():
    async def run():
        controller = _controller()
        assert controller.purchase("hunter")
        assert not controller.purchase("unicorn")
        assert controller.feed(5.0, 5.0)
        controller.set_auto_feed(True)
        controller.set_time_scale(TimeScale.FAST)
        await controller.advance(1)
        return controller

    controller = asyncio.run(run())
    status = controller.status()
    assert status["population"] == 4
    assert status["species"] == {"basic": 3, "hunter": 1}
    assert controller.species_counts == {"basic": 3, "hunter": 1}
    assert status["auto_feed"] is True
    assert status["time_scale"] == "fast"
    assert status["food"] >= 1


def test_speed_is_clamped():
    controller = _controller()
    assert controller.set_speed(10.0) == 5.0
    assert controller.set_speed(0.0) == 0.1


def test_birth_becomes_a_message():
    async def run():
        controller = _controller()
        first, second = controller.world.agents[:2]
        lifecycle.reproduce(controller.world, first, second)
        await controller.advance(1)
        return controller

    controller = asyncio.run(run())
    messages = controller.recent_messages()
    assert any(message.startswith("New Spirits!") for message in messages)


def test_talk_sets_a_phrase():
    async def run():
        controller = _controller()
        agent = controller.world.agents[0]
        assert controller.talk(agent.id)
        return agent

    agent = asyncio.run(run())
    assert agent.phrase


def test_loop_runs_until_stopped_and_reset_rewinds():
    async def run():
        controller = _controller()
        controller.set_speed(5.0)
        await controller.start()
        await asyncio.sleep(0.1)
        await controller.stop()
        ticks_when_stopped = controller.tick
        await asyncio.sleep(0.05)
        ticks_after_pause = controller.tick
        await controller.reset()
        ticks_after_reset = controller.tick
        await controller.shutdown()
        return controller, ticks_when_stopped, ticks_after_pause, ticks_after_reset

    controller, stopped, paused, after_reset = asyncio.run(run())
    assert stopped > 0
    assert paused == stopped
    assert after_reset == 0
    assert not controller.running
    assert controller.world.population == 3
    assert controller.world.add_agent("basic", Vector2(10, 10)) is not None


class TrackingService:
    def __init__(self):
        self.closed = False

    async def generate_name(self, species):
        return None

    async def generate_phrase(self, species, name):
        return None

    async def close(self):
        self.closed = True


def test_shutdown_closes_only_the_service_it_built():
    async def run():
        owned = SimulationController(
            SimulationConfig(seed=11, initial_population=0, naming=NamingConfig(enabled=True, api_key="k"))
        )
        service = owned.world.names._service
        await service.start()
        assert service._client is not None
        await owned.shutdown()

        supplied = TrackingService()
        borrowed = SimulationController(SimulationConfig(seed=11, initial_population=0), text_service=supplied)
        await borrowed.shutdown()
        return service, supplied

    service, supplied = asyncio.run(run())
    assert isinstance(service, GenerativeTextService)
    assert service._client is None
    assert not supplied.closed
