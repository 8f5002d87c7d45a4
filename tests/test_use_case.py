"""
End-to-end scenarios through the convenience API.
"""

import threading

import pytest

import graphdump
from graphdump import default_registry
from graphdump.core import static

from resources import marked


@pytest.fixture(autouse=True)
def clean_default_registry():
    yield
    default_registry.clear()


class Entity:
    def __init__(self, name, world):
        self.name = name
        self.world = world
        self.inventory = []


def make_event_bus():
    handlers = {}

    def subscribe(event, handler):
        handlers.setdefault(event, []).append(handler)

    def emit(event, *args):
        return [handler(*args) for handler in handlers.get(event, [])]

    return subscribe, emit


class TestGameState:
    """A small game world with entities, closures, overrides and static data."""

    def build_world(self):
        world = {"entities": [], "lock": threading.Lock(), "assets": marked.TABLE}
        player = Entity("player", world)
        player.inventory.append({"item": "sword", "owner": player})
        world["entities"].append(player)

        subscribe, emit = make_event_bus()
        score = [0]

        def on_kill(points):
            score[0] += points
            return score[0]

        subscribe("kill", on_kill)
        world["bus"] = (subscribe, emit)
        world["score"] = score
        return world

    def test_world_roundtrip(self):
        """Test the whole world survives a dump and load."""
        static.mark(marked, "resources.marked", default_registry)
        world = self.build_world()
        graphdump.register(world["lock"], "_require('threading').Lock()")

        copy = graphdump.loads(graphdump.dumps(world))

        player = copy["entities"][0]
        assert player.world is copy
        assert player.inventory[0]["owner"] is player
        assert copy["assets"] is marked.TABLE
        assert copy["lock"].acquire(blocking=False)

        subscribe, emit = copy["bus"]
        assert emit("kill", 10) == [10]
        assert copy["score"] == [10]

        subscribe("kill", lambda points: points * 2)
        assert emit("kill", 1) == [11, 2]

        assert world["score"] == [0]

    def test_world_without_lock_recipe(self):
        """Test that the lock is reported by path in strict mode."""
        with pytest.raises(graphdump.UnsupportedTypeError) as exc_info:
            graphdump.dumps(self.build_world())

        assert exc_info.value.path == "value['lock']"

    def test_lenient_world(self):
        """Test that lenient mode drops the lock with a warning."""
        config = graphdump.DumpConfig(strict_mode=False)

        copy = graphdump.loads(graphdump.dumps(self.build_world(), config=config))

        assert copy["lock"] is None
        assert any("value['lock']" in warning for warning in graphdump.get_warnings())
        assert copy["entities"][0].world is copy


class TestApi:
    """Tests for the convenience functions."""

    def test_register_returns_value(self):
        """Test that register can wrap a value inline."""
        value = object()

        assert graphdump.register(value, "'replaced'") is value
        assert graphdump.loads(graphdump.dumps([value])) == ["replaced"]

    def test_ignore_capture_size_decorator(self):
        """Test the decorator form."""
        data = list(range(5000))

        @graphdump.ignore_capture_size
        def read(index):
            return data[index]

        graphdump.dumps(read)

        assert graphdump.get_warnings() == []

    def test_mark_and_allow_reference_keys(self):
        """Test marking through the default registry."""
        from resources import keyed

        with pytest.raises(graphdump.UnresolvableStaticKeyError):
            graphdump.mark(keyed, "resources.keyed")

        graphdump.allow_reference_keys("resources.keyed")
        graphdump.mark(keyed, "resources.keyed")

        assert graphdump.loads(graphdump.dumps(keyed.HANDLERS)) is keyed.HANDLERS

    def test_get_warnings_returns_copy(self):
        """Test that callers cannot change recorded warnings."""
        graphdump.dumps([1])
        graphdump.get_warnings().append("changed")

        assert graphdump.get_warnings() == []

    def test_failed_dump_clears_warnings(self):
        """Test that warnings of an earlier call do not survive a failed one."""
        lenient = graphdump.DumpConfig(strict_mode=False)
        graphdump.dumps({"lock": threading.Lock()}, config=lenient)
        assert graphdump.get_warnings()

        with pytest.raises(graphdump.UnsupportedTypeError):
            graphdump.dumps({"lock": threading.Lock()})

        assert graphdump.get_warnings() == []
