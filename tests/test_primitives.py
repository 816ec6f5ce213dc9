"""
Primitives: Observable (events.py), OneShotSignal / AtexitSignal
(signals.py), LockBarrier (barrier.py), EnvironmentBridge
(environment.py), Module (module.py), AppRegistry (registry.py).
"""

import atexit

import pytest

from kindle.app import App
from kindle.barrier import LockBarrier
from kindle.environment import READY, UNLOAD, EnvironmentBridge
from kindle.events import Observable
from kindle.faults import LockUnderflowFault
from kindle.module import Module
from kindle.registry import AppRegistry
from kindle.signals import AtexitSignal, OneShotSignal


# ============================================================================
# Observable
# ============================================================================

class TestObservable:

    def test_trigger_calls_in_subscription_order(self):
        calls = []
        bus = Observable()
        bus.on("ping", lambda: calls.append(1))
        bus.on("ping", lambda: calls.append(2))
        bus.trigger("ping")
        assert calls == [1, 2]

    def test_trigger_passes_arguments(self):
        received = []
        bus = Observable()
        bus.on("data", lambda *args, **kw: received.append((args, kw)))
        bus.trigger("data", 1, 2, key="v")
        assert received == [((1, 2), {"key": "v"})]

    def test_events_are_namespaced(self):
        calls = []
        bus = Observable()
        bus.on("a", lambda: calls.append("a"))
        bus.trigger("b")
        assert calls == []

    def test_instances_are_independent(self):
        calls = []
        first, second = Observable(), Observable()
        first.on("x", lambda: calls.append("first"))
        second.trigger("x")
        assert calls == []

    def test_decorator_form(self):
        bus = Observable()

        @bus.on("x")
        def handler():
            pass

        assert bus.listeners("x") == [handler]

    def test_once(self):
        calls = []
        bus = Observable()
        bus.once("x", lambda: calls.append(1))
        bus.trigger("x").trigger("x")
        assert calls == [1]

    def test_off(self):
        calls = []
        handler = lambda: calls.append(1)  # noqa: E731
        bus = Observable()
        bus.on("x", handler).on("y", handler)

        bus.off("x", handler)
        bus.trigger("x")
        assert calls == []

        bus.off()
        assert not bus.has_listeners()

    def test_off_bound_method(self):
        class Counter:
            def __init__(self):
                self.hits = 0

            def hit(self):
                self.hits += 1

        counter = Counter()
        bus = Observable()
        bus.on("x", counter.hit)
        bus.off("x", counter.hit)
        bus.trigger("x")
        assert counter.hits == 0

    def test_once_keeps_permanent_subscription(self):
        calls = []
        handler = lambda: calls.append(1)  # noqa: E731
        bus = Observable()
        bus.on("x", handler)
        bus.once("x", handler)

        bus.trigger("x")
        assert calls == [1, 1]
        bus.trigger("x")
        assert calls == [1, 1, 1]
        assert bus.listeners("x") == [handler]

    def test_once_not_repeated_by_nested_trigger(self):
        calls = []
        bus = Observable()

        def outer():
            calls.append("outer")
            bus.trigger("x")

        bus.once("x", outer)
        bus.trigger("x")
        assert calls == ["outer"]

    def test_handler_failure_propagates(self):
        calls = []

        def boom():
            raise RuntimeError("handler failed")

        bus = Observable()
        bus.on("x", boom)
        bus.on("x", lambda: calls.append("after"))
        with pytest.raises(RuntimeError):
            bus.trigger("x")
        assert calls == []

    def test_subscribed_during_dispatch_not_called(self):
        calls = []
        bus = Observable()
        bus.on("x", lambda: bus.on("x", lambda: calls.append("late")))
        bus.trigger("x")
        assert calls == []

    def test_listening(self):
        calls = []
        handler = lambda: calls.append(1)  # noqa: E731
        bus = Observable()
        with bus.listening("x", handler):
            bus.trigger("x")
        bus.trigger("x")
        assert calls == [1]


# ============================================================================
# Signals
# ============================================================================

class TestOneShotSignal:

    def test_fires_once(self):
        calls = []
        signal = OneShotSignal("ready")
        signal.subscribe(lambda: calls.append(1))
        assert signal.fire() is True
        assert signal.fire() is False
        assert calls == [1]
        assert signal.fired

    def test_late_subscriber_runs_immediately(self):
        calls = []
        signal = OneShotSignal()
        signal.fire()
        signal.subscribe(lambda: calls.append("late"))
        assert calls == ["late"]

    def test_repr(self):
        assert "pending" in repr(OneShotSignal("x"))


class TestAtexitSignal:

    def test_registers_and_disarms(self, monkeypatch):
        registered = []
        monkeypatch.setattr(atexit, "register", registered.append)
        monkeypatch.setattr(atexit, "unregister", registered.remove)

        signal = AtexitSignal()
        assert registered == [signal._fire_at_exit]
        signal.disarm()
        assert registered == []

    def test_fire_at_exit_logs_failures(self, monkeypatch, caplog):
        monkeypatch.setattr(atexit, "register", lambda fn: None)

        def boom():
            raise RuntimeError("unload failed")

        signal = AtexitSignal()
        signal.subscribe(boom)
        signal._fire_at_exit()
        assert signal.fired
        assert "unload failed" in caplog.text


# ============================================================================
# LockBarrier
# ============================================================================

class TestLockBarrier:

    def test_counts(self, fault_engine):
        barrier = LockBarrier(fault_engine=fault_engine)
        barrier.lock()
        barrier.lock()
        assert barrier.count == 2
        assert barrier.is_locked
        barrier.unlock()
        barrier.unlock()
        assert barrier.count == 0
        assert not barrier.is_locked

    def test_unlock_always_broadcasts(self, fault_engine):
        broadcasts = []
        barrier = LockBarrier(lambda: broadcasts.append(True), fault_engine=fault_engine)
        barrier.lock()
        barrier.lock()
        barrier.unlock()
        barrier.unlock()
        assert broadcasts == [True, True]

    def test_lock_does_not_broadcast(self, fault_engine):
        broadcasts = []
        barrier = LockBarrier(lambda: broadcasts.append(True), fault_engine=fault_engine)
        barrier.lock()
        assert broadcasts == []

    def test_underflow_is_clamped_and_reported(self, fault_engine):
        broadcasts = []
        barrier = LockBarrier(lambda: broadcasts.append(True), fault_engine=fault_engine)
        barrier.unlock()
        assert barrier.count == 0
        assert fault_engine.fault_codes == ["LOCK_UNDERFLOW"]
        assert broadcasts == [True]

        barrier.lock()
        assert barrier.is_locked

    def test_strict_underflow_raises(self, fault_engine):
        barrier = LockBarrier(fault_engine=fault_engine, strict=True)
        with pytest.raises(LockUnderflowFault):
            barrier.unlock()
        assert fault_engine.fault_count == 0

    def test_strict_policy_callable(self, fault_engine):
        policy = {"strict": False}
        barrier = LockBarrier(fault_engine=fault_engine, strict=lambda: policy["strict"])
        barrier.unlock()
        assert fault_engine.fault_count == 1

        policy["strict"] = True
        assert barrier.strict is True
        with pytest.raises(LockUnderflowFault):
            barrier.unlock()

    def test_held(self, fault_engine):
        barrier = LockBarrier(fault_engine=fault_engine)
        with barrier.held():
            assert barrier.count == 1
        assert barrier.count == 0

    def test_held_releases_on_error(self, fault_engine):
        barrier = LockBarrier(fault_engine=fault_engine)
        with pytest.raises(ValueError):
            with barrier.held():
                raise ValueError()
        assert barrier.count == 0


# ============================================================================
# EnvironmentBridge
# ============================================================================

class TestEnvironmentBridge:

    def test_republishes_ready(self):
        calls = []
        events = Observable()
        events.on(READY, lambda: calls.append("ready"))
        bridge = EnvironmentBridge(events)

        assert bridge.ready() is True
        assert bridge.is_ready
        assert bridge.ready() is False
        assert calls == ["ready"]

    def test_republishes_unload(self):
        calls = []
        events = Observable()
        events.on(UNLOAD, lambda: calls.append("unload"))
        bridge = EnvironmentBridge(events)
        bridge.unload()
        bridge.unload()
        assert calls == ["unload"]
        assert bridge.is_unloading

    def test_already_fired_source(self):
        source = OneShotSignal()
        source.fire()
        bridge = EnvironmentBridge(Observable(), ready_source=source)
        assert bridge.is_ready

    def test_attach_replaces_sources(self):
        calls = []
        events = Observable()
        events.on(UNLOAD, lambda: calls.append("unload"))
        bridge = EnvironmentBridge(events)
        original = bridge.unload_source
        host_unload = OneShotSignal("host-unload")

        bridge.attach(unload_source=host_unload)
        original.fire()
        assert calls == []

        host_unload.fire()
        assert calls == ["unload"]
        assert bridge.unload_source is host_unload

    def test_attach_keeps_omitted_source(self):
        bridge = EnvironmentBridge(Observable())
        ready = bridge.ready_source
        bridge.attach(unload_source=OneShotSignal())
        assert bridge.ready_source is ready
        bridge.ready()
        assert bridge.is_ready

    def test_attach_same_source_subscribes_once(self):
        calls = []
        events = Observable()
        events.on(READY, lambda: calls.append("ready"))
        source = OneShotSignal()
        bridge = EnvironmentBridge(events, ready_source=source)
        bridge.attach(ready_source=source)
        source.fire()
        assert calls == ["ready"]


class TestSignalUnsubscribe:

    def test_unsubscribe(self):
        calls = []
        callback = lambda: calls.append(1)  # noqa: E731
        signal = OneShotSignal()
        signal.subscribe(callback)
        signal.unsubscribe(callback)
        signal.unsubscribe(print)
        signal.fire()
        assert calls == []


# ============================================================================
# Module
# ============================================================================

class TestModule:

    def test_initialize_runs_on_construction(self):
        class Point(Module):
            def initialize(self, x, y=0):
                self.x, self.y = x, y

        p = Point(1, y=2)
        assert (p.x, p.y) == (1, 2)

    def test_extend_merges_attributes(self):
        Base = Module.extend(greeting="hi", greet=lambda self: self.greeting)
        Child = Base.extend(greeting="hello")
        assert Base().greet() == "hi"
        assert Child().greet() == "hello"
        assert issubclass(Child, Base)

    def test_extend_chains_initializers(self):
        order = []
        Base = Module.extend(lambda self: order.append("base"))
        Child = Base.extend(lambda self: order.append("child"), __name__="Child")
        Child()
        assert order == ["base", "child"]
        assert Child.__name__ == "Child"

    def test_extend_app(self, coordinator):
        ManualApp = App.extend(auto_start=False)
        app = ManualApp(coordinator=coordinator)
        coordinator.ready()
        assert not app.has_initialized
        assert isinstance(app, App)

    def test_extend_app_initializer(self, coordinator):
        Checkout = App.extend(lambda self, *a, **kw: self.configure("currency", "EUR"))
        app = Checkout("checkout", coordinator=coordinator)
        assert app.config == {"currency": "EUR"}
        assert app.name == "checkout"


# ============================================================================
# AppRegistry
# ============================================================================

class TestAppRegistry:

    def test_append_only_order(self, coordinator):
        registry = AppRegistry()
        a, b = coordinator.app("a"), coordinator.app("b")
        registry.add(a)
        registry.add(b)
        assert list(registry) == [a, b]
        assert len(registry) == 2
        assert registry.get("b") is b
        assert registry.get("missing") is None

    def test_run_checks(self, coordinator):
        app = coordinator.app("a")
        coordinator.environment.is_ready = True
        coordinator.registry.run_checks()
        assert app.has_initialized

    def test_app_created_during_check(self, coordinator):
        created = []
        first = coordinator.app("first")
        first.start(lambda config: created.append(coordinator.app("second")))
        coordinator.ready()
        assert created[0].has_initialized
        assert len(coordinator.registry) == 2
