from tunroute.config import DesiredConfig, Prefix
from tunroute.driver import RouterPhase, TunRouter
from tunroute.errors import CommandError, ConfigurationError
from tunroute_agent import ConfigUpdate, DriverRegistry, InterfaceTeardown
from tunroute_agent.drivers import build_router_adapter


def build_registry(settings, executor):
    router = TunRouter(settings, executor=executor)
    adapter = build_router_adapter(router)
    registry = DriverRegistry()
    registry.register("tun", adapter)
    return registry, adapter, router


def test_registry_dispatches_events(settings, executor):
    registry, adapter, router = build_registry(settings, executor)

    registry.handle(
        ConfigUpdate(DesiredConfig(local_addrs=("100.64.1.2/32",), routes=("10.0.0.0/24",)))
    )

    assert router.state.routes == frozenset({Prefix.parse("10.0.0.0/24")})
    assert adapter.last_error is None

    registry.handle(ConfigUpdate(None))
    assert router.state.is_empty()

    executor.clear()
    registry.handle(InterfaceTeardown("test"))
    assert executor.calls == [["ifconfig", "tun0", "down"]]
    assert router.phase is RouterPhase.IDLE


def test_adapter_swallows_router_errors(settings, executor):
    registry, adapter, router = build_registry(settings, executor)

    registry.handle(
        ConfigUpdate(DesiredConfig(local_addrs=("100.64.1.2/32", "100.64.1.3/32")))
    )
    assert isinstance(adapter.last_error, ConfigurationError)

    executor.fail_matching("10.0.0.0/24")
    registry.handle(ConfigUpdate(DesiredConfig(routes=("10.0.0.0/24",))))
    assert isinstance(adapter.last_error, CommandError)

    registry.handle(ConfigUpdate(DesiredConfig()))
    assert isinstance(adapter.last_error, CommandError)

    registry.handle(ConfigUpdate(DesiredConfig()))
    assert adapter.last_error is None


def test_registry_rejects_duplicate_registration(settings, executor):
    registry, adapter, _ = build_registry(settings, executor)

    try:
        registry.register("tun", adapter)
    except ValueError:
        pass
    else:
        raise AssertionError("duplicate registration did not raise ValueError")


def test_registry_rejects_unknown_events(settings, executor):
    registry, _, _ = build_registry(settings, executor)

    try:
        registry.handle(object())
    except TypeError:
        pass
    else:
        raise AssertionError("unknown event did not raise TypeError")


def test_unregistered_driver_gets_no_events(settings, executor):
    registry, _, _ = build_registry(settings, executor)
    registry.unregister("tun")

    registry.handle(ConfigUpdate(DesiredConfig(routes=("10.0.0.0/24",))))

    assert executor.calls == []
