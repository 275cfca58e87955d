import services
from api.config import TestingConfig
from services import build_services


def _config(**overrides):
    config = {k: getattr(TestingConfig, k) for k in dir(TestingConfig) if k.isupper()}
    config.update(overrides)
    return config


def test_exit_hook_only_when_background_work_starts(monkeypatch):
    registered, unregistered = [], []
    monkeypatch.setattr(services.atexit, "register", registered.append)
    monkeypatch.setattr(services.atexit, "unregister", unregistered.append)

    idle = build_services(_config())
    assert idle.start_background(_config()) is False
    assert registered == []
    idle.shutdown()
    idle.storage.dispose()

    busy = build_services(_config(NOTIFICATIONS_ENABLED=True))
    assert busy.start_background(_config(NOTIFICATIONS_ENABLED=True)) is True
    assert registered == [busy.shutdown]

    busy.shutdown()
    assert busy.shutdown in unregistered
    assert not busy.notifications.running
    busy.storage.dispose()


def test_create_app_without_background_work_registers_nothing(monkeypatch):
    registered = []
    monkeypatch.setattr(services.atexit, "register", registered.append)

    from api import create_app

    app = create_app("testing")
    app.extensions["services"].shutdown()
    assert registered == []
