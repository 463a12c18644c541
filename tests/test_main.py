"""Console entry point wiring."""

from backoffice_service import main
from backoffice_service.settings import settings


def test_run_serves_app_factory_from_settings(monkeypatch):
    seen = {}

    def _run(app, **kwargs):
        seen["app"] = app
        seen.update(kwargs)

    monkeypatch.setattr(main.uvicorn, "run", _run)
    monkeypatch.setattr(settings, "rest_host", "127.0.0.1")
    monkeypatch.setattr(settings, "rest_port", 9090)
    main.run()

    assert seen["app"] == "backoffice_service.rest.app:create_app"
    assert seen["factory"] is True
    assert seen["host"] == "127.0.0.1"
    assert seen["port"] == 9090
    assert seen["proxy_headers"] is True
