import pytest

from gracely.core.config import GracelyOptions, Settings
from gracely.core.exceptions import InvalidConfigurationError


def test_defaults():
    options = GracelyOptions()

    assert options.runtime == "auto"
    assert options.timeout == 10_000
    assert options.timeout_seconds == 10.0
    assert options.liveness_endpoint == "/live"
    assert options.readiness_endpoint == "/ready"
    assert options.container_endpoint == "/proc/1/cgroup"
    assert options.metrics_endpoint is None
    assert options.ready is options.close is options.error is options.closing is None


def test_options_are_immutable():
    options = GracelyOptions()
    with pytest.raises(Exception):
        options.timeout = 5


def test_build_wraps_validation_errors():
    with pytest.raises(InvalidConfigurationError) as exc_info:
        GracelyOptions.build(timeout=0, readiness_endpoint="ready")

    err = exc_info.value
    assert err.error_code == "INVALID_CONFIGURATION"
    assert set(err.details["fields"]) == {"timeout", "readiness_endpoint"}
    assert isinstance(err, ValueError)


def test_boolean_timeout_rejected():
    with pytest.raises(InvalidConfigurationError):
        GracelyOptions.build(timeout=True)


def test_callbacks_must_be_callable():
    with pytest.raises(InvalidConfigurationError):
        GracelyOptions.build(ready="not callable")


def test_empty_container_endpoint_allowed():
    assert GracelyOptions.build(container_endpoint="").container_endpoint == ""


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("GRACELY_RUNTIME", "kubernetes")
    monkeypatch.setenv("GRACELY_TIMEOUT", "2500")
    monkeypatch.setenv("GRACELY_CONTAINER_ENDPOINT", "")

    settings = Settings(_env_file=None)

    assert settings.RUNTIME == "kubernetes"
    assert settings.TIMEOUT == 2500
    assert settings.CONTAINER_ENDPOINT == ""


def test_options_from_settings_keeps_callbacks():
    def on_ready():
        pass

    settings = Settings(_env_file=None, RUNTIME="local", TIMEOUT=3000)
    options = GracelyOptions.from_settings(settings, ready=on_ready)

    assert options.runtime == "local"
    assert options.timeout == 3000
    assert options.ready is on_ready
