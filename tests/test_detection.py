import pytest

from gracely.runtime.detection import RuntimeEnvironment, detect_runtime, resolve_runtime


def test_empty_container_endpoint_skips_file_and_is_local(marker_reads):
    assert detect_runtime("") is RuntimeEnvironment.LOCAL
    assert marker_reads == []


def test_kubernetes_service_host_wins_without_reading_file(monkeypatch, marker_reads, cgroup_file):
    monkeypatch.setenv("KUBERNETES_SERVICE_HOST", "10.0.0.1")
    path = cgroup_file("0::/docker/abc")

    assert detect_runtime(path) is RuntimeEnvironment.KUBERNETES
    assert marker_reads == []


@pytest.mark.parametrize("value", ["true", "TRUE", "1", "yes"])
def test_k8s_flag(monkeypatch, value):
    monkeypatch.setenv("K8S", value)
    assert detect_runtime("") is RuntimeEnvironment.KUBERNETES


@pytest.mark.parametrize("value", ["false", "0", ""])
def test_k8s_flag_false_is_ignored(monkeypatch, value):
    monkeypatch.setenv("K8S", value)
    assert detect_runtime("") is RuntimeEnvironment.LOCAL


def test_explicit_environ_mapping_is_used_instead_of_process_env():
    assert detect_runtime("", environ={"K8S": "true"}) is RuntimeEnvironment.KUBERNETES


@pytest.mark.parametrize("content", [
    "12:devices:/docker/3f2a1c",
    "0::/kubepods/besteffort/pod1234",
    "content with containerd",
    "1:name=systemd:/machine.slice/LIBPOD-abc.scope",
    "DOCKER",
])
def test_container_signatures(cgroup_file, marker_reads, content):
    path = cgroup_file(content)

    assert detect_runtime(path) is RuntimeEnvironment.CONTAINER
    assert marker_reads == [path]


def test_plain_cgroup_is_local(cgroup_file):
    assert detect_runtime(cgroup_file("0::/init.scope\n")) is RuntimeEnvironment.LOCAL


def test_unreadable_marker_falls_back_to_local(tmp_path, marker_reads):
    missing = str(tmp_path / "nope")

    assert detect_runtime(missing) is RuntimeEnvironment.LOCAL
    assert marker_reads == [missing]


def test_marker_read_error_is_swallowed(monkeypatch):
    from gracely.runtime import detection

    def boom(path):
        raise PermissionError("denied")

    monkeypatch.setattr(detection, "_read_marker", boom)
    assert detect_runtime("/proc/1/cgroup") is RuntimeEnvironment.LOCAL


def test_resolve_none_inspects_nothing(monkeypatch, marker_reads, cgroup_file):
    monkeypatch.setenv("K8S", "true")

    assert resolve_runtime("none", cgroup_file("docker")) is RuntimeEnvironment.NONE
    assert marker_reads == []


def test_resolve_explicit_override(monkeypatch, marker_reads):
    monkeypatch.setenv("K8S", "true")

    assert resolve_runtime("container", "/proc/1/cgroup") is RuntimeEnvironment.CONTAINER
    assert marker_reads == []


def test_resolve_auto_detects(cgroup_file):
    assert resolve_runtime(RuntimeEnvironment.AUTO, cgroup_file("kubepods")) is RuntimeEnvironment.CONTAINER


def test_resolve_rejects_unknown_runtime():
    with pytest.raises(ValueError):
        resolve_runtime("mainframe", "")
