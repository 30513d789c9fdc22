import pytest

from gracely.runtime import detection


@pytest.fixture(autouse=True)
def clean_kubernetes_env(monkeypatch):
    monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
    monkeypatch.delenv("K8S", raising=False)


@pytest.fixture
def marker_reads(monkeypatch):
    """Record every marker-file read while still reading the real file."""
    calls = []
    real_read = detection._read_marker

    def spy(path):
        calls.append(path)
        return real_read(path)

    monkeypatch.setattr(detection, "_read_marker", spy)
    return calls


@pytest.fixture
def cgroup_file(tmp_path):
    def write(content: str) -> str:
        path = tmp_path / "cgroup"
        path.write_text(content, encoding="utf-8")
        return str(path)
    return write
