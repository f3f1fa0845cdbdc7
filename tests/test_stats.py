from conftest import make_container
from doctainr.model import ContainerState, ImageRecord, ResourceSnapshot, StoreSnapshot
from doctainr.stats import summarize


def test_summary_counts_running_and_stopped():
    snapshot = StoreSnapshot(
        resources=ResourceSnapshot(
            containers=(
                make_container("a", state=ContainerState.RUNNING, image="nginx:1.25"),
                make_container("b", image="nginx:1.25"),
                make_container("c", state=ContainerState.RUNNING, image="redis:7"),
            ),
            images=(ImageRecord(id="sha256:aa11"),),
        ),
        host="unix:///var/run/docker.sock",
    )

    summary = summarize(snapshot)

    assert summary.running == 2
    assert summary.stopped == 1
    assert summary.total_containers == 3
    assert summary.images == 1
    assert summary.volumes == 0
    assert summary.containers_by_image == {"nginx:1.25": 2, "redis:7": 1}
    assert summary.host == "unix:///var/run/docker.sock"


def test_summary_of_empty_snapshot():
    summary = summarize(StoreSnapshot())
    assert summary.total_containers == 0
    assert summary.containers_by_image == {}
