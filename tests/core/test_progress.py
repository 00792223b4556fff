import pytest
from unittest.mock import MagicMock

from src.core.errors import DescriptorParseError, OperationCanceledError, SyncError
from src.core.progress import ProgressMonitor


def test_cancel_is_shared_with_children():
    parent = ProgressMonitor("sync", 10)
    child = parent.split(5, "import")

    child.cancel()

    assert parent.is_canceled
    assert child.is_canceled
    assert parent.done == 5


def test_check_canceled_raises():
    monitor = ProgressMonitor("scan")
    monitor.check_canceled()

    monitor.cancel()

    with pytest.raises(OperationCanceledError):
        monitor.check_canceled()


def test_progress_is_reported():
    monitor = ProgressMonitor()
    observer = MagicMock()
    monitor.on_progress.connect(observer)

    monitor.begin_task("Importing", 2)
    monitor.worked(1)
    monitor.worked(5)

    observer.assert_called_with("Importing", 2, 2)
    assert observer.call_count == 3


def test_cancellation_is_not_a_sync_error():
    assert not issubclass(OperationCanceledError, SyncError)


def test_sync_error_carries_cause():
    cause = ValueError("bad xml")
    error = DescriptorParseError("/ws/pom.xml", cause)

    assert error.cause is cause
    assert error.__cause__ is cause
    assert error.path == "/ws/pom.xml"
    assert "bad xml" in str(error)
    assert str(SyncError("plain")) == "plain"
