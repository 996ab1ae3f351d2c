import pytest

from rauc_installer.models.install_context import InstallContext
from rauc_installer.models.install_result import InstallResult
from rauc_installer.workers.install_worker import InstallWorker

from conftest import (
    FakeInstallerSession,
    completed_event,
    failing_session_factory,
    rejected_install,
    session_factory_for,
    status_event,
)

BUNDLE = "/data/update-2024.03.raucb"


def run_worker(settings, recorder, session=None, factory=None, with_status=True):
    """Runs a worker synchronously on the test thread and returns its context."""
    context = InstallContext(
        BUNDLE,
        notify_event=recorder.on_status if with_status else None,
        notify_complete=recorder.on_complete,
    )
    worker = InstallWorker(context, settings, factory or session_factory_for(session))
    worker.run()
    return context


# -----------------------------------------------------------------------------
# Successful and remote-reported outcomes
# -----------------------------------------------------------------------------

def test_successful_install_reports_statuses_in_order(settings, recorder):
    session = FakeInstallerSession(events=[
        status_event({"Operation": "installing"}),
        status_event({"Progress": [0, "Installing", 1]}),
        status_event({"Progress": [42, "Installing", 1]}),
        status_event({"Progress": [100, "Installing done.", 1]}),
        status_event({"Operation": "idle"}),
        completed_event(0),
    ])

    context = run_worker(settings, recorder, session)

    assert session.installed == [BUNDLE]
    assert recorder.messages == [
        "installing",
        "  0% Installing",
        " 42% Installing",
        "100% Installing done.",
        "idle",
    ]
    assert recorder.results == [InstallResult.SUCCESS]
    assert recorder.complete_calls == 1
    assert session.closed is True
    assert context.loop_context.is_closed()


def test_remote_failure_surfaces_last_error_before_completion(settings, recorder):
    session = FakeInstallerSession(events=[
        status_event({"Operation": "installing"}),
        status_event({"LastError": "Failed to check bundle: bundle signature invalid"}),
        status_event({"Operation": "idle"}),
        completed_event(1),
    ])

    run_worker(settings, recorder, session)

    assert recorder.messages == [
        "installing",
        "LastError: Failed to check bundle: bundle signature invalid",
        "idle",
    ]
    assert recorder.results == [1]
    assert recorder.complete_calls == 1


def test_empty_last_error_is_not_reported(settings, recorder):
    session = FakeInstallerSession(events=[
        status_event({"LastError": ""}),
        completed_event(0),
    ])

    run_worker(settings, recorder, session)

    assert recorder.status_calls == 0
    assert recorder.messages == []
    assert recorder.results == [0]


def test_negative_completion_does_not_end_the_install(settings, recorder):
    session = FakeInstallerSession(events=[
        completed_event(-1),
        status_event({"Operation": "installing"}),
        completed_event(0),
    ])

    run_worker(settings, recorder, session)

    assert recorder.messages == ["installing"]
    assert recorder.results == [0]


def test_statuses_are_not_queued_without_status_callback(settings, recorder):
    session = FakeInstallerSession(events=[
        status_event({"Operation": "installing"}),
        status_event({"Progress": [50, "Copying image", 2]}),
        completed_event(0),
    ])

    context = run_worker(settings, recorder, session, with_status=False)

    assert recorder.messages == []
    assert recorder.results == [0]
    assert context.loop_context.is_closed()


# -----------------------------------------------------------------------------
# Disconnect
# -----------------------------------------------------------------------------

def test_service_disappearing_ends_install_with_disconnect_code(settings, recorder):
    session = FakeInstallerSession(events=[
        status_event({"Operation": "installing"}),
        status_event({}, invalidated=["Operation", "LastError", "Progress"]),
    ])

    run_worker(settings, recorder, session)

    assert recorder.results == [InstallResult.DISCONNECTED]
    assert recorder.complete_calls == 1
    assert recorder.messages == ["installing"]


def test_result_is_not_overwritten_after_disconnect(settings, recorder):
    # Both events are delivered before the worker wakes up again.
    session = FakeInstallerSession(events=[
        status_event({}, invalidated=["Operation"]),
        completed_event(0),
    ])

    run_worker(settings, recorder, session)

    assert recorder.results == [InstallResult.DISCONNECTED]


# -----------------------------------------------------------------------------
# Local failures
# -----------------------------------------------------------------------------

def test_connection_failure_still_completes_once(settings, recorder):
    settings_seen = []

    run_worker(settings, recorder, factory=failing_session_factory(settings_seen))

    assert settings_seen == [settings]
    assert recorder.results == [InstallResult.FAILURE]
    assert recorder.complete_calls == 1
    assert recorder.status_calls == 0


@pytest.mark.parametrize("which", ["status", "completed"])
def test_subscription_failure_completes_with_failure(settings, recorder, which):
    session = FakeInstallerSession(events=[completed_event(0)], fail_subscribe=which)

    run_worker(settings, recorder, session)

    assert session.installed == []
    assert session.closed is True
    assert recorder.results == [InstallResult.FAILURE]
    assert recorder.complete_calls == 1


def test_rejected_install_request_completes_with_failure(settings, recorder):
    session = FakeInstallerSession(fail_install=rejected_install(BUNDLE))

    run_worker(settings, recorder, session)

    assert session.disconnect_calls >= 1
    assert recorder.results == [InstallResult.FAILURE]
    assert recorder.complete_calls == 1


def test_unexpected_error_is_converted_to_failure(settings, recorder):
    session = FakeInstallerSession(fail_install=RuntimeError("socket closed"))

    context = run_worker(settings, recorder, session)

    assert recorder.results == [InstallResult.FAILURE]
    assert session.closed is True
    assert context.loop_context.is_closed()


# -----------------------------------------------------------------------------
# Lifecycle
# -----------------------------------------------------------------------------

def test_failing_completion_callback_does_not_leak_the_context(settings):
    session = FakeInstallerSession(events=[completed_event(0)])
    context = InstallContext(BUNDLE, notify_complete=lambda ctx: 1 / 0)

    InstallWorker(context, settings, session_factory_for(session)).run()

    assert context.loop_context.is_closed()


def test_undrained_status_messages_fail_loudly(settings):
    session = FakeInstallerSession(events=[
        status_event({"Operation": "installing"}),
        completed_event(0),
    ])
    completions = []
    context = InstallContext(
        BUNDLE,
        notify_event=lambda ctx: None,
        notify_complete=completions.append,
    )

    with pytest.raises(AssertionError):
        InstallWorker(context, settings, session_factory_for(session)).run()

    assert completions == [context]
    context.drain_status_messages()
    context.free()
