from bluectl.app.domain.models.state_change import StateChangeRequest
from bluectl.app.domain.models.worker_state import WorkerState


def test_pause_with_defer_survives_encoding() -> None:
    request = StateChangeRequest(new_state=WorkerState.PAUSED, defer=True)

    payload = request.to_payload()
    decoded = StateChangeRequest.model_validate(payload)

    assert payload == {"new_state": "PAUSED", "defer": True}
    assert decoded.new_state is WorkerState.PAUSED
    assert decoded.defer is True
    assert decoded.reason is None


def test_absent_optional_fields_are_omitted() -> None:
    payload = StateChangeRequest(new_state=WorkerState.RUNNING).to_payload()

    assert payload == {"new_state": "RUNNING"}


def test_abort_reason_is_sent() -> None:
    payload = StateChangeRequest(new_state=WorkerState.ABORTING, reason="beam dump").to_payload()

    assert payload == {"new_state": "ABORTING", "reason": "beam dump"}
