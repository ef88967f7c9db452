from conftest import make_update, run
from polling_bot import process_batch


def test_process_batch_dispatches_and_advances_offset(dispatcher, telegram):
    updates = [make_update("/start", update_id=10), make_update("hello", update_id=11)]

    offset = run(process_batch(dispatcher, updates, None))

    assert offset == 12
    assert [m["text"] for m in telegram.sent][1] == "Hi there"


def test_process_batch_skips_malformed_and_failing_updates(dispatcher, telegram):
    telegram.fail_send = True
    updates = [{"update_id": "bad"}, make_update("/start", update_id=20)]

    offset = run(process_batch(dispatcher, updates, 5))

    assert offset == 21
    assert telegram.sent == []
