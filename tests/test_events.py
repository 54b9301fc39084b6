"""Tests for host event normalization."""

from voicenotify.events import EventType, NotifyEvent, normalize_event


def test_unknown_type_is_ignored():
    assert normalize_event({"type": "file.edited", "properties": {}}) is None


def test_non_dict_is_ignored():
    assert normalize_event(["session.idle"]) is None  # type: ignore[arg-type]


def test_event_type_kinds():
    assert EventType.PERMISSION_REPLIED.kind == "permission"
    assert EventType.QUESTION_REJECTED.kind == "question"
    assert EventType.SESSION_IDLE.kind is None
    assert EventType.QUESTION_ASKED.is_request
    assert EventType.QUESTION_REJECTED.is_response
    assert not EventType.USER_MESSAGE.is_response


class TestPermissionEvents:
    def test_legacy_permission_updated(self):
        event = normalize_event(
            {"type": "permission.updated", "properties": {"id": "perm-1", "sessionID": "s1"}}
        )
        assert event.type is EventType.PERMISSION_ASKED
        assert event.request_id == "perm-1"
        assert event.session_id == "s1"

    def test_permission_asked(self):
        event = normalize_event({"type": "permission.asked", "properties": {"id": "perm-2"}})
        assert event.type is EventType.PERMISSION_ASKED
        assert event.request_id == "perm-2"

    def test_reply_prefers_permission_id(self):
        event = normalize_event(
            {
                "type": "permission.replied",
                "properties": {"permissionID": "perm-3", "id": "other", "response": "once"},
            }
        )
        assert event.type is EventType.PERMISSION_REPLIED
        assert event.request_id == "perm-3"
        assert event.response == "once"

    def test_reply_with_request_id(self):
        event = normalize_event(
            {"type": "permission.replied", "properties": {"requestID": 42, "reply": "always"}}
        )
        assert event.request_id == "42"
        assert event.response == "always"

    def test_missing_id_stays_none(self):
        event = normalize_event({"type": "permission.asked"})
        assert event.request_id is None


class TestQuestionEvents:
    def test_question_count_from_list(self):
        event = normalize_event(
            {
                "type": "question.asked",
                "properties": {"id": "q1", "questions": [{}, {}, {}]},
            }
        )
        assert event.type is EventType.QUESTION_ASKED
        assert event.question_count == 3

    def test_empty_question_list_counts_one(self):
        event = normalize_event(
            {"type": "question.asked", "properties": {"id": "q1", "questions": []}}
        )
        assert event.question_count == 1

    def test_rejected(self):
        event = normalize_event({"type": "question.rejected", "properties": {"requestID": "q1"}})
        assert event.type is EventType.QUESTION_REJECTED
        assert event.request_id == "q1"


class TestMessageEvents:
    def test_user_message_in_milliseconds(self):
        event = normalize_event(
            {
                "type": "message.updated",
                "properties": {
                    "info": {
                        "id": "msg-1",
                        "role": "user",
                        "sessionID": "s1",
                        "time": {"created": 1_700_000_000_500},
                    }
                },
            }
        )
        assert event.type is EventType.USER_MESSAGE
        assert event.message_id == "msg-1"
        assert event.role == "user"
        assert event.created_at == 1_700_000_000.5

    def test_created_in_seconds_is_kept(self):
        event = normalize_event(
            {
                "type": "message.updated",
                "properties": {"info": {"id": "m", "role": "user", "time": {"created": 1_700_000_000}}},
            }
        )
        assert event.created_at == 1_700_000_000

    def test_missing_created_time(self):
        event = normalize_event(
            {"type": "message.updated", "properties": {"info": {"id": "m", "role": "assistant"}}}
        )
        assert event.created_at is None
        assert event.role == "assistant"


class TestSessionEvents:
    def test_idle(self):
        event = normalize_event({"type": "session.idle", "properties": {"sessionID": "s1"}})
        assert event.type is EventType.SESSION_IDLE
        assert event.session_id == "s1"

    def test_created_reads_info_id(self):
        event = normalize_event({"type": "session.created", "properties": {"info": {"id": "s2"}}})
        assert event.type is EventType.SESSION_CREATED
        assert event.session_id == "s2"


def test_to_dict():
    event = NotifyEvent(type=EventType.QUESTION_ASKED, request_id="q", question_count=2)
    data = event.to_dict()
    assert data["type"] == "question-asked"
    assert data["question_count"] == 2
    assert "received_at" not in data
