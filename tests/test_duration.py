from models import Attempt


def test_submit_records_duration_ms(client, session_factory):
    r = client.post("/attempts", json={"question_set_id": "auto-only", "learner_id": "learner-1"})
    assert r.status_code == 201
    attempt_id = r.json()["id"]

    client.put(f"/attempts/{attempt_id}/answers", json={"question_id": "a1", "selected_options": ["C"]})
    r = client.post(
        f"/attempts/{attempt_id}/submit",
        json={"answers": [{"question_id": "a2", "text_answer": "true"}]},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "graded"
    assert body["total_marks_obtained"] == 4

    with session_factory() as db:
        a = db.get(Attempt, attempt_id)
        assert a is not None
        assert a.duration_ms is not None
        assert isinstance(a.duration_ms, int)
        assert a.duration_ms >= 0
        assert a.submitted_at >= a.started_at


def test_duration_counts_from_creation_when_never_answered(client, session_factory):
    r = client.post("/attempts", json={"question_set_id": "auto-only", "learner_id": "learner-1"})
    attempt_id = r.json()["id"]
    r = client.post(f"/attempts/{attempt_id}/submit")
    assert r.status_code == 200
    assert r.json()["duration_ms"] >= 0
    assert r.json()["total_marks_obtained"] == 0
