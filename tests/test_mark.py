def _mark(client, question_id, question_set_id="science-quiz", **answer):
    return client.post(
        "/mark", json={"question_set_id": question_set_id, "question_id": question_id, **answer}
    )


def test_mark_single_choice_correct(client):
    r = _mark(client, "q1", selected_options=["B"])
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["is_correct"] is True
    assert body["marks_obtained"] == 5
    assert body["max_marks"] == 5
    assert body["question_id"] == "q1"
    assert body["feedback"] == "Correct!"


def test_mark_single_choice_incorrect(client):
    body = _mark(client, "q1", selected_options=["A"]).json()
    assert body["is_correct"] is False and body["marks_obtained"] == 0


def test_mark_multi_choice_partial_credit(client):
    body = _mark(client, "q2", selected_options=["A", "C", "D"]).json()
    assert body["marks_obtained"] == 2
    assert body["feedback"] == "Partial credit: 2 correct, 1 incorrect"


def test_mark_true_false_wrong(client):
    body = _mark(client, "q3", text_answer="false").json()
    assert body["marks_obtained"] == 0
    assert body["feedback"] == "Incorrect. The correct answer is true"


def test_mark_short_text_keyword_match_goes_to_review(client):
    body = _mark(client, "q4", text_answer="Mitochondria release energy").json()
    assert body["marks_obtained"] == 10
    assert body["needs_manual_grading"] is True
    assert body["auto_graded"] is False


def test_mark_long_text_is_manual(client):
    body = _mark(client, "q5", text_answer="Water moves across a membrane.").json()
    assert body["needs_manual_grading"] is True
    assert body["marks_obtained"] == 0


def test_mark_legacy_question(client):
    body = _mark(client, "l1", question_set_id="legacy-quiz", selected_options=["x"]).json()
    assert body["is_correct"] is True and body["marks_obtained"] == 1


def test_mark_unknown_set(client):
    r = _mark(client, "q1", question_set_id="nope", selected_options=["B"])
    assert r.status_code == 404
    assert r.json()["error"] == "QuestionSetNotFound"


def test_mark_unknown_question(client):
    r = _mark(client, "zzz", selected_options=["B"])
    assert r.status_code == 404
    assert r.json()["error"] == "QuestionNotFound"


def test_mark_requires_ids(client):
    r = client.post("/mark", json={"selected_options": ["B"]})
    assert r.status_code == 422
