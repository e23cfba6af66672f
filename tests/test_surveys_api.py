"""Tests for the survey HTTP API — CRUD, lifecycle actions, questions, responses, CSV export."""

import csv
import io
import uuid
from datetime import datetime

from pulse.models import Question, Survey

NONEXISTENT_UUID = str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _create_survey(
    db,
    org_id,
    title="Employee Engagement Survey",
    description="Quarterly employee engagement and satisfaction assessment",
    status="draft",
    total_invited=0,
    questions=None,
):
    if questions is None:
        questions = [
            Question(type="likert", text="How satisfied are you with your current role?", required=True),
            Question(
                type="multiple_choice",
                text="How did you hear about the survey?",
                options=["Email", "Slack", "Manager"],
                required=True,
            ),
            Question(type="text", text="What aspects of your job do you find most fulfilling?", required=False),
        ]
    survey = Survey(
        org_id=org_id,
        title=title,
        description=description,
        status=status,
        category="engagement",
        frequency="quarterly",
        total_invited=total_invited,
        questions=questions,
    )
    db.add(survey)
    db.commit()
    db.refresh(survey)
    return survey


def _answers(survey):
    q = survey.questions
    return {str(q[0].id): 4, str(q[1].id): "Slack"}


# ---------------------------------------------------------------------------
# POST /surveys — Create Survey
# ---------------------------------------------------------------------------


class TestCreateSurvey:
    def test_create_survey_success(self, client, db, org_id):
        payload = {
            "org_id": str(org_id),
            "title": "Q3 Engagement",
            "description": "Quarterly pulse",
            "category": "engagement",
            "frequency": "quarterly",
        }
        resp = client.post("/api/v1/surveys/", json=payload)
        assert resp.status_code == 201
        data = resp.json()
        assert data["title"] == "Q3 Engagement"
        assert data["status"] == "draft"
        assert data["category"] == "engagement"
        assert data["frequency"] == "quarterly"
        assert data["questions"] == []
        assert data["responses"] == 0
        assert data["total_invited"] == 0
        assert data["completion_rate"] == 0
        assert "id" in data

    def test_create_defaults_tags(self, client, org_id):
        resp = client.post("/api/v1/surveys/", json={"org_id": str(org_id), "title": "Defaults"})
        assert resp.status_code == 201
        assert resp.json()["category"] == "engagement"
        assert resp.json()["frequency"] == "quarterly"

    def test_create_with_questions(self, client, org_id):
        payload = {
            "org_id": str(org_id),
            "title": "Culture",
            "category": "culture",
            "frequency": "annually",
            "questions": [
                {"type": "likert", "text": "Values guide decisions"},
                {"type": "multiple_choice", "text": "Best perk?", "options": ["Remote", "Lunch"]},
            ],
        }
        resp = client.post("/api/v1/surveys/", json=payload)
        assert resp.status_code == 201
        questions = resp.json()["questions"]
        assert [q["position"] for q in questions] == [0, 1]
        assert questions[1]["options"] == ["Remote", "Lunch"]

    def test_create_no_title_rejected(self, client, org_id):
        resp = client.post("/api/v1/surveys/", json={"org_id": str(org_id), "category": "culture"})
        assert resp.status_code == 422

    def test_create_blank_title_rejected(self, client, db, org_id):
        resp = client.post("/api/v1/surveys/", json={"org_id": str(org_id), "title": "   "})
        assert resp.status_code == 422
        assert "Title must not be empty" in resp.json()["detail"]
        assert db.query(Survey).count() == 0

    def test_create_unknown_category_rejected(self, client, org_id):
        payload = {"org_id": str(org_id), "title": "Bad", "category": "astrology"}
        resp = client.post("/api/v1/surveys/", json=payload)
        assert resp.status_code == 422

    def test_create_mc_too_few_options_rejected(self, client, org_id):
        payload = {
            "org_id": str(org_id),
            "title": "Bad Survey",
            "questions": [{"type": "multiple_choice", "text": "Pick one", "options": ["Only one"]}],
        }
        resp = client.post("/api/v1/surveys/", json=payload)
        assert resp.status_code == 422
        assert "at least 2 options" in resp.json()["detail"]

    def test_create_unknown_org_not_found(self, client):
        resp = client.post("/api/v1/surveys/", json={"org_id": NONEXISTENT_UUID, "title": "Orphan"})
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Organization not found"


# ---------------------------------------------------------------------------
# GET /surveys — List Surveys
# ---------------------------------------------------------------------------


class TestListSurveys:
    def test_list_empty(self, client):
        resp = client.get("/api/v1/surveys/")
        assert resp.status_code == 200
        assert resp.json() == {"items": [], "total": 0}

    def test_list_summary_fields(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="published", total_invited=5)
        resp = client.get("/api/v1/surveys/")
        assert resp.status_code == 200
        item = resp.json()["items"][0]
        assert item["id"] == str(survey.id)
        assert item["title"] == "Employee Engagement Survey"
        assert item["status"] == "published"
        assert item["responses"] == 0
        assert {"description", "created_at"} <= set(item)

    def test_list_newest_first(self, client, db, org_id):
        older = _create_survey(db, org_id, title="Leadership 360 Feedback")
        newer = _create_survey(db, org_id, title="Organizational Culture Assessment")
        older.created_at = datetime(2024, 8, 20)
        newer.created_at = datetime(2024, 9, 15)
        db.commit()

        resp = client.get("/api/v1/surveys/")
        titles = [item["title"] for item in resp.json()["items"]]
        assert titles == ["Organizational Culture Assessment", "Leadership 360 Feedback"]

    def test_list_filter_by_status(self, client, db, org_id):
        _create_survey(db, org_id, title="Draft", status="draft")
        _create_survey(db, org_id, title="Published", status="published")
        resp = client.get("/api/v1/surveys/?status=published")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        assert data["items"][0]["title"] == "Published"

    def test_list_filter_unknown_status(self, client):
        resp = client.get("/api/v1/surveys/?status=deleted")
        assert resp.status_code == 422

    def test_list_filter_by_org_id(self, client, db, org_id):
        _create_survey(db, org_id, title="Ours")
        resp = client.get(f"/api/v1/surveys/?org_id={org_id}")
        assert resp.json()["total"] == 1
        resp = client.get(f"/api/v1/surveys/?org_id={NONEXISTENT_UUID}")
        assert resp.json()["total"] == 0

    def test_list_counts_responses(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="published", total_invited=3)
        for _ in range(2):
            client.post(f"/api/v1/surveys/{survey.id}/responses", json={"answers": _answers(survey)})
        resp = client.get("/api/v1/surveys/")
        assert resp.json()["items"][0]["responses"] == 2


# ---------------------------------------------------------------------------
# GET /surveys/{survey_id} — Survey Detail
# ---------------------------------------------------------------------------


class TestGetSurvey:
    def test_get_survey_detail(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        resp = client.get(f"/api/v1/surveys/{survey.id}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == str(survey.id)
        assert len(data["questions"]) == 3
        assert data["questions"][0]["text"] == "How satisfied are you with your current role?"
        assert data["questions"][2]["required"] is False

    def test_get_survey_aggregate(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="published", total_invited=120)
        for _ in range(45):
            resp = client.post(f"/api/v1/surveys/{survey.id}/responses", json={"answers": _answers(survey)})
            assert resp.status_code == 201

        data = client.get(f"/api/v1/surveys/{survey.id}").json()
        assert data["responses"] == 45
        assert data["total_invited"] == 120
        assert data["completion_rate"] == 37.5

    def test_get_survey_not_found(self, client):
        resp = client.get(f"/api/v1/surveys/{NONEXISTENT_UUID}")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Survey not found"

    def test_get_survey_invalid_uuid(self, client):
        resp = client.get("/api/v1/surveys/not-a-uuid")
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# PATCH /surveys/{survey_id} — Update Survey
# ---------------------------------------------------------------------------


class TestUpdateSurvey:
    def test_update_title(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        resp = client.patch(f"/api/v1/surveys/{survey.id}", json={"title": "Updated Survey"})
        assert resp.status_code == 200
        assert resp.json()["title"] == "Updated Survey"
        assert resp.json()["description"] == "Quarterly employee engagement and satisfaction assessment"

    def test_update_total_invited(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        resp = client.patch(f"/api/v1/surveys/{survey.id}", json={"total_invited": 40})
        assert resp.status_code == 200
        assert resp.json()["total_invited"] == 40

    def test_status_not_updatable(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        resp = client.patch(f"/api/v1/surveys/{survey.id}", json={"status": "published"})
        assert resp.status_code == 422
        db.refresh(survey)
        assert survey.status == "draft"

    def test_update_archived_survey_rejected(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="archived")
        resp = client.patch(f"/api/v1/surveys/{survey.id}", json={"title": "Nope"})
        assert resp.status_code == 409

    def test_update_empty_body_rejected(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        resp = client.patch(f"/api/v1/surveys/{survey.id}", json={})
        assert resp.status_code == 422

    def test_update_not_found(self, client):
        resp = client.patch(f"/api/v1/surveys/{NONEXISTENT_UUID}", json={"title": "Ghost"})
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Lifecycle actions
# ---------------------------------------------------------------------------


class TestLifecycleActions:
    def test_publish(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        resp = client.post(f"/api/v1/surveys/{survey.id}/publish")
        assert resp.status_code == 200
        assert resp.json()["status"] == "published"

    def test_publish_empty_survey_rejected(self, client, db, org_id):
        survey = _create_survey(db, org_id, questions=[])
        resp = client.post(f"/api/v1/surveys/{survey.id}/publish")
        assert resp.status_code == 422

    def test_archive_twice(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="published")
        first = client.post(f"/api/v1/surveys/{survey.id}/archive")
        second = client.post(f"/api/v1/surveys/{survey.id}/archive")
        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json()["status"] == "archived"
        assert second.json()["updated_at"] == first.json()["updated_at"]

    def test_publish_archived_conflict(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="archived")
        resp = client.post(f"/api/v1/surveys/{survey.id}/publish")
        assert resp.status_code == 409

    def test_archive_not_found(self, client):
        resp = client.post(f"/api/v1/surveys/{NONEXISTENT_UUID}/archive")
        assert resp.status_code == 404

    def test_duplicate(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="published", total_invited=10)
        client.post(f"/api/v1/surveys/{survey.id}/responses", json={"answers": _answers(survey)})

        resp = client.post(f"/api/v1/surveys/{survey.id}/duplicate")
        assert resp.status_code == 201
        data = resp.json()
        assert data["id"] != str(survey.id)
        assert data["title"] == "Employee Engagement Survey (Copy)"
        assert data["status"] == "draft"
        assert data["responses"] == 0
        assert data["total_invited"] == 0

        original = client.get(f"/api/v1/surveys/{survey.id}").json()

        def content(questions):
            return [(q["type"], q["text"], q["options"], q["required"]) for q in questions]

        assert content(data["questions"]) == content(original["questions"])

    def test_duplicate_with_owner(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        resp = client.post(f"/api/v1/surveys/{survey.id}/duplicate", json={"created_by": "Jane Roe"})
        assert resp.status_code == 201
        assert resp.json()["created_by"] == "Jane Roe"

    def test_duplicate_not_found(self, client):
        resp = client.post(f"/api/v1/surveys/{NONEXISTENT_UUID}/duplicate")
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# DELETE /surveys/{survey_id} — Delete Survey
# ---------------------------------------------------------------------------


class TestDeleteSurvey:
    def test_delete_survey(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        resp = client.delete(f"/api/v1/surveys/{survey.id}")
        assert resp.status_code == 204

        resp = client.get(f"/api/v1/surveys/{survey.id}")
        assert resp.status_code == 404
        assert db.query(Question).count() == 0

    def test_delete_survey_not_found(self, client):
        resp = client.delete(f"/api/v1/surveys/{NONEXISTENT_UUID}")
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------


class TestQuestionEndpoints:
    def test_add_question(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        resp = client.post(
            f"/api/v1/surveys/{survey.id}/questions",
            json={"type": "yes_no", "text": "Would you recommend us?", "position": 0},
        )
        assert resp.status_code == 201
        assert resp.json()["position"] == 0

        questions = client.get(f"/api/v1/surveys/{survey.id}").json()["questions"]
        assert questions[0]["text"] == "Would you recommend us?"
        assert [q["position"] for q in questions] == [0, 1, 2, 3]

    def test_add_question_to_archived_conflict(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="archived")
        resp = client.post(f"/api/v1/surveys/{survey.id}/questions", json={"type": "text", "text": "Late"})
        assert resp.status_code == 409

    def test_update_question(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        question_id = survey.questions[2].id
        resp = client.patch(
            f"/api/v1/surveys/{survey.id}/questions/{question_id}",
            json={"required": True},
        )
        assert resp.status_code == 200
        assert resp.json()["required"] is True

    def test_update_question_null_required_rejected(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        question_id = survey.questions[0].id
        resp = client.patch(
            f"/api/v1/surveys/{survey.id}/questions/{question_id}",
            json={"required": None},
        )
        assert resp.status_code == 422
        assert "Required cannot be cleared" in resp.json()["detail"]

        detail = client.get(f"/api/v1/surveys/{survey.id}").json()
        assert detail["questions"][0]["required"] is True

    def test_update_missing_question(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        resp = client.patch(
            f"/api/v1/surveys/{survey.id}/questions/{NONEXISTENT_UUID}",
            json={"text": "Ghost"},
        )
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Question not found"

    def test_remove_question(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        question_id = survey.questions[0].id
        resp = client.delete(f"/api/v1/surveys/{survey.id}/questions/{question_id}")
        assert resp.status_code == 204
        questions = client.get(f"/api/v1/surveys/{survey.id}").json()["questions"]
        assert len(questions) == 2
        assert questions[0]["position"] == 0

    def test_reorder_questions(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        ids = [str(q.id) for q in survey.questions]
        resp = client.put(
            f"/api/v1/surveys/{survey.id}/questions/order",
            json={"question_ids": list(reversed(ids))},
        )
        assert resp.status_code == 200
        assert [q["id"] for q in resp.json()] == list(reversed(ids))

    def test_reorder_incomplete_rejected(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        resp = client.put(
            f"/api/v1/surveys/{survey.id}/questions/order",
            json={"question_ids": [str(survey.questions[0].id)]},
        )
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Invitations and responses
# ---------------------------------------------------------------------------


class TestResponseEndpoints:
    def test_invite(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        resp = client.post(f"/api/v1/surveys/{survey.id}/invitations", json={"count": 25})
        assert resp.status_code == 200
        assert resp.json()["total_invited"] == 25

    def test_invite_zero_rejected(self, client, db, org_id):
        survey = _create_survey(db, org_id)
        resp = client.post(f"/api/v1/surveys/{survey.id}/invitations", json={"count": 0})
        assert resp.status_code == 422

    def test_submit_response(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="published", total_invited=1)
        resp = client.post(
            f"/api/v1/surveys/{survey.id}/responses",
            json={"respondent": "emp-7", "answers": _answers(survey)},
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["survey_id"] == str(survey.id)
        assert data["respondent"] == "emp-7"
        assert data["completed_at"] is not None

    def test_submit_to_draft_conflict(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="draft", total_invited=1)
        resp = client.post(f"/api/v1/surveys/{survey.id}/responses", json={"answers": _answers(survey)})
        assert resp.status_code == 409

    def test_submit_to_archived_conflict(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="archived", total_invited=1)
        resp = client.post(f"/api/v1/surveys/{survey.id}/responses", json={"answers": _answers(survey)})
        assert resp.status_code == 409
        assert "archived" in resp.json()["detail"]

    def test_submit_beyond_invited_rejected(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="published", total_invited=1)
        url = f"/api/v1/surveys/{survey.id}/responses"
        assert client.post(url, json={"answers": _answers(survey)}).status_code == 201
        resp = client.post(url, json={"answers": _answers(survey)})
        assert resp.status_code == 422
        assert "already responded" in resp.json()["detail"]

    def test_submit_invalid_answers(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="published", total_invited=1)
        answers = {str(survey.questions[0].id): 9, str(survey.questions[1].id): "Fax"}
        resp = client.post(f"/api/v1/surveys/{survey.id}/responses", json={"answers": answers})
        assert resp.status_code == 422
        detail = resp.json()["detail"]
        assert "Q1" in detail
        assert "not a valid option" in detail

    def test_list_responses(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="published", total_invited=2)
        for _ in range(2):
            client.post(f"/api/v1/surveys/{survey.id}/responses", json={"answers": _answers(survey)})
        resp = client.get(f"/api/v1/surveys/{survey.id}/responses")
        assert resp.status_code == 200
        assert resp.json()["total"] == 2

    def test_list_responses_not_found(self, client):
        resp = client.get(f"/api/v1/surveys/{NONEXISTENT_UUID}/responses")
        assert resp.status_code == 404

    def test_download_csv(self, client, db, org_id):
        survey = _create_survey(db, org_id, status="published", total_invited=1)
        client.post(f"/api/v1/surveys/{survey.id}/responses", json={"answers": _answers(survey)})

        resp = client.get(f"/api/v1/surveys/{survey.id}/responses/download")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "attachment" in resp.headers["content-disposition"]

        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows[0][2] == "Q1: How satisfied are you with your current role?"
        assert rows[1][2:5] == ["4", "Slack", ""]

    def test_download_csv_non_ascii_title(self, client, db, org_id):
        survey = _create_survey(db, org_id, title='Опрос "вовлечённости"', status="published", total_invited=1)

        resp = client.get(f"/api/v1/surveys/{survey.id}/responses/download")
        assert resp.status_code == 200
        disposition = resp.headers["content-disposition"]
        assert f'filename="survey_{survey.id}.csv"' in disposition
        assert "filename*=UTF-8''" in disposition
        assert "%D0%9E%D0%BF%D1%80%D0%BE%D1%81" in disposition
        assert '"' not in disposition.split("filename*=", 1)[1]

    def test_download_csv_not_found(self, client):
        resp = client.get(f"/api/v1/surveys/{NONEXISTENT_UUID}/responses/download")
        assert resp.status_code == 404
