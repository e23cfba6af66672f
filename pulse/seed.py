"""Seed the database with the sample surveys shown on the admin pages."""

from sqlalchemy.orm import Session

from pulse.core.database import SessionLocal
from pulse.models import Organization, Survey
from pulse.services.surveys import create_survey, invite_respondents, publish_survey, submit_response

SEED_ORGANIZATION = "Pulse (Seed)"

SEED_SURVEYS = [
    {
        "title": "Employee Engagement Survey",
        "description": (
            "Quarterly employee engagement and satisfaction assessment to measure team morale, "
            "job satisfaction, and organizational alignment."
        ),
        "category": "engagement",
        "frequency": "quarterly",
        "created_by": "John Doe",
        "publish": True,
        "invited": 120,
        "responses": 45,
        "questions": [
            {"type": "likert", "text": "How satisfied are you with your current role?", "required": True},
            {
                "type": "likert",
                "text": "How likely are you to recommend this company as a great place to work?",
                "required": True,
            },
            {"type": "text", "text": "What aspects of your job do you find most fulfilling?", "required": False},
        ],
    },
    {
        "title": "Organizational Culture Assessment",
        "description": "Annual culture and values evaluation",
        "category": "culture",
        "frequency": "annually",
        "created_by": "John Doe",
        "publish": False,
        "invited": 0,
        "responses": 0,
        "questions": [
            {"type": "likert", "text": "Our company values guide everyday decisions.", "required": True},
            {"type": "yes_no", "text": "Do you feel comfortable raising concerns?", "required": True},
        ],
    },
    {
        "title": "Leadership 360 Feedback",
        "description": "360-degree feedback for management team",
        "category": "leadership",
        "frequency": "biannually",
        "created_by": "John Doe",
        "publish": True,
        "invited": 30,
        "responses": 23,
        "questions": [
            {"type": "rating", "text": "Rate your manager's communication.", "required": True},
            {
                "type": "multiple_choice",
                "text": "Which area should your manager focus on next?",
                "options": ["Coaching", "Delegation", "Strategy", "Recognition"],
                "required": True,
            },
        ],
    },
]


def _sample_answers(survey: Survey, index: int) -> dict:
    answers = {}
    for question in survey.questions:
        if question.type in ("likert", "rating"):
            answers[str(question.id)] = index % 5 + 1
        elif question.type == "multiple_choice":
            answers[str(question.id)] = question.options[index % len(question.options)]
        elif question.type == "yes_no":
            answers[str(question.id)] = index % 2 == 0
        elif question.type == "numeric":
            answers[str(question.id)] = index
        elif question.required:
            answers[str(question.id)] = f"Sample answer {index + 1}"
    return answers


def seed_surveys(db: Session) -> list[Survey]:
    """Insert the seed surveys into ``db``. Returns created surveys."""
    org = db.query(Organization).filter(Organization.name == SEED_ORGANIZATION).first()
    if org is None:
        org = Organization(name=SEED_ORGANIZATION)
        db.add(org)
        db.commit()
        db.refresh(org)

    created: list[Survey] = []
    for data in SEED_SURVEYS:
        survey = create_survey(
            db,
            org_id=org.id,
            title=data["title"],
            category=data["category"],
            frequency=data["frequency"],
            description=data["description"],
            created_by=data["created_by"],
            questions=data["questions"],
        )
        if data["publish"]:
            publish_survey(db, survey.id)
        if data["invited"]:
            invite_respondents(db, survey.id, data["invited"])
        for i in range(data["responses"]):
            submit_response(db, survey.id, _sample_answers(survey, i), respondent=f"seed-{i + 1}")
        db.refresh(survey)
        created.append(survey)
    return created


if __name__ == "__main__":
    session = SessionLocal()
    try:
        surveys = seed_surveys(session)
        for s in surveys:
            print(f"Created: {s.title} (id={s.id}, status={s.status})")
        print(f"\nSeeded {len(surveys)} surveys.")
    finally:
        session.close()
