from pulse.models.organization import Organization
from pulse.models.question import Question
from pulse.models.survey import Survey
from pulse.models.survey_response import SurveyResponse

__all__ = [
    "Organization",
    "Question",
    "Survey",
    "SurveyResponse",
]
