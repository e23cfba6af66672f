"""Domain exceptions raised by the survey workflow services."""


class SurveyError(Exception):
    """Base exception for survey workflow errors."""


class NotFoundError(SurveyError):
    """Raised when an operation targets a record that does not exist."""

    entity = "Record"

    def __init__(self, record_id) -> None:
        self.record_id = record_id
        super().__init__(f"{self.entity} not found")


class SurveyNotFoundError(NotFoundError):
    entity = "Survey"


class QuestionNotFoundError(NotFoundError):
    entity = "Question"


class OrganizationNotFoundError(NotFoundError):
    entity = "Organization"


class SurveyValidationError(SurveyError):
    """Raised when input fails validation. Nothing has been written."""

    def __init__(self, errors: list[str] | str) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors = errors
        super().__init__("; ".join(errors))


class SurveyConflictError(SurveyError):
    """Raised when the target's current state forbids the operation."""


class SurveyArchivedError(SurveyConflictError):
    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"Cannot {action} an archived survey")


class SurveyNotPublishedError(SurveyConflictError):
    def __init__(self) -> None:
        super().__init__("Survey is not published, cannot accept responses")


class OrganizationInUseError(SurveyConflictError):
    def __init__(self, survey_count: int) -> None:
        self.survey_count = survey_count
        super().__init__(f"Cannot delete organization with {survey_count} survey(s)")
