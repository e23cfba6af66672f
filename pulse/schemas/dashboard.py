from pydantic import BaseModel


class DashboardSummary(BaseModel):
    total_surveys: int
    surveys_by_status: dict[str, int]
    organizations: int
    total_responses: int
    total_invited: int
    completion_rate: float
