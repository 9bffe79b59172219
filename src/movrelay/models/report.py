"""Scenario report models."""

from typing import Optional

from pydantic import BaseModel, Field

from movrelay.models.movie import Movie


class StepResult(BaseModel):
    """One HTTP call made by a scenario."""

    name: str
    method: str
    path: str
    status_code: int


class ScenarioReport(BaseModel):
    """Outcome of a read-then-write scenario."""

    scenario: str
    movie: Movie
    steps: list[StepResult] = Field(default_factory=list)
    post_id: Optional[int] = None
    updated_title: Optional[str] = None

    @property
    def status_codes(self) -> list[int]:
        """Status codes in call order."""
        return [step.status_code for step in self.steps]

    def add_step(self, name: str, method: str, path: str, status_code: int) -> None:
        self.steps.append(
            StepResult(name=name, method=method, path=path, status_code=status_code)
        )
