"""Migration and validation reports."""
from pydantic import BaseModel, Field


class MigrationError(BaseModel):
    key: str
    error: str


class MigrationResult(BaseModel):
    table: str
    records_migrated: int = 0
    duration_ms: int = 0
    errors: list[MigrationError] = Field(default_factory=list)


class MigrationRun(BaseModel):
    """Summary of one migrate() call."""

    completed: bool
    skipped: bool = False
    results: list[MigrationResult] = Field(default_factory=list)

    @property
    def total_migrated(self) -> int:
        return sum(r.records_migrated for r in self.results)

    @property
    def total_errors(self) -> int:
        return sum(len(r.errors) for r in self.results)


class MigrationState(BaseModel):
    completed: bool
    completed_at: int | None = None
    version: str


class TableValidation(BaseModel):
    table: str
    legacy_count: int
    db_count: int
    match: bool
    discrepancies: list[str] = Field(default_factory=list)


class ValidationReport(BaseModel):
    overall_success: bool
    tables: list[TableValidation]
    summary: str
