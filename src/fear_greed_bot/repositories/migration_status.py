"""Access to the singleton migration status row."""
from sqlmodel import Session

from fear_greed_bot.constants import MIGRATION_VERSION
from fear_greed_bot.db.models import MigrationStatus
from fear_greed_bot.repositories.base import Repository
from fear_greed_bot.schemas import MigrationState
from fear_greed_bot.utils import now_ms


class MigrationStatusRepository(Repository):

    async def get(self) -> MigrationState:
        """Current migration state; a fresh state if the row is missing."""
        return await self._run("migration_status.get", self._get)

    async def mark_completed(self, version: str = MIGRATION_VERSION) -> MigrationState:
        """Record a finished migration.

        Args:
            version: Migration version stored alongside the completion time.

        Returns:
            The updated state.
        """
        return await self._run("migration_status.mark_completed", self._mark_completed, version)

    @staticmethod
    def _get(session: Session) -> MigrationState:
        row = session.get(MigrationStatus, 1)
        if row is None:
            return MigrationState(completed=False, version=MIGRATION_VERSION)
        return MigrationState(completed=row.completed, completed_at=row.completed_at, version=row.version)

    @staticmethod
    def _mark_completed(session: Session, version: str) -> MigrationState:
        row = session.get(MigrationStatus, 1) or MigrationStatus(id=1)
        row.completed = True
        row.completed_at = now_ms()
        row.version = version
        session.add(row)
        return MigrationState(completed=True, completed_at=row.completed_at, version=version)
