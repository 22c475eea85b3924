"""Transaction helpers shared by the domain services."""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from lovedev.core.exceptions import ConflictError, ConcurrentUpdateError

logger = get_logger(__name__)


async def commit_unit_of_work(
    db_session: AsyncSession, conflict: ConflictError | None = None
) -> None:
    """Commit the session as one unit of work.

    A uniqueness violation means another writer got there first; the
    transaction is rolled back and surfaced as a 409 instead of a 500.
    """
    try:
        await db_session.commit()
    except IntegrityError as e:
        await db_session.rollback()
        logger.warning("Unit of work rejected by a constraint", error=str(e.orig))
        raise (conflict or ConcurrentUpdateError()) from e
