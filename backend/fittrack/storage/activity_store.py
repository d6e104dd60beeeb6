"""
Durable storage of finished activities.

ActivityStore wraps one SQLAlchemy engine behind an explicit init()/close()
lifecycle. Every operation runs as its own transaction, and operations are
serialized through a single lock so concurrent callers queue instead of
interleaving writes.

Example:
    >>> with ActivityStore("sqlite+pysqlite:///:memory:") as store:
    ...     activity_id = store.save(activity)
    ...     [stored] = store.query(activity_id)
"""

import threading
from typing import Optional

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from fittrack.core.errors import NotInitialized, PersistenceError, StorageUnavailable
from fittrack.core.time_utils import format_activity_date, parse_activity_date
from fittrack.db import Base, build_engine
from fittrack.models.activity import Activity
from fittrack.schemas.activity import ActivityCreate, ActivityRead
from fittrack.storage.route_codec import decode_route, encode_route


class ActivityStore:
    """
    CRUD over Activity records behind a stable schema.

    Attributes:
        database_url: SQLAlchemy URL of the backing database
        initialized: Whether init() succeeded and close() was not called since
    """

    def __init__(self, database_url: str):
        self.database_url = database_url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._lock = threading.RLock()

    # --------- Lifecycle --------- #

    @property
    def initialized(self) -> bool:
        return self._engine is not None

    def init(self) -> None:
        """
        Open the database and create the schema if absent.

        Idempotent: calling it on an initialized store does nothing.

        Raises:
            StorageUnavailable: If the database cannot be opened or the
                schema cannot be created
        """
        with self._lock:
            if self._engine is not None:
                return

            engine = None
            try:
                engine = build_engine(self.database_url)
                Base.metadata.create_all(bind=engine)
            except (SQLAlchemyError, OSError, ValueError, ImportError) as e:
                # ImportError: the URL names a DBAPI driver that is not installed
                if engine is not None:
                    engine.dispose()
                logger.error(f"Could not open activity store at {self.database_url}: {e}")
                raise StorageUnavailable(f"Could not open activity store: {e}") from e

            self._engine = engine
            self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
            logger.info(f"Activity store ready at {self.database_url}")

    def close(self) -> None:
        with self._lock:
            if self._engine is None:
                return
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Activity store closed")

    def __enter__(self) -> "ActivityStore":
        self.init()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _session(self) -> Session:
        if self._session_factory is None:
            raise NotInitialized()
        return self._session_factory()

    # --------- Operations --------- #

    def save(self, activity: ActivityCreate) -> int:
        """
        Insert a finished activity and return its assigned id.

        Ids are unique and ascending. The insert is atomic: on failure no
        part of the record is written.

        Args:
            activity: Activity produced by TrackingSession.finalize()

        Returns:
            The new record id

        Raises:
            NotInitialized: If init() has not succeeded
            PersistenceError: If the write fails
        """
        row = Activity(
            name=activity.name,
            date=format_activity_date(activity.date),
            duration=activity.duration,
            distance=activity.distance,
            route=encode_route(activity.route),
            photo_uri=activity.photo_reference,
        )
        with self._lock:
            session = self._session()
            try:
                with session.begin():
                    session.add(row)
                    session.flush()
                    activity_id = row.id
            except SQLAlchemyError as e:
                logger.error(f"Error saving activity {activity.name!r}: {e}")
                raise PersistenceError(f"Failed to save activity: {e}") from e
            finally:
                session.close()

        logger.info(f"Activity {activity_id} saved ({activity.distance:.2f} km, {activity.duration}s)")
        return activity_id

    def query(self, activity_id: Optional[int] = None) -> list[ActivityRead]:
        """
        Fetch one activity by id, or all of them.

        Args:
            activity_id: Id of the single record to fetch, or None for all

        Returns:
            The matching record (empty list if absent) when an id is given,
            otherwise every record, most recent date first

        Raises:
            NotInitialized: If init() has not succeeded
            PersistenceError: If the read fails or a stored route is malformed
        """
        stmt = select(Activity)
        if activity_id is not None:
            stmt = stmt.where(Activity.id == activity_id)
        stmt = stmt.order_by(Activity.date.desc(), Activity.id.desc())

        with self._lock:
            session = self._session()
            try:
                rows = session.scalars(stmt).all()
            except SQLAlchemyError as e:
                logger.error(f"Error querying activities: {e}")
                raise PersistenceError(f"Failed to query activities: {e}") from e
            finally:
                session.close()

        return [self._to_read(row) for row in rows]

    def delete(self, activity_id: int) -> bool:
        """
        Remove an activity.

        Returns:
            True if a record was removed, False if none had that id

        Raises:
            NotInitialized: If init() has not succeeded
            PersistenceError: If the delete fails
        """
        with self._lock:
            session = self._session()
            try:
                with session.begin():
                    result = session.execute(delete(Activity).where(Activity.id == activity_id))
                    removed = result.rowcount > 0
            except SQLAlchemyError as e:
                logger.error(f"Error deleting activity {activity_id}: {e}")
                raise PersistenceError(f"Failed to delete activity {activity_id}: {e}") from e
            finally:
                session.close()

        if removed:
            logger.info(f"Activity {activity_id} deleted")
        return removed

    @staticmethod
    def _to_read(row: Activity) -> ActivityRead:
        route = decode_route(row.route)
        try:
            return ActivityRead(
                id=row.id,
                name=row.name,
                date=parse_activity_date(row.date),
                duration=row.duration,
                distance=row.distance,
                route=route,
                photo_reference=row.photo_uri,
            )
        except ValueError as e:
            # pydantic.ValidationError is a ValueError
            raise PersistenceError(f"Activity {row.id} has invalid stored data: {e}") from e
