"""Async Cassandra connection using cassandra-asyncio-driver.

The driver is imported when a connection is opened, so the rest of the
application (and its tests) can be imported on hosts without an event loop
reactor for the driver.
"""

from typing import Any

import structlog

from learnhub.certificates.models import CERTIFICATES_TABLES_CQL
from learnhub.config.settings import get_settings
from learnhub.courses.models import COURSES_TABLES_CQL
from learnhub.enrollments.models import ENROLLMENTS_TABLES_CQL
from learnhub.progress.models import PROGRESS_TABLES_CQL
from learnhub.quizzes.models import QUIZZES_TABLES_CQL
from learnhub.short_questions.models import SHORT_QUESTIONS_TABLES_CQL


logger = structlog.get_logger(__name__)


# (group name, statements) in creation order
ALL_TABLES_CQL: list[tuple[str, list[str]]] = [
    ("courses", COURSES_TABLES_CQL),
    ("enrollments", ENROLLMENTS_TABLES_CQL),
    ("progress", PROGRESS_TABLES_CQL),
    ("quizzes", QUIZZES_TABLES_CQL),
    ("short_questions", SHORT_QUESTIONS_TABLES_CQL),
    ("certificates", CERTIFICATES_TABLES_CQL),
]


class AsyncCassandraConnection:
    """Cluster and session lifecycle.

    Connecting is synchronous; queries go through ``session.aexecute()``.
    """

    _cluster: Any = None
    _session: Any = None

    @classmethod
    def connect(cls):
        """Connect to the cluster, reusing the open session if any.

        Raises:
            ConnectionError: If the cluster cannot be reached
        """
        if cls._session is not None:
            return cls._session

        from cassandra.auth import PlainTextAuthProvider
        from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
        from cassandra_asyncio.cluster import Cluster

        settings = get_settings()

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        cls._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            cls._session = cls._cluster.connect()
        except Exception as e:
            logger.error("cassandra_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        logger.info(
            "cassandra_connected",
            hosts=settings.cassandra_hosts,
            port=settings.cassandra_port,
        )
        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        """Close session and cluster."""
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None
        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
            logger.info("cassandra_disconnected")


async def init_async_keyspace(session, keyspace: str) -> None:
    """Create the keyspace if it does not exist."""
    settings = get_settings()

    if settings.is_production:
        replication = "'class': 'NetworkTopologyStrategy', 'datacenter1': 3"
    else:
        replication = "'class': 'SimpleStrategy', 'replication_factor': 1"

    await session.aexecute(
        f"CREATE KEYSPACE IF NOT EXISTS {keyspace} "
        f"WITH replication = {{{replication}}} AND durable_writes = true"
    )
    logger.info("keyspace_created", keyspace=keyspace)


async def init_async_tables(session, keyspace: str) -> None:
    """Create every table group in ``ALL_TABLES_CQL``."""
    for group, statements in ALL_TABLES_CQL:
        for cql_template in statements:
            await session.aexecute(cql_template.format(keyspace=keyspace))
        logger.info("tables_created", group=group, keyspace=keyspace)


async def init_async_cassandra():
    """Connect, then create keyspace and tables.

    Returns:
        Session with ``aexecute()`` support, bound to the keyspace
    """
    settings = get_settings()
    session = AsyncCassandraConnection.connect()

    await init_async_keyspace(session, settings.cassandra_keyspace)
    session.set_keyspace(settings.cassandra_keyspace)
    await init_async_tables(session, settings.cassandra_keyspace)

    logger.info("cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session


async def shutdown_async_cassandra() -> None:
    AsyncCassandraConnection.disconnect()
