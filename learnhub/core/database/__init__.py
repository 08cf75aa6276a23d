"""Cassandra connection and schema bootstrap."""

from learnhub.core.database.async_cassandra import (
    ALL_TABLES_CQL,
    AsyncCassandraConnection,
    init_async_cassandra,
    shutdown_async_cassandra,
)


__all__ = [
    "ALL_TABLES_CQL",
    "AsyncCassandraConnection",
    "init_async_cassandra",
    "shutdown_async_cassandra",
]
