"""PostgreSQL collection catalog: instance queries, config files, per-database queries."""

from __future__ import annotations

import logging

from sqlalchemy.engine import Connection

from pg_radar.catalog.base import (
    ConfigFileSpec,
    QuerySpec,
    build_config_file_tasks,
    build_query_tasks,
)
from pg_radar.collector.models import CollectionTask, TaskCategory
from pg_radar.collector.producers import DataDirectoryResolver, database_query_producer
from pg_radar.database import list_databases

logger = logging.getLogger(__name__)

_BLOCKING_LOCKS_SQL = """\
SELECT blocked_locks.pid AS blocked_pid,
       blocked_activity.usename AS blocked_user,
       blocking_locks.pid AS blocking_pid,
       blocking_activity.usename AS blocking_user,
       blocked_activity.query AS blocked_statement,
       blocking_activity.query AS current_statement_in_blocking_process
FROM pg_catalog.pg_locks blocked_locks
JOIN pg_catalog.pg_stat_activity blocked_activity ON blocked_activity.pid = blocked_locks.pid
JOIN pg_catalog.pg_locks blocking_locks
    ON blocking_locks.locktype = blocked_locks.locktype
    AND blocking_locks.database IS NOT DISTINCT FROM blocked_locks.database
    AND blocking_locks.relation IS NOT DISTINCT FROM blocked_locks.relation
    AND blocking_locks.page IS NOT DISTINCT FROM blocked_locks.page
    AND blocking_locks.tuple IS NOT DISTINCT FROM blocked_locks.tuple
    AND blocking_locks.virtualxid IS NOT DISTINCT FROM blocked_locks.virtualxid
    AND blocking_locks.transactionid IS NOT DISTINCT FROM blocked_locks.transactionid
    AND blocking_locks.classid IS NOT DISTINCT FROM blocked_locks.classid
    AND blocking_locks.objid IS NOT DISTINCT FROM blocked_locks.objid
    AND blocking_locks.objsubid IS NOT DISTINCT FROM blocked_locks.objsubid
    AND blocking_locks.pid != blocked_locks.pid
JOIN pg_catalog.pg_stat_activity blocking_activity ON blocking_activity.pid = blocking_locks.pid
WHERE NOT blocked_locks.granted"""

_RUNNING_ACTIVITY_MAXAGE_SQL = """\
SELECT
    max(clock_timestamp() - query_start) AS max_query_age,
    max(clock_timestamp() - xact_start) AS max_xact_age,
    max(clock_timestamp() - backend_start) AS max_backend_age
FROM pg_stat_activity
WHERE state != 'idle'"""

_STAT_DATABASE_SQL = """\
SELECT datname,
       conflicts,
       deadlocks,
       temp_files,
       temp_bytes,
       stats_reset
FROM pg_stat_database
WHERE datname = current_database()"""

_STAT_DATABASE_COLUMNS = "FROM pg_stat_database WHERE datname IS NOT NULL ORDER BY datname"

INSTANCE_QUERIES: tuple[QuerySpec, ...] = (
    QuerySpec(
        "activity",
        "postgresql/running_activity.tsv",
        "SELECT * FROM pg_stat_activity ORDER BY pid",
    ),
    QuerySpec("archiver", "postgresql/archiver.tsv", "SELECT * FROM pg_stat_archiver"),
    QuerySpec(
        "available_extensions",
        "postgresql/available_extensions.tsv",
        "SELECT * FROM pg_available_extensions ORDER BY name",
    ),
    QuerySpec("bgwriter", "postgresql/bgwriter.tsv", "SELECT * FROM pg_stat_bgwriter"),
    QuerySpec("blocking_locks", "postgresql/blocking_locks.tsv", _BLOCKING_LOCKS_SQL),
    QuerySpec("checkpointer", "postgresql/checkpointer.tsv", "SELECT * FROM pg_stat_checkpointer"),
    QuerySpec(
        "configuration",
        "postgresql/configuration.tsv",
        "SELECT name, setting, unit, category, short_desc FROM pg_settings "
        "ORDER BY category, name",
    ),
    QuerySpec(
        "databases",
        "postgresql/databases.tsv",
        "SELECT oid, datname, datdba, encoding, datcollate, datctype FROM pg_database "
        "ORDER BY datname",
    ),
    QuerySpec(
        "databases_blk",
        "postgresql/databases_blk.tsv",
        f"SELECT datname, blks_read, blks_hit, blk_read_time, blk_write_time "
        f"{_STAT_DATABASE_COLUMNS}",
    ),
    QuerySpec(
        "databases_checksums",
        "postgresql/databases_checksums.tsv",
        f"SELECT datname, checksum_failures, checksum_last_failure {_STAT_DATABASE_COLUMNS}",
    ),
    QuerySpec(
        "databases_tup",
        "postgresql/databases_tup.tsv",
        f"SELECT datname, tup_returned, tup_fetched, tup_inserted, tup_updated, tup_deleted "
        f"{_STAT_DATABASE_COLUMNS}",
    ),
    QuerySpec(
        "databases_xact",
        "postgresql/databases_xact.tsv",
        f"SELECT datname, xact_commit, xact_rollback {_STAT_DATABASE_COLUMNS}",
    ),
    QuerySpec(
        "db_role_setting",
        "postgresql/db_role_setting.tsv",
        "SELECT setdatabase, setrole, setconfig FROM pg_db_role_setting",
    ),
    QuerySpec(
        "pg_hba_file_rules",
        "postgresql/pg_hba_file_rules.tsv",
        "SELECT * FROM pg_hba_file_rules ORDER BY line_number",
    ),
    QuerySpec(
        "postmaster_start_time",
        "postgresql/postmaster_start_time.tsv",
        "SELECT pg_postmaster_start_time() AS start_time",
    ),
    QuerySpec(
        "prepared_xacts",
        "postgresql/prepared_xacts.tsv",
        "SELECT * FROM pg_prepared_xacts ORDER BY prepared",
    ),
    QuerySpec("replication", "postgresql/replication.tsv", "SELECT * FROM pg_stat_replication"),
    QuerySpec(
        "replication_origin",
        "postgresql/replication_origin.tsv",
        "SELECT * FROM pg_replication_origin_status",
    ),
    QuerySpec(
        "replication_slots",
        "postgresql/replication_slots.tsv",
        "SELECT * FROM pg_replication_slots ORDER BY slot_name",
    ),
    QuerySpec("roles", "postgresql/roles.tsv", "SELECT * FROM pg_roles ORDER BY rolname"),
    QuerySpec(
        "running_activity_maxage",
        "postgresql/running_activity_maxage.tsv",
        _RUNNING_ACTIVITY_MAXAGE_SQL,
    ),
    QuerySpec(
        "running_locks",
        "postgresql/running_locks.tsv",
        "SELECT * FROM pg_locks WHERE granted ORDER BY pid, locktype",
    ),
    QuerySpec(
        "stat_io",
        "postgresql/stat_io.tsv",
        "SELECT * FROM pg_stat_io ORDER BY backend_type, context, object",
    ),
    QuerySpec(
        "stat_progress_analyze",
        "postgresql/stat_progress_analyze.tsv",
        "SELECT * FROM pg_stat_progress_analyze",
    ),
    QuerySpec(
        "stat_progress_basebackup",
        "postgresql/stat_progress_basebackup.tsv",
        "SELECT * FROM pg_stat_progress_basebackup",
    ),
    QuerySpec(
        "stat_progress_copy",
        "postgresql/stat_progress_copy.tsv",
        "SELECT * FROM pg_stat_progress_copy",
    ),
    QuerySpec(
        "stat_progress_vacuum",
        "postgresql/stat_progress_vacuum.tsv",
        "SELECT * FROM pg_stat_progress_vacuum",
    ),
    QuerySpec("stat_slru", "postgresql/stat_slru.tsv", "SELECT * FROM pg_stat_slru ORDER BY name"),
    QuerySpec("stat_wal", "postgresql/stat_wal.tsv", "SELECT * FROM pg_stat_wal"),
    QuerySpec(
        "subscriptions",
        "postgresql/subscriptions.tsv",
        "SELECT * FROM pg_subscription ORDER BY subname",
    ),
    QuerySpec(
        "tablespaces",
        "postgresql/tablespaces.tsv",
        "SELECT oid, spcname, spcowner, spcacl, spcoptions, "
        "pg_tablespace_location(oid) as spclocation FROM pg_tablespace ORDER BY spcname",
    ),
    QuerySpec("version", "postgresql/version.tsv", "SELECT version()"),
    QuerySpec(
        "waits_sample",
        "postgresql/waits_sample.tsv",
        "SELECT pid, wait_event_type, wait_event, state, query FROM pg_stat_activity "
        "WHERE wait_event IS NOT NULL ORDER BY pid",
    ),
)

CONFIG_FILES: tuple[ConfigFileSpec, ...] = tuple(
    ConfigFileSpec(filename, f"postgresql/{filename}", filename)
    for filename in (
        "pg_hba.conf",
        "pg_ident.conf",
        "postgresql.auto.conf",
        "postgresql.conf",
        "recovery.conf",
        "recovery.done",
    )
)

PER_DATABASE_QUERIES: tuple[QuerySpec, ...] = (
    QuerySpec(
        "extensions",
        "databases/{database}/extensions.tsv",
        "SELECT * FROM pg_extension ORDER BY extname",
    ),
    QuerySpec(
        "funcs",
        "databases/{database}/funcs.tsv",
        "SELECT oid, proname, pronamespace, proowner, prolang, prokind FROM pg_proc "
        "WHERE prokind = 'f' ORDER BY proname",
    ),
    QuerySpec(
        "indexes",
        "databases/{database}/indexes.tsv",
        "SELECT schemaname, tablename, indexname, indexdef FROM pg_indexes "
        "ORDER BY schemaname, tablename, indexname",
    ),
    QuerySpec(
        "languages",
        "databases/{database}/languages.tsv",
        "SELECT * FROM pg_language ORDER BY lanname",
    ),
    QuerySpec(
        "operators",
        "databases/{database}/operators.tsv",
        "SELECT oid, oprname, oprkind, oprcanmerge, oprcanhash FROM pg_operator ORDER BY oprname",
    ),
    QuerySpec(
        "partitioned_tables",
        "databases/{database}/partitioned_tables.tsv",
        "SELECT * FROM pg_partitioned_table ORDER BY partrelid",
    ),
    QuerySpec(
        "partitions",
        "databases/{database}/partitions.tsv",
        "SELECT inhrelid::regclass AS partition, inhparent::regclass AS parent, inhseqno "
        "FROM pg_inherits ORDER BY inhparent, inhseqno",
    ),
    QuerySpec(
        "procs",
        "databases/{database}/procs.tsv",
        "SELECT oid, proname, pronamespace, proowner, prolang, prokind FROM pg_proc "
        "WHERE prokind = 'p' ORDER BY proname",
    ),
    QuerySpec(
        "publication_tables",
        "databases/{database}/publication_tables.tsv",
        "SELECT * FROM pg_publication_tables ORDER BY pubname, schemaname, tablename",
    ),
    QuerySpec(
        "publications",
        "databases/{database}/publications.tsv",
        "SELECT * FROM pg_publication ORDER BY pubname",
    ),
    QuerySpec(
        "schemas",
        "databases/{database}/schemas.tsv",
        "SELECT * FROM pg_namespace ORDER BY nspname",
    ),
    QuerySpec("stat_database", "databases/{database}/stat_database.tsv", _STAT_DATABASE_SQL),
    QuerySpec(
        "statistics",
        "databases/{database}/statistics.tsv",
        "SELECT * FROM pg_statistic_ext ORDER BY stxname",
    ),
    QuerySpec(
        "subscription_tables",
        "databases/{database}/subscription_tables.tsv",
        "SELECT * FROM pg_subscription_rel ORDER BY srsubid, srrelid",
    ),
    QuerySpec(
        "tables",
        "databases/{database}/tables.tsv",
        "SELECT schemaname, tablename, tableowner, tablespace, hasindexes, hasrules, hastriggers "
        "FROM pg_tables ORDER BY schemaname, tablename",
    ),
    QuerySpec(
        "triggers",
        "databases/{database}/triggers.tsv",
        "SELECT * FROM pg_trigger ORDER BY tgname",
    ),
    QuerySpec(
        "types",
        "databases/{database}/types.tsv",
        "SELECT oid, typname, typnamespace, typtype, typcategory FROM pg_type ORDER BY typname",
    ),
)

PG_STATVIZ_QUERIES: tuple[QuerySpec, ...] = tuple(
    QuerySpec(
        f"pg_statviz_{table}",
        f"pg_statviz/{{database}}/{table}.tsv",
        f"SELECT * FROM pgstatviz.{table} ORDER BY snapshot_tstamp",
    )
    for table in (
        "buf",
        "conf",
        "conn",
        "db",
        "io",
        "lock",
        "repl",
        "slru",
        "snapshots",
        "wait",
        "wal",
    )
)


def postgres_tasks(data_directory: DataDirectoryResolver | None = None) -> list[CollectionTask]:
    """Instance-level query tasks followed by configuration file tasks."""

    category = TaskCategory.POSTGRESQL.value
    return build_query_tasks(category, INSTANCE_QUERIES) + build_config_file_tasks(
        category,
        CONFIG_FILES,
        data_directory or DataDirectoryResolver(),
    )


def database_tasks(connection: Connection) -> list[CollectionTask]:
    """One task per (database, per-database query) pair, databases in name order."""

    databases = list_databases(connection)
    logger.info("Discovered %d databases", len(databases))
    return [
        CollectionTask(
            category=TaskCategory.DATABASE.value,
            name=f"{database}/{spec.name}",
            archive_path=spec.archive_path.format(database=database),
            producer=database_query_producer(database, spec.query),
        )
        for database in databases
        for spec in PER_DATABASE_QUERIES + PG_STATVIZ_QUERIES
    ]
