"""Create the engine's tables (and optional demo data) on the configured server."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Optional

from .connection import DBConfig

logger = logging.getLogger(__name__)

ENGINE_TABLES = (
    "departments",
    "work_schedule_policies",
    "employees",
    "user_roles",
    "geofence_configs",
    "penalty_policies",
    "attendance_records",
    "attendance_penalties",
)

# schema.sql names its own database; the configured one always wins.
_DATABASE_DIRECTIVE = re.compile(r"^(CREATE\s+DATABASE|USE)\b", re.IGNORECASE)


def split_statements(script: str) -> Iterator[str]:
    """Yield the statements of a SQL script in order.

    Full-line ``--`` comments and ``CREATE DATABASE`` / ``USE`` directives
    are dropped; ``;`` inside quotes or backticks does not end a statement.
    """
    current: list[str] = []
    quote: Optional[str] = None

    def flush() -> Optional[str]:
        statement = "".join(current).strip()
        current.clear()
        if statement and not _DATABASE_DIRECTIVE.match(statement):
            return statement
        return None

    for line in script.splitlines(keepends=True):
        if quote is None and line.lstrip().startswith("--"):
            continue
        escaped = False
        for ch in line:
            if quote is not None:
                current.append(ch)
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == quote:
                    quote = None
                continue
            if ch == ";":
                statement = flush()
                if statement:
                    yield statement
                continue
            if ch in ("'", '"', "`"):
                quote = ch
            current.append(ch)

    statement = flush()
    if statement:
        yield statement


def _execute_script(cfg: DBConfig, path: str | Path) -> int:
    statements = list(split_statements(Path(path).read_text(encoding="utf-8")))
    conn = cfg.open()
    try:
        cur = conn.cursor()
        for statement in statements:
            cur.execute(statement)
        conn.commit()
    finally:
        conn.close()
    return len(statements)


def ensure_database_exists(cfg: DBConfig) -> None:
    conn = cfg.open(select_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{cfg.database}` "
            f"CHARACTER SET {cfg.charset} COLLATE {cfg.charset}_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    cfg = DBConfig.from_dict(db_config)
    ensure_database_exists(cfg)
    count = _execute_script(cfg, schema_path)
    logger.info("schema applied to %s (%d statements from %s)", cfg.describe(), count, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    cfg = DBConfig.from_dict(db_config)
    count = _execute_script(cfg, seed_path)
    logger.info("seed data applied to %s (%d statements)", cfg.describe(), count)


def list_tables(db_config: dict) -> list[str]:
    conn = DBConfig.from_dict(db_config).open()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [str(row[0]) for row in cur.fetchall()]
    finally:
        conn.close()


def missing_tables(db_config: dict) -> list[str]:
    present = set(list_tables(db_config))
    return [name for name in ENGINE_TABLES if name not in present]
