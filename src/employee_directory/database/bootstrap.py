from __future__ import annotations

import logging
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import Role
from .connection import DBConfig

LOGGER = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS employees (
    id BIGINT AUTO_INCREMENT PRIMARY KEY,
    name VARCHAR(100) NOT NULL,
    age INT NOT NULL,
    class_name VARCHAR(50) NOT NULL,
    email VARCHAR(100) NULL,
    phone VARCHAR(15) NULL,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL,
    CONSTRAINT uq_employees_email UNIQUE (email),
    INDEX idx_employee_name (name),
    INDEX idx_employee_class (class_name)
) ENGINE=InnoDB;

CREATE TABLE IF NOT EXISTS employee_subjects (
    employee_id BIGINT NOT NULL,
    position INT NOT NULL,
    subject VARCHAR(100) NOT NULL,
    PRIMARY KEY (employee_id, position),
    INDEX idx_employee_subject (subject),
    CONSTRAINT fk_subjects_employee FOREIGN KEY (employee_id) REFERENCES employees(id) ON DELETE CASCADE
) ENGINE=InnoDB;

CREATE TABLE IF NOT EXISTS employee_attendance (
    employee_id BIGINT NOT NULL,
    attendance_date DATE NOT NULL,
    present TINYINT(1) NOT NULL,
    PRIMARY KEY (employee_id, attendance_date),
    CONSTRAINT fk_attendance_employee FOREIGN KEY (employee_id) REFERENCES employees(id) ON DELETE CASCADE
) ENGINE=InnoDB;

CREATE TABLE IF NOT EXISTS users (
    user_id BIGINT AUTO_INCREMENT PRIMARY KEY,
    username VARCHAR(50) NOT NULL,
    password_hash VARCHAR(255) NOT NULL,
    role VARCHAR(20) NOT NULL,
    employee_id BIGINT NULL,
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CONSTRAINT uq_users_username UNIQUE (username),
    CONSTRAINT uq_users_employee UNIQUE (employee_id),
    CONSTRAINT fk_users_employee FOREIGN KEY (employee_id) REFERENCES employees(id) ON DELETE SET NULL
) ENGINE=InnoDB;
"""

DEFAULT_USERS = (
    ("admin", "admin123", Role.ADMIN),
    ("employee", "employee123", Role.EMPLOYEE),
)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter (handles ';' inside quotes).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_sql: str = SCHEMA_SQL) -> None:
    target = DBConfig.from_dict(db_config)
    ensure_database_exists(db_config)

    conn = _connect(target)
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(schema_sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    LOGGER.info("Schema applied to %s@%s/%s", target.user, target.host, target.database)


def ensure_default_users(db_config: dict) -> list[str]:
    """Insert the default admin/employee accounts when they do not exist yet.

    Existing accounts are left untouched. Returns the usernames created.
    """
    target = DBConfig.from_dict(db_config)
    created: list[str] = []

    conn = _connect(target)
    try:
        cur = conn.cursor(dictionary=True)
        for username, password, role in DEFAULT_USERS:
            cur.execute("SELECT user_id FROM users WHERE username=%s", (username,))
            if cur.fetchone():
                continue
            cur.execute(
                "INSERT INTO users (username, password_hash, role) VALUES (%s, %s, %s)",
                (username, generate_password_hash(password), role.value),
            )
            created.append(username)
            LOGGER.info("Default %s user created - username: %s", role.value, username)
        conn.commit()
    finally:
        conn.close()
    return created


def list_tables(db_config: dict) -> list[str]:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
