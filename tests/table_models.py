"""Row and table classes over the test schema created in conftest."""

from __future__ import annotations

from sql_objects.domain.entities import Column, IdentityRow, KeylessRow, UuidRow
from sql_objects.domain.services.table_handler import IdentityTable, KeylessTable, UuidTable


SCHEMA = """
CREATE TABLE `user` (
    `id` INTEGER PRIMARY KEY AUTOINCREMENT,
    `name` VARCHAR(255) NOT NULL,
    `email` TEXT NOT NULL,
    `nickname` VARCHAR(255) NULL,
    `visits` INTEGER NOT NULL DEFAULT 0,
    `created_at` TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE `user_uuid_table` (
    `uuid` BLOB NOT NULL PRIMARY KEY,
    `name` VARCHAR(255) NOT NULL,
    `email` TEXT NOT NULL
);

CREATE TABLE `user_no_id_table` (
    `name` VARCHAR(255) NOT NULL,
    `email` TEXT NOT NULL
);
"""


class UserRecord(IdentityRow):
    name = Column()
    email = Column()
    nickname = Column(nullable=True)
    visits = Column(default=0, converter=int)
    created_at = Column(server_default=True)


class UserTable(IdentityTable[UserRecord]):
    table_name = "user"
    row_class = UserRecord


class UuidUserRecord(UuidRow):
    name = Column()
    email = Column()


class UuidUserTable(UuidTable[UuidUserRecord]):
    table_name = "user_uuid_table"
    row_class = UuidUserRecord


class NoIdUserRecord(KeylessRow):
    name = Column()
    email = Column()


class NoIdUserTable(KeylessTable[NoIdUserRecord]):
    table_name = "user_no_id_table"
    row_class = NoIdUserRecord
