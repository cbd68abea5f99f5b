"""Shared fixtures for tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from lectern.config import AppConfig
from lectern.library.database import Database
from lectern.library.models import User
from lectern.library.service import Library

OWNER_ID = 1
READER_ID = 2


@pytest.fixture
def db(tmp_path: Path) -> Database:
    db_path = tmp_path / "test.db"
    database = Database(db_path)
    yield database
    database.close()


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        data_dir=tmp_path / "data",
        config_dir=tmp_path / "config",
    )


@pytest.fixture
def users(db: Database) -> tuple[User, User]:
    owner = User(id=OWNER_ID, username="owner")
    reader = User(id=READER_ID, username="reader")
    db.add_user(owner)
    db.add_user(reader)
    return owner, reader


@pytest.fixture
def library(config: AppConfig, db: Database, users) -> Library:
    return Library(config, db)


@pytest.fixture
def book_file(tmp_path: Path) -> Path:
    f = tmp_path / "长夜.txt"
    f.write_text(
        "长夜 作者：某人\n"
        "\n"
        "序章\n"
        "雪落了一整夜。\n"
        "第一章 出城\n"
        "城门在天亮前打开。\n"
        "第二章 渡口\n"
        "船家说今天不开船。\n",
        encoding="utf-8",
    )
    return f
