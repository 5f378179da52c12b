"""Tests for the database management CLI."""

import sqlite3

import pytest

from manage import main
from storefront.domain import storefront
from storefront.utils.db import configure_database


def _tables(path):
    with sqlite3.connect(path) as conn:
        return {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}


@pytest.fixture()
def restore_memory():
    yield
    configure_database(storefront, None)


def test_setup_and_drop(tmp_path, restore_memory):
    path = tmp_path / "manage.db"
    url = f"sqlite:///{path}"

    main(["setup-db", "--database-url", url])
    assert {"cart", "cart_line_item"} <= _tables(path)

    main(["drop-db", "--database-url", url])
    assert not {"cart", "cart_line_item"} & _tables(path)


def test_database_url_is_required(monkeypatch):
    monkeypatch.setattr("manage.settings.database_url", None)
    with pytest.raises(SystemExit):
        main(["setup-db"])


def test_command_is_required():
    with pytest.raises(SystemExit):
        main([])
