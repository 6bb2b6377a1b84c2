from typing import Optional

import pytest

from flexcols import FlexColsSettings, FlexContents, Record, flex_column, init_flexcols, load_settings


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FLEXCOLS_DATABASE_URL", raising=False)
    monkeypatch.delenv("FLEXCOLS_ECHO_SQL", raising=False)
    return tmp_path


@pytest.fixture
def restore_store():
    original = Record._store
    yield
    Record._store = original


def test_defaults(clean_env):
    settings = load_settings()
    assert settings.database_url == "sqlite://"
    assert settings.echo_sql is False


def test_from_environment(clean_env, monkeypatch):
    url = f"sqlite:///{clean_env / 'env.db'}"
    monkeypatch.setenv("FLEXCOLS_DATABASE_URL", url)
    monkeypatch.setenv("FLEXCOLS_ECHO_SQL", "True")

    settings = load_settings()
    assert settings.database_url == url
    assert settings.echo_sql is True


def test_init_without_engine_uses_settings(clean_env, restore_store):
    settings = FlexColsSettings(database_url=f"sqlite:///{clean_env / 'app.db'}")
    store = init_flexcols(settings=settings)

    assert Record._store is store
    assert str(store.engine.url) == settings.database_url

    class Note(Record):
        body: Optional[str] = None

        @flex_column("body", prefix="note")
        class Body(FlexContents):
            text: Optional[str] = None

    note = Note(note_text="hello").save()
    assert Note.find(note.id).note_text == "hello"
    store.engine.dispose()
