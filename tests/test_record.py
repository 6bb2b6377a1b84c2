import json
from typing import ClassVar, Optional

import pytest

from flexcols import (
    FlexContents,
    MalformedColumnData,
    MissingStoreError,
    Record,
    RecordNotFound,
    UndeclaredField,
    flex_column,
)


class User(Record):
    table_name: ClassVar[str] = "flexcols_spec_users"

    name: Optional[str] = None
    foo: Optional[str] = None
    baz: Optional[str] = None
    user_attributes: Optional[str] = None

    @flex_column("user_attributes")
    class UserAttributes(FlexContents):
        foo: Optional[str] = None
        bar: Optional[str] = None

        def baz(self) -> str:
            return self.foo + "!!"


class UserBackdoor(Record):
    """Same table, no flex column declared."""

    table_name: ClassVar[str] = "flexcols_spec_users"


def test_table_name_defaults_to_snake_case():
    class AuditEntry(Record):
        pass

    assert AuditEntry.table_name == "audit_entry"
    assert User.table_name == "flexcols_spec_users"


def test_does_not_override_record_columns(store):
    user = User(name="User 1")
    user.foo = "outer_foo"
    user.baz = "outer_baz"
    user.user_attributes.foo = "inner_foo"
    user.save()

    user_again = User.find(user.id)
    assert user_again.foo == "outer_foo"
    assert user_again.user_attributes.foo == "inner_foo"
    assert user_again.baz == "outer_baz"
    assert user_again.user_attributes.baz() == "inner_foo!!"

    user_bd = UserBackdoor.find(user.id)
    assert user_bd.foo == "outer_foo"
    assert user_bd.baz == "outer_baz"
    parsed = json.loads(user_bd.user_attributes)
    assert list(parsed) == ["foo"]
    assert parsed["foo"] == "inner_foo"


def test_delegated_write_reaches_storage(store):
    user = User(bar="via accessor")
    assert user.user_attributes.bar == "via accessor"
    user.save()

    assert json.loads(UserBackdoor.find(user.id).user_attributes) == {"bar": "via accessor"}


def test_unknown_keys_written_by_others_are_preserved(store):
    raw = json.dumps({"legacy": [1, 2], "foo": "old", "future_flag": None})
    user = UserBackdoor(user_attributes=raw).save()

    loaded = User.find(user.id)
    with pytest.raises(UndeclaredField):
        loaded.user_attributes.get("legacy")
    loaded.user_attributes.foo = "new"
    loaded.bar = "added"
    loaded.save()

    stored = json.loads(UserBackdoor.find(user.id).user_attributes)
    assert list(stored) == ["legacy", "foo", "future_flag", "bar"]
    assert stored == {"legacy": [1, 2], "foo": "new", "future_flag": None, "bar": "added"}


def test_untouched_column_is_stored_verbatim(store):
    raw = '{ "foo" : "spaced" }'
    user = UserBackdoor(user_attributes=raw).save()

    loaded = User.find(user.id)
    assert loaded.user_attributes.foo == "spaced"
    loaded.name = "renamed"
    loaded.save()

    assert UserBackdoor.find(user.id).user_attributes == raw


def test_raw_assignment_replaces_contents():
    user = User()
    user.user_attributes.foo = "before"

    user.user_attributes = '{"foo": "after"}'
    assert user.user_attributes.foo == "after"
    assert user.raw_column("user_attributes") == '{"foo": "after"}'

    user.user_attributes = None
    assert user.user_attributes.foo is None


def test_mapping_assignment_replaces_contents():
    user = User(user_attributes='{"foo": "a", "legacy": 1}')
    user.user_attributes = {"bar": "b"}
    user.sync_flex_columns()
    assert json.loads(user.raw_column("user_attributes")) == {"bar": "b"}

    with pytest.raises(UndeclaredField):
        user.user_attributes = {"nope": 1}


def test_mapping_in_constructor():
    user = User(user_attributes={"foo": "x"})
    assert user.user_attributes.foo == "x"


def test_sync_only_writes_modified_columns():
    user = User(user_attributes='{"foo":"a"}')
    assert user.raw_column("user_attributes") == '{"foo":"a"}'

    user.bar = "b"
    assert user.raw_column("user_attributes") == '{"foo":"a"}'
    user.sync_flex_columns()
    assert json.loads(user.raw_column("user_attributes")) == {"foo": "a", "bar": "b"}
    assert not user.user_attributes.is_dirty


def test_malformed_stored_value_surfaces_on_access():
    user = User(user_attributes="{not json")
    with pytest.raises(MalformedColumnData):
        user.bar


def test_empty_contents_store_null(store):
    user = User()
    user.bar = "x"
    user.bar = None
    user.save()
    assert User.find(user.id).raw_column("user_attributes") is None


def test_versions_are_appended(store):
    user = User(bar="v0").save()
    user.bar = "v1"
    user.save()

    assert user.version == 1
    assert User.find(user.id).bar == "v1"
    assert User.hydrate(user.id, version=0).bar == "v0"


def test_contents_are_per_instance(store):
    user = User(bar="shared?").save()
    first = User.find(user.id)
    second = User.find(user.id)

    first.bar = "first"
    assert second.bar == "shared?"
    assert first.user_attributes is not second.user_attributes


def test_missing_record(store):
    with pytest.raises(RecordNotFound):
        User.find(User().id)


def test_other_table_is_not_visible(store):
    class Other(Record):
        user_attributes: Optional[str] = None

    user = User(bar="x").save()
    with pytest.raises(RecordNotFound):
        Other.find(user.id)


def test_store_required(monkeypatch):
    monkeypatch.setattr(Record, "_store", None)
    with pytest.raises(MissingStoreError):
        User().save()
