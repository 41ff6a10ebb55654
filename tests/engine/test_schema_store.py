import os
import pytest
from flatdb.engine.schema_store import ColumnInfo, SchemaStore, validate_identifier
from flatdb.engine.value_classifier import ValueType
from flatdb.engine.errors import (
    ColumnNotFoundError, CorruptTableError, DuplicateColumnError, DuplicateTableError,
    InvalidIdentifierError, InvalidSchemaError, PrimaryKeyImmutableError, TableNotFoundError,
)


@pytest.fixture
def store(tmp_path):
    return SchemaStore(str(tmp_path))


def person_columns():
    return [
        ColumnInfo('id', ValueType.INT, True),
        ColumnInfo('name', ValueType.TEXT),
        ColumnInfo('age', ValueType.INT),
    ]


def test_define_then_load_roundtrip(store):
    store.define('person', person_columns())
    assert store.load('person') == person_columns()


def test_schema_file_format(store, tmp_path):
    store.define('person', person_columns())
    with open(tmp_path / '.person', encoding='utf-8') as f:
        assert f.read() == "id:int:PK\nname:string:\nage:int:\n"


def test_define_with_tuples_and_primary_key_name(store):
    columns = store.define('item', [('sku', 'string'), ('qty', ValueType.INT)], primary_key='sku')
    assert [c.is_primary_key for c in columns] == [True, False]
    assert store.primary_key('item').column_name == 'sku'


def test_define_rejects_existing_table(store):
    store.define('person', person_columns())
    with pytest.raises(DuplicateTableError):
        store.define('person', person_columns())


@pytest.mark.parametrize("name", ["1abc", "_x", "a-b", "", "a b", "../evil"])
def test_define_rejects_invalid_table_name(store, name):
    with pytest.raises(InvalidIdentifierError):
        store.define(name, person_columns())


def test_define_rejects_invalid_column_name(store):
    with pytest.raises(InvalidIdentifierError):
        store.define('t', [('id', 'int'), ('bad name', 'string')], primary_key='id')


def test_define_rejects_duplicate_column(store, tmp_path):
    with pytest.raises(DuplicateColumnError):
        store.define('t', [('id', 'int'), ('id', 'string')], primary_key='id')
    # 校验失败时不写任何文件
    assert os.listdir(tmp_path) == []


def test_define_requires_exactly_one_primary_key(store):
    with pytest.raises(InvalidSchemaError):
        store.define('t', [ColumnInfo('a', ValueType.INT), ColumnInfo('b', ValueType.INT)])
    with pytest.raises(InvalidSchemaError):
        store.define('t', [ColumnInfo('a', ValueType.INT, True), ColumnInfo('b', ValueType.INT, True)])
    with pytest.raises(InvalidSchemaError):
        store.define('t', [('a', 'int')], primary_key='missing')
    with pytest.raises(InvalidSchemaError):
        store.define('t', [])


def test_load_missing_table(store):
    with pytest.raises(TableNotFoundError):
        store.load('ghost')


def test_load_corrupted_schema(store, tmp_path):
    (tmp_path / '.broken').write_text("id:float:PK\n", encoding='utf-8')
    with pytest.raises(CorruptTableError):
        store.load('broken')


def test_column_position(store):
    store.define('person', person_columns())
    assert store.column_position('person', 'age') == 2
    with pytest.raises(ColumnNotFoundError):
        store.column_position('person', 'email')


def test_drop_column_keeps_order(store):
    store.define('person', person_columns())
    remaining = store.drop_column('person', 'name')
    assert [c.column_name for c in remaining] == ['id', 'age']
    assert store.load('person') == remaining


def test_drop_primary_key_column_fails(store):
    store.define('person', person_columns())
    with pytest.raises(PrimaryKeyImmutableError):
        store.drop_column('person', 'id')
    assert store.load('person') == person_columns()


def test_validate_identifier():
    assert validate_identifier('orders_2024') == 'orders_2024'
    with pytest.raises(InvalidIdentifierError):
        validate_identifier('2024orders')
