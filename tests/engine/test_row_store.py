import pytest
from flatdb.engine.table_catalog import TableCatalog
from flatdb.engine.row_store import RowStore
from flatdb.engine.errors import (
    ColumnNotFoundError, PrimaryKeyImmutableError, PrimaryKeyViolationError, RowNotFoundError,
    TableNotFoundError, TypeMismatchError, UnclassifiableValueError,
)


@pytest.fixture
def store(tmp_path):
    catalog = TableCatalog(str(tmp_path))
    catalog.create('person', [('id', 'int'), ('name', 'string')], primary_key='id')
    return RowStore(catalog)


def read_data(tmp_path, table='person'):
    return (tmp_path / table).read_bytes()


def test_person_scenario(store):
    store.insert('person', ['1', 'alice'])
    store.insert('person', ['2', 'bob'])
    assert store.select_by_key('person', '1') == ('1', 'alice')
    assert store.delete_by_key('person', '1') == 1
    assert store.select_all('person') == [('2', 'bob')]
    store.update('person', '2', 'name', 'bobby')
    assert store.select_by_key('person', '2') == ('2', 'bobby')


def test_data_file_format(store, tmp_path):
    store.insert('person', ['1', 'alice'])
    store.insert('person', ['2', 'bob'])
    assert read_data(tmp_path) == b"1:alice\n2:bob\n"


def test_select_all_keeps_append_order(store):
    for key, name in [('3', 'c'), ('1', 'a'), ('2', 'b')]:
        store.insert('person', [key, name])
    assert [row[0] for row in store.select_all('person')] == ['3', '1', '2']


def test_inserted_row_appears_once(store):
    store.insert('person', ['7', 'grace'])
    assert store.select_all('person').count(('7', 'grace')) == 1


def test_duplicate_primary_key_rejected(store):
    store.insert('person', ['1', 'alice'])
    with pytest.raises(PrimaryKeyViolationError):
        store.insert('person', ['1', 'mallory'])
    assert store.row_count('person') == 1


def test_type_mismatch_writes_nothing(store, tmp_path):
    store.insert('person', ['1', 'alice'])
    before = read_data(tmp_path)
    with pytest.raises(TypeMismatchError):
        store.insert('person', ['abc', 'bob'])
    with pytest.raises(UnclassifiableValueError):
        store.insert('person', ['2', 'bob smith'])
    assert read_data(tmp_path) == before


def test_text_column_accepts_int(store):
    store.insert('person', ['1', '42'])
    assert store.select_by_key('person', '1') == ('1', '42')


def test_delimiter_in_value_is_rejected(store, tmp_path):
    with pytest.raises(TypeMismatchError):
        store.insert('person', ['1', 'a:b'])
    assert read_data(tmp_path) == b""


def test_select_by_key_is_exact_match(store):
    store.insert('person', ['12', 'alice'])
    store.insert('person', ['2', '1'])
    # '1' 是 '12' 的前缀，也出现在另一行的 name 字段中，都不应命中
    assert store.select_by_key('person', '1') is None
    assert store.select_by_key('person', '2') == ('2', '1')


def test_select_by_key_missing_returns_none(store):
    assert store.select_by_key('person', '99') is None


def test_select_column(store):
    store.insert('person', ['1', 'alice'])
    store.insert('person', ['2', 'bob'])
    assert store.select_column('person', 'name') == ['alice', 'bob']
    with pytest.raises(ColumnNotFoundError):
        store.select_column('person', 'email')


def test_operations_on_missing_table(store):
    with pytest.raises(TableNotFoundError):
        store.select_all('ghost')
    with pytest.raises(TableNotFoundError):
        store.insert('ghost', ['1'])
    with pytest.raises(TableNotFoundError):
        store.delete_by_key('ghost', '1')


def test_delete_all_keeps_schema(store, tmp_path):
    store.insert('person', ['1', 'alice'])
    store.insert('person', ['2', 'bob'])
    assert store.delete_all('person') == 2
    assert store.select_all('person') == []
    assert (tmp_path / '.person').read_text(encoding='utf-8') == "id:int:PK\nname:string:\n"


def test_delete_by_key_exact_match(store):
    store.insert('person', ['1', 'alice'])
    store.insert('person', ['11', 'bob'])
    store.insert('person', ['3', '1'])
    assert store.delete_by_key('person', '1') == 1
    assert store.select_all('person') == [('11', 'bob'), ('3', '1')]
    assert store.delete_by_key('person', '1') == 0


def test_delete_column(tmp_path):
    catalog = TableCatalog(str(tmp_path))
    catalog.create('emp', [('name', 'string'), ('id', 'int'), ('dept', 'string'), ('age', 'int')],
                   primary_key='id')
    store = RowStore(catalog)
    store.insert('emp', ['ann', '1', 'ops', '30'])
    store.insert('emp', ['ben', '2', 'dev', '41'])

    assert store.delete_column('emp', 'dept') == 2
    assert store.select_all('emp') == [('ann', '1', '30'), ('ben', '2', '41')]
    assert [c.column_name for c in catalog.load_schema('emp')] == ['name', 'id', 'age']
    assert (tmp_path / 'emp').read_text(encoding='utf-8') == "ann:1:30\nben:2:41\n"
    # 删列后仍能按主键查询与插入
    assert store.select_by_key('emp', '2') == ('ben', '2', '41')
    store.insert('emp', ['cat', '3', '22'])


def test_delete_primary_key_column_fails(store, tmp_path):
    store.insert('person', ['1', 'alice'])
    before = read_data(tmp_path)
    with pytest.raises(PrimaryKeyImmutableError):
        store.delete_column('person', 'id')
    with pytest.raises(ColumnNotFoundError):
        store.delete_column('person', 'email')
    assert read_data(tmp_path) == before


def test_update_changes_only_target_field(tmp_path):
    catalog = TableCatalog(str(tmp_path))
    catalog.create('t', [('id', 'int'), ('a', 'string'), ('b', 'string')], primary_key='id')
    store = RowStore(catalog)
    store.insert('t', ['1', 'x', 'x'])
    store.insert('t', ['2', 'x', 'x'])
    store.insert('t', ['3', 'x', 'x'])

    assert store.update('t', '2', 'b', 'y') == ('2', 'x', 'y')
    # 旧值在全表中不唯一，只有主键为 2 的那一行的 b 字段被改
    assert (tmp_path / 't').read_bytes() == b"1:x:x\n2:x:y\n3:x:x\n"


def test_update_errors(store, tmp_path):
    store.insert('person', ['1', 'alice'])
    before = read_data(tmp_path)
    with pytest.raises(RowNotFoundError):
        store.update('person', '9', 'name', 'zed')
    with pytest.raises(RowNotFoundError):
        store.update('person', '9', 'id', '5')
    with pytest.raises(PrimaryKeyImmutableError):
        store.update('person', '1', 'id', '5')
    with pytest.raises(ColumnNotFoundError):
        store.update('person', '1', 'email', 'a')
    with pytest.raises(TypeMismatchError):
        store.update('person', '1', 'name', 'not valid')
    assert read_data(tmp_path) == before


def test_update_int_column_rejects_text(tmp_path):
    catalog = TableCatalog(str(tmp_path))
    catalog.create('acct', [('id', 'int'), ('balance', 'int')], primary_key='id')
    store = RowStore(catalog)
    store.insert('acct', ['1', '100'])
    with pytest.raises(TypeMismatchError):
        store.update('acct', '1', 'balance', 'lots')
    store.update('acct', '1', 'balance', '250')
    assert store.select_column('acct', 'balance') == ['250']


def test_insert_session_reprompts_single_field(store, tmp_path):
    store.insert('person', ['1', 'alice'])
    session = store.begin_insert('person')
    with pytest.raises(PrimaryKeyViolationError):
        session.accept('1')
    with pytest.raises(TypeMismatchError):
        session.accept('two')
    session.accept('2')
    assert session.next_column.column_name == 'name'
    with pytest.raises(TypeMismatchError):
        session.accept('b o b')
    # 失败的字段不影响已接受的字段
    assert session.values == ['2']
    session.accept('bob')
    assert session.is_complete
    assert session.commit() == ('2', 'bob')
    assert store.select_all('person') == [('1', 'alice'), ('2', 'bob')]


def test_insert_session_discard_writes_nothing(store, tmp_path):
    session = store.begin_insert('person')
    session.accept('1')
    session.discard()
    assert read_data(tmp_path) == b""
    with pytest.raises(ValueError):
        session.commit()


def test_insert_session_incomplete_commit(store):
    session = store.begin_insert('person')
    session.accept('1')
    with pytest.raises(ValueError):
        session.commit()
    assert store.row_count('person') == 0


def test_insert_wrong_value_count(store):
    with pytest.raises(ValueError):
        store.insert('person', ['1'])
