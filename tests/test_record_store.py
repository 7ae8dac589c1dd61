import csv
import os
import stat
from unittest.mock import patch

import pytest

from gcp_sa_inventory.errors import RecordStoreError
from gcp_sa_inventory.models import STATUS_ACTIVE, STATUS_DELETED
from gcp_sa_inventory.record_store import CSV_HEADER, RecordStore


def read_rows(path):
    with open(path, newline='', encoding='utf-8') as f:
        return list(csv.reader(f))


def test_missing_file_loads_empty_store(records_file):
    store = RecordStore(records_file).load()

    assert len(store) == 0
    assert not store.exists


def test_load_reads_rows_and_skips_header(write_records):
    path = write_records([
        ['p1', 'a@p1.iam.gserviceaccount.com', '111', 'active'],
        ['p1', 'b@p1.iam.gserviceaccount.com', '222', 'deleted'],
    ])

    store = RecordStore(path).load()

    assert len(store) == 2
    entry = store.get(('p1', 'b@p1.iam.gserviceaccount.com', '222'))
    assert entry.status == STATUS_DELETED


def test_load_skips_short_rows(write_records):
    path = write_records([
        ['p1', 'a@x.com', '111', 'active'],
        ['p1', 'broken@x.com', '222'],
        [],
        ['p2', 'c@x.com', '333', 'active', 'extra'],
    ])

    store = RecordStore(path).load()

    assert len(store) == 2
    assert ('p2', 'c@x.com', '333') in store


def test_upsert_same_key_does_not_duplicate(records_file):
    store = RecordStore(records_file)
    store.upsert('p1', 'a@x.com', '111')
    store.upsert('p1', 'a@x.com', '111')

    assert len(store) == 1


def test_upsert_reactivates_deleted_entry(write_records):
    store = RecordStore(write_records([['p1', 'a@x.com', '111', 'deleted']])).load()

    entry = store.upsert('p1', 'a@x.com', '111')

    assert entry.status == STATUS_ACTIVE
    assert len(store) == 1


def test_save_rewrites_whole_file(records_file):
    store = RecordStore(records_file)
    store.upsert('p1', 'a@x.com', '111')
    store.upsert('p2', 'b@x.com', '222')
    store.save()

    store = RecordStore(records_file).load()
    store.mark_deleted({'p2'}, [])
    store.save()

    rows = read_rows(records_file)
    assert rows[0] == CSV_HEADER
    assert sorted(rows[1:]) == [
        ['p1', 'a@x.com', '111', 'active'],
        ['p2', 'b@x.com', '222', 'deleted'],
    ]


def test_save_leaves_no_temp_files(tmp_path, records_file):
    store = RecordStore(records_file)
    store.upsert('p1', 'a@x.com', '111')
    store.save()

    assert os.listdir(tmp_path) == ['service-accounts.csv']


def test_save_failure_raises_record_store_error(records_file):
    store = RecordStore(records_file)
    store.upsert('p1', 'a@x.com', '111')

    with patch('gcp_sa_inventory.record_store.os.replace', side_effect=PermissionError("read-only")):
        with pytest.raises(RecordStoreError) as excinfo:
            store.save()

    assert isinstance(excinfo.value.cause, PermissionError)
    assert not os.path.exists(records_file)


def test_mark_deleted_only_touches_succeeded_projects(write_records):
    store = RecordStore(write_records([
        ['p1', 'a@x.com', '111', 'active'],
        ['p1', 'b@x.com', '222', 'active'],
        ['p2', 'c@x.com', '333', 'active'],
    ])).load()

    changed = store.mark_deleted({'p1'}, [('p1', 'a@x.com', '111')])

    assert changed == 1
    assert store.get(('p1', 'a@x.com', '111')).status == STATUS_ACTIVE
    assert store.get(('p1', 'b@x.com', '222')).status == STATUS_DELETED
    assert store.get(('p2', 'c@x.com', '333')).status == STATUS_ACTIVE


def test_mark_deleted_counts_only_status_changes(write_records):
    store = RecordStore(write_records([['p1', 'a@x.com', '111', 'deleted']])).load()

    assert store.mark_deleted({'p1'}, []) == 0


def test_load_tolerates_bytes_that_are_not_utf8(records_file):
    with open(records_file, 'wb') as f:
        f.write(b'ProjectID,Email,SubjectID,Status\r\n')
        f.write(b'p1,a@x.com,111,active\r\n')
        f.write(b'p1,caf\xe9@x.com,222,active\r\n')

    store = RecordStore(records_file).load()

    assert store.get(('p1', 'a@x.com', '111')).status == STATUS_ACTIVE
    assert len(store) == 2
    assert [e.subject_id for e in store if e.email.startswith('caf')] == ['222']


def test_save_keeps_existing_file_mode(write_records):
    path = write_records([['p1', 'a@x.com', '111', 'active']])
    os.chmod(path, 0o644)

    store = RecordStore(path).load()
    store.upsert('p1', 'b@x.com', '222')
    store.save()

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o644


def test_save_new_file_follows_umask(records_file):
    old_umask = os.umask(0o027)
    try:
        store = RecordStore(records_file)
        store.upsert('p1', 'a@x.com', '111')
        store.save()
    finally:
        os.umask(old_umask)

    assert stat.S_IMODE(os.stat(records_file).st_mode) == 0o640
