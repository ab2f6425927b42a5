from datetime import timedelta

import pytest

from lookout.core.audit_log import AUDIT_CSV_FIELDS, export_audit_csv
from lookout.models import AuditEntry, AuditLevel, utc_now


@pytest.mark.asyncio
async def test_record_and_list_newest_first(audit_log):
    now = utc_now()
    await audit_log.record(AuditEntry(action="FIRST", timestamp=now - timedelta(seconds=5)))
    await audit_log.record(
        AuditEntry(action="SECOND", actor="alice", level=AuditLevel.ERROR, details="x", timestamp=now)
    )

    entries = await audit_log.list_entries()

    assert [e.action for e in entries] == ["SECOND", "FIRST"]
    assert entries[0].actor == "alice"
    assert entries[0].level == AuditLevel.ERROR
    assert entries[1].actor == "system"


def test_export_audit_csv():
    entry = AuditEntry(action="FILE_RETRY", actor="alice", details='moved "A.mxf", retrying')

    content = export_audit_csv([entry])

    lines = content.splitlines()
    assert lines[0] == ",".join(AUDIT_CSV_FIELDS)
    assert entry.id in lines[1]
    assert '"moved ""A.mxf"", retrying"' in lines[1]
