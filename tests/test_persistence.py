"""
Tests for persistence — the audit ledger.
"""

import json
from pathlib import Path

from yukoloader.core.persistence.audit import AuditEntry, AuditWriter, default_audit_path


class TestAuditWriter:
    def test_write_and_read(self, tmp_path: Path):
        writer = AuditWriter(tmp_path / "audit.ndjson")
        writer.write(AuditEntry(run_id="run-1", status="ok", stages_total=3))
        writer.write(AuditEntry(run_id="run-2", status="failed", errors=["git: missing"]))

        entries = writer.read_all()
        assert [e.run_id for e in entries] == ["run-1", "run-2"]
        assert entries[1].errors == ["git: missing"]

    def test_one_json_object_per_line(self, tmp_path: Path):
        path = tmp_path / "audit.ndjson"
        writer = AuditWriter(path)
        writer.write(AuditEntry(run_id="run-1"))
        writer.write(AuditEntry(run_id="run-2"))
        lines = path.read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["run_id"] == "run-1"

    def test_creates_directories(self, tmp_path: Path):
        path = tmp_path / "state" / "yukoloader" / "audit.ndjson"
        AuditWriter(path).write(AuditEntry(run_id="run-1"))
        assert path.is_file()

    def test_read_missing(self, tmp_path: Path):
        writer = AuditWriter(tmp_path / "none.ndjson")
        assert writer.read_all() == []
        assert writer.entry_count() == 0

    def test_corrupt_lines_skipped(self, tmp_path: Path):
        path = tmp_path / "audit.ndjson"
        writer = AuditWriter(path)
        writer.write(AuditEntry(run_id="run-1"))
        with path.open("a") as f:
            f.write("{not json\n")
            f.write('{"stages_total": "many"}\n')
        writer.write(AuditEntry(run_id="run-2"))

        assert [e.run_id for e in writer.read_all()] == ["run-1", "run-2"]

    def test_read_recent(self, tmp_path: Path):
        writer = AuditWriter(tmp_path / "audit.ndjson")
        for i in range(5):
            writer.write(AuditEntry(run_id=f"run-{i}"))
        assert [e.run_id for e in writer.read_recent(2)] == ["run-3", "run-4"]
        assert writer.entry_count() == 5

    def test_default_path(self, host, tmp_path: Path):
        assert default_audit_path(host) == host.home / ".local" / "state" / "yukoloader" / "audit.ndjson"
        ctx = host.with_env(XDG_STATE_HOME=str(tmp_path))
        assert default_audit_path(ctx) == tmp_path / "yukoloader" / "audit.ndjson"
