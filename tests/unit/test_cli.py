"""Tests for the command-line entrypoint."""

import json

from suggestion_engine.main import main


def test_cli_prints_suggestions(tmp_path, monkeypatch, capsys, gdpr_note):
    monkeypatch.chdir(tmp_path)
    note = tmp_path / "partner-sync.md"
    note.write_text(gdpr_note.raw_text, encoding="utf-8")

    assert main([str(note)]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["suggestions"]
    assert all(s["note_id"] == "partner-sync" for s in output["suggestions"])
    assert "debug_run" not in output
    assert "debug_summary" not in output


def test_cli_debug_run_and_plan_items(tmp_path, monkeypatch, capsys, gdpr_note):
    monkeypatch.chdir(tmp_path)
    note = tmp_path / "note.md"
    note.write_text(gdpr_note.raw_text, encoding="utf-8")
    plan_items = tmp_path / "plan.json"
    plan_items.write_text(json.dumps([{"id": "plan-1", "title": "Partner launch"}]), encoding="utf-8")

    code = main([str(note), "--note-id", "sync-1", "--plan-items", str(plan_items), "--debug", "REDACTED"])
    assert code == 0

    output = json.loads(capsys.readouterr().out)
    assert output["debug_run"]["meta"]["noteId"] == "sync-1"
    assert output["debug_run"]["meta"]["verbosity"] == "REDACTED"
    summary = output["debug_summary"]
    assert summary["totalSections"] == len(output["debug_run"]["sections"])
    assert summary["emittedCount"] >= 1


def test_cli_rejects_invalid_config(tmp_path, monkeypatch, capsys, gdpr_note):
    monkeypatch.chdir(tmp_path)
    note = tmp_path / "note.md"
    note.write_text(gdpr_note.raw_text, encoding="utf-8")

    assert main([str(note), "--max-suggestions", "0"]) == 1
    assert "error:" in capsys.readouterr().err


def test_cli_rejects_blank_note_id(tmp_path, monkeypatch, capsys, gdpr_note):
    monkeypatch.chdir(tmp_path)
    note = tmp_path / "note.md"
    note.write_text(gdpr_note.raw_text, encoding="utf-8")

    assert main([str(note), "--note-id", "   "]) == 1
    assert "note_id" in capsys.readouterr().err
