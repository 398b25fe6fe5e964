import json
import logging

from shared.logger import OrdinalLogger


def test_json_log_file_records_operation_and_fields(tmp_path):
    log_path = tmp_path / "logs" / "ordinal.jsonl"
    log = OrdinalLogger("unit-json", log_file=log_path, json_logs=True, console_output=False)
    with log.operation("extract"):
        log.error("bad signature at 0x%X", 0x80, stage="pe_signature")
    log.info("outside")

    entries = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    assert entries[0]["message"] == "bad signature at 0x80"
    assert entries[0]["level"] == "ERROR"
    assert entries[0]["tool"] == "unit-json"
    assert entries[0]["operation"] == "extract"
    assert entries[0]["fields"] == {"stage": "pe_signature"}
    assert entries[1]["operation"] == "-"
    assert "fields" not in entries[1]


def test_plain_log_file_and_level_threshold(tmp_path):
    log_path = tmp_path / "ordinal.log"
    log = OrdinalLogger("unit-plain", log_level="WARNING", log_file=log_path, console_output=False)
    log.info("hidden")
    log.warning("shown")
    text = log_path.read_text(encoding="utf-8")
    assert "hidden" not in text
    assert "[unit-plain/-] shown" in text


def test_timed_logs_at_debug(tmp_path):
    log_path = tmp_path / "timed.log"
    log = OrdinalLogger("unit-timed", log_level="DEBUG", log_file=log_path, console_output=False)
    with log.timed("export table"):
        pass
    assert "export table took" in log_path.read_text(encoding="utf-8")


def test_reinstantiation_replaces_handlers():
    OrdinalLogger("unit-dup", console_output=True)
    OrdinalLogger("unit-dup", console_output=True)
    assert len(logging.getLogger("ordinal.unit-dup").handlers) == 1
