"""
Tests for the command-line interface.
"""

import io
import json

import pikepdf
import pytest

from sa_id_cracker.cli import create_parser, main
from sa_id_cracker.core.generator import CandidateGenerator
from sa_id_cracker.core.pattern import parse_pattern


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "config.json")


@pytest.fixture
def statement(tmp_path):
    pdf = pikepdf.new()
    pdf.add_blank_page()
    buffer = io.BytesIO()
    pdf.save(buffer, encryption=pikepdf.Encryption(owner="9202235109082", user="9202235109082"))
    path = tmp_path / "statement.pdf"
    path.write_bytes(buffer.getvalue())
    return str(path)


def test_list_prints_candidates(capsys, config_path):
    code = main(["-m", "9202235109***", "--list", "-q", "--config", config_path])

    out = capsys.readouterr().out.split()
    assert code == 0
    assert out == list(CandidateGenerator(parse_pattern("9202235109***")))
    assert "9202235109082" in out


def test_list_with_known_gender_and_all_obsolete(capsys, config_path):
    code = main(["-m", "92022351090**", "--list", "-q", "-g", "female",
                 "--all-obsolete", "--config", config_path])

    out = capsys.readouterr().out.split()
    assert code == 0
    assert [c[11] for c in out] == list("0123456789")
    assert {c[6] for c in out} == {"5"}


def test_document_is_required_without_list(config_path):
    with pytest.raises(SystemExit):
        main(["-m", "9202235109***", "--config", config_path])


def test_bad_mask_is_an_error(config_path):
    assert main(["-m", "92022351", "--list", "-q", "--config", config_path]) == 1


def test_cracks_pdf(statement, tmp_path, config_path):
    output_file = tmp_path / "password.txt"
    copy_dir = tmp_path / "unlocked"

    code = main([statement, "-m", "9202235109***", "-q", "--backend", "thread", "-p", "2",
                 "--output-file", str(output_file), "--copy-to", str(copy_dir),
                 "--config", config_path])

    assert code == 0
    assert "Password: 9202235109082" in output_file.read_text()
    assert (copy_dir / "9202235109082_statement.pdf").exists()


def test_not_found_exit_code(statement, config_path):
    code = main([statement, "-m", "9202234109***", "-q", "--backend", "thread",
                 "-p", "2", "--config", config_path])
    assert code == 1


def test_missing_document(tmp_path, config_path):
    code = main([str(tmp_path / "missing.pdf"), "-m", "9202235109***", "-q",
                 "--config", config_path])
    assert code == 1


def test_save_config(config_path):
    code = main(["-m", "9202235109***", "--list", "-q", "-g", "male", "-p", "3",
                 "--legacy-sequence", "--save-config", "--config", config_path])

    with open(config_path) as f:
        saved = json.load(f)
    assert code == 0
    assert saved["gender"] == "male"
    assert saved["processes"] == 3
    assert saved["legacy_sequence_range"] is True


def test_config_gender_applies(capsys, tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"gender": "female"}))

    main(["-m", "920223****08*", "--list", "-q", "--config", str(path)])

    out = capsys.readouterr().out.split()
    assert len(out) == 5000
    assert {c[6] for c in out} == set("01234")


def test_parser_defaults_leave_config_alone():
    args = create_parser().parse_args(["-m", "920223****08*"])

    assert args.processes is None
    assert args.gender is None
    assert args.legacy_sequence is None
