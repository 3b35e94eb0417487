import pytest

from db.seed import catalog_from_parsed, default_catalog, load_catalog
from utils.parser import ParserError, parse_catalog_file, parse_lines_to_json, validate_question


def test_legacy_format(legacy_format_lines):
    questions, errors = parse_lines_to_json(legacy_format_lines)
    assert errors == []
    assert questions == [
        {"question": "What is Python?", "options": ["A programming language", "A snake", "A movie"], "correct_option_id": 0},
        {"question": "What is 1+1?", "options": ["2", "1", "3"], "correct_option_id": 0},
    ]


def test_block_format(block_format_lines):
    questions, errors = parse_lines_to_json(block_format_lines)
    assert errors == []
    assert questions[0]["options"] == ["Earth", "Jupiter", "Mars"]
    assert questions[0]["correct_option_id"] == 1
    assert questions[1]["question"] == "What is H2O?"
    assert questions[1]["correct_option_id"] == 0


def test_multiline_continuation():
    questions, _ = parse_lines_to_json(["?Which river", "flows through Budapest?", "+Danube", "=Tisza"])
    assert questions[0]["question"] == "Which river flows through Budapest?"


def test_missing_correct_option_is_reported():
    questions, errors = parse_lines_to_json(["?Q1", "=a", "=b", "?Q2", "+a", "=b"])
    assert len(questions) == 1
    assert len(errors) == 1
    assert "no correct option" in errors[0]


def test_multiple_correct_options_are_reported():
    questions, errors = parse_lines_to_json(["?Q1", "+a", "+b"])
    assert questions == []
    assert "more than one correct" in errors[0]


def test_empty_input():
    with pytest.raises(ParserError):
        parse_lines_to_json(["", "   "])


def test_validate_too_few_options(sample_questions):
    q = dict(sample_questions[0], options=["only"])
    with pytest.raises(ParserError):
        validate_question(q, 1)


def test_parse_text_file(tmp_path, legacy_format_lines):
    path = tmp_path / "catalog.txt"
    path.write_text("\n".join(legacy_format_lines), encoding="utf-8")
    questions, errors = parse_catalog_file(str(path))
    assert len(questions) == 2
    assert errors == []


def test_unsupported_extension(tmp_path):
    path = tmp_path / "catalog.pdf"
    path.write_bytes(b"%PDF")
    with pytest.raises(ParserError):
        parse_catalog_file(str(path))


def test_load_catalog_from_file(tmp_path, legacy_format_lines):
    path = tmp_path / "catalog.txt"
    path.write_text("\n".join(legacy_format_lines), encoding="utf-8")
    catalog = load_catalog(str(path))
    assert [q["id"] for q in catalog] == [1, 2]
    assert catalog[0]["prompt"] == "What is Python?"
    assert catalog[0]["correct_option_index"] == 0


def test_catalog_from_parsed(sample_questions):
    catalog = catalog_from_parsed(sample_questions)
    assert catalog[1] == {
        "id": 2,
        "prompt": "What is the capital of Uzbekistan?",
        "options": ["Tashkent", "Samarkand", "Bukhara", "Khiva"],
        "correct_option_index": 0,
    }


def test_default_catalog():
    catalog = default_catalog()
    assert len(catalog) == 100
    assert len({q["id"] for q in catalog}) == 100
    assert len({q["prompt"] for q in catalog}) == 100
    assert all(0 <= q["correct_option_index"] < len(q["options"]) for q in catalog)
