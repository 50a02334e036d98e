import pytest

from csv_converter.errors import EmptyResult, InvalidFormat, ParseFailure
from csv_converter.parser import coerce_value, detect_delimiter, parse_csv_bytes, validate_upload


def test_parse_scenario_with_integer_coercion():
    result = parse_csv_bytes(b"name,age\nAlice,30\nBob,25\n")
    assert result.dataset.columns == ("name", "age")
    assert list(result.dataset.records) == [
        {"name": "Alice", "age": 30},
        {"name": "Bob", "age": 25},
    ]
    assert result.report.summary.rows == 2
    assert result.report.summary.warnings == 0


def test_record_keys_follow_header_order():
    raw = b"zeta,alpha,mid\n1,2,3\n4,5,6\n7,8,9\n"
    result = parse_csv_bytes(raw)
    assert len(result.dataset.records) == 3
    for record in result.dataset.records:
        assert list(record) == ["zeta", "alpha", "mid"]


def test_coercion_off_keeps_strings():
    result = parse_csv_bytes(b"name,age\nAlice,30\n", coerce_numbers=False)
    assert result.dataset.records[0] == {"name": "Alice", "age": "30"}


@pytest.mark.parametrize("value, expected", [
    ("30", 30),
    ("0", 0),
    ("-12", -12),
    ("007", "007"),
    ("-0", "-0"),
    ("+5", "+5"),
    ("3.5", "3.5"),
    ("", ""),
    ("\u0663", "\u0663"),
    ("999999999999999", 999999999999999),
    ("-999999999999999", -999999999999999),
    ("4111111111111111", "4111111111111111"),
    ("12345678901234567890", "12345678901234567890"),
])
def test_coerce_value(value, expected):
    assert coerce_value(value) == expected
    assert type(coerce_value(value)) is type(expected)


def test_blank_lines_are_skipped():
    raw = b"\n\nname,age\n\nAlice,30\n\n   \nBob,25\n\n"
    result = parse_csv_bytes(raw)
    assert [r["name"] for r in result.dataset.records] == ["Alice", "Bob"]


def test_crlf_and_bom_are_handled():
    raw = "\ufeffname,age\r\nAlice,30\r\n".encode("utf-8")
    result = parse_csv_bytes(raw)
    assert result.dataset.columns == ("name", "age")
    assert result.dataset.records[0] == {"name": "Alice", "age": 30}


def test_short_rows_are_padded_with_none():
    result = parse_csv_bytes(b"a,b,c\n1,2,3\n4\n", delimiter=",")
    assert result.dataset.records[1] == {"a": 4, "b": None, "c": None}
    (item,) = result.report.warnings
    assert item.issue == "row_too_short"
    assert item.line == 3
    assert item.column == "b"


def test_long_rows_are_truncated_by_default():
    result = parse_csv_bytes(b"a,b\n1,2\n3,4,5\n", delimiter=",")
    assert result.dataset.records[1] == {"a": 3, "b": 4}
    (item,) = result.report.warnings
    assert item.issue == "row_too_long"
    assert item.action == "truncated_to_2"


def test_long_rows_can_be_rejected():
    with pytest.raises(ParseFailure, match="Line 3 has 3 fields"):
        parse_csv_bytes(b"a,b\n1,2\n3,4,5\n", delimiter=",", long_rows="reject")


def test_unknown_long_row_policy():
    with pytest.raises(ValueError):
        parse_csv_bytes(b"a\n1\n", long_rows="merge")


def test_header_only_is_empty_result():
    with pytest.raises(EmptyResult) as excinfo:
        parse_csv_bytes(b"name,age\n")
    assert excinfo.value.dataset.columns == ("name", "age")
    assert excinfo.value.dataset.records == ()
    assert not isinstance(excinfo.value, ParseFailure)


def test_no_header_is_parse_failure():
    with pytest.raises(ParseFailure, match="no header"):
        parse_csv_bytes(b"\n\n")


def test_duplicate_header_is_parse_failure():
    with pytest.raises(ParseFailure, match="Duplicate"):
        parse_csv_bytes(b"a,a\n1,2\n", delimiter=",")


def test_empty_header_name_is_parse_failure():
    with pytest.raises(ParseFailure, match="no name"):
        parse_csv_bytes(b"a,,c\n1,2,3\n", delimiter=",")


def test_unterminated_quote_is_parse_failure():
    with pytest.raises(ParseFailure, match="Malformed"):
        parse_csv_bytes(b'name,age\n"Alice,30\n', delimiter=",")


def test_invalid_utf8_names_detected_encoding():
    raw = "name,city\nPaul,Montréal\nZoë,Zürich\n".encode("utf-16")
    with pytest.raises(ParseFailure, match="not valid UTF-8"):
        parse_csv_bytes(raw)


def test_quoted_fields_keep_delimiters_and_newlines():
    raw = b'name,note\n"Smith, Jo","line one\nline two"\n'
    result = parse_csv_bytes(raw, delimiter=",")
    assert result.dataset.records[0] == {"name": "Smith, Jo", "note": "line one\nline two"}


def test_semicolon_delimiter_is_sniffed():
    raw = b"name;age\nAlice;30\nBob;25\n"
    assert detect_delimiter(raw.decode()) == ";"
    result = parse_csv_bytes(raw)
    assert result.report.summary.delimiter == ";"
    assert result.dataset.records[1] == {"name": "Bob", "age": 25}


def test_single_column_falls_back_to_comma():
    assert detect_delimiter("name\nAlice\nBob\n") == ","


@pytest.mark.parametrize("filename, content_type", [
    ("data.csv", "text/csv"),
    ("DATA.CSV", "application/octet-stream"),
    ("data.txt", "text/csv"),
    ("data.txt", "text/csv; charset=utf-8"),
    ("data.csv", None),
])
def test_validate_upload_accepts(filename, content_type):
    validate_upload(filename, content_type)


@pytest.mark.parametrize("filename, content_type", [
    ("data.txt", "text/plain"),
    ("report.xlsx", "application/vnd.ms-excel"),
    (None, None),
])
def test_validate_upload_rejects(filename, content_type):
    with pytest.raises(InvalidFormat):
        validate_upload(filename, content_type)


def test_long_identifiers_stay_strings():
    result = parse_csv_bytes(b"card,name\n4111111111111111,Al\n12345678901234567890,Bo\n")
    assert [r["card"] for r in result.dataset.records] == ["4111111111111111", "12345678901234567890"]
