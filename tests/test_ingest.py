import csv

import pytest

from bitbasis.ingest import DEFAULT_MAX_UPLOAD_BYTES, check_upload, load_csv, max_upload_bytes, read_csv_text


def test_read_csv_text_trims_and_drops_blank_rows():
    text = ' Date , Type ,Notes\n2024-01-01, buy ,"a, b"\n , ,\n2024-01-02,sell,\n'
    data = read_csv_text(text)
    assert data.headers == ["Date", "Type", "Notes"]
    assert data.rows == [
        {"Date": "2024-01-01", "Type": "buy", "Notes": "a, b"},
        {"Date": "2024-01-02", "Type": "sell", "Notes": ""},
    ]


def test_read_csv_text_keeps_embedded_newlines():
    data = read_csv_text('Date,Notes\n2024-01-01,"line one\nline two"\n')
    assert data.rows[0]["Notes"] == "line one\nline two"


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("", "CSV file appears to be empty"),
        ("   \n", "CSV file appears to be empty"),
        (",,\n1,2,3\n", "No column headers found in CSV file"),
        ("Date,Type\n", "No valid data rows found in CSV file"),
        ("Date,Type\n,\n", "No valid data rows found in CSV file"),
    ],
)
def test_read_csv_text_errors(text, message):
    with pytest.raises(csv.Error, match=message):
        read_csv_text(text)


def test_load_csv_tolerates_bom(tmp_path):
    path = tmp_path / "export.csv"
    path.write_bytes("\ufeffDate,Type\n2024-01-01,buy\n".encode("utf-8"))
    data = load_csv(path)
    assert data.headers == ["Date", "Type"]
    assert data.rows == [{"Date": "2024-01-01", "Type": "buy"}]


def test_check_upload_rejects_other_extensions(tmp_path):
    path = tmp_path / "export.xlsx"
    path.write_text("x")
    with pytest.raises(ValueError, match="Only CSV files are supported"):
        check_upload(path)


def test_check_upload_missing_file(tmp_path):
    with pytest.raises(ValueError, match="CSV file not found"):
        check_upload(tmp_path / "nope.csv")


def test_check_upload_size_limit(tmp_path, monkeypatch):
    assert max_upload_bytes() == DEFAULT_MAX_UPLOAD_BYTES
    path = tmp_path / "big.csv"
    path.write_text("Date\n" + "2024-01-01\n" * 10)

    monkeypatch.setenv("BITBASIS_MAX_UPLOAD_BYTES", "16")
    with pytest.raises(ValueError, match="File size must be less than 16 bytes"):
        check_upload(path)

    monkeypatch.setenv("BITBASIS_MAX_UPLOAD_BYTES", str(1024 * 1024))
    assert check_upload(path) == path
