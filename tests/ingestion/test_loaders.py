import json

import pandas as pd
import pytest

from shelter_outreach.ingestion.loaders import (
    FileRecordSource,
    SourceReadError,
    UnsupportedFileTypeError,
    discover_sources,
    load_snapshot,
    read_source,
)


@pytest.fixture()
def sample_dataframe():
    return pd.DataFrame(
        [
            {
                "Name": "Austin Pets Alive",
                "Email": "info@austinpetsalive.org",
                "Phone": "5125550100",
                "City": "Austin",
                "State": "TX",
            },
            {"Name": "", "Email": "", "Phone": "", "City": "", "State": ""},
            {
                "Name": "Paws, Claws & Co",
                "Email": "",
                "Phone": "0123456789",
                "City": "Tucson",
                "State": "AZ",
            },
        ]
    )


def test_csv_source_lowercases_headers_and_keeps_text(sample_dataframe, tmp_path):
    csv_path = tmp_path / "TX_shelters.csv"
    sample_dataframe.to_csv(csv_path, index=False)

    rows = FileRecordSource(csv_path).read()

    assert len(rows) == 2
    assert rows[0]["name"] == "Austin Pets Alive"
    assert rows[0]["phone"] == "5125550100"
    assert rows[1]["name"] == "Paws, Claws & Co"
    # Leading zeros survive because cells are read as text.
    assert rows[1]["phone"] == "0123456789"


def test_excel_source(sample_dataframe, tmp_path):
    excel_path = tmp_path / "shelters.xlsx"
    sample_dataframe.to_excel(excel_path, index=False)

    rows = FileRecordSource(excel_path).read()

    assert [row["email"] for row in rows] == ["info@austinpetsalive.org", ""]


def test_json_source(tmp_path):
    json_path = tmp_path / "api.json"
    json_path.write_text(json.dumps([{"Name": "Api Rescue", "Email": "api@rescue.org"}]), encoding="utf-8")

    rows = FileRecordSource(json_path).read()

    assert rows == [{"name": "Api Rescue", "email": "api@rescue.org"}]


def test_unsupported_file_extension(tmp_path):
    bad_path = tmp_path / "shelters.txt"
    bad_path.write_text("nope", encoding="utf-8")

    with pytest.raises(UnsupportedFileTypeError):
        FileRecordSource(bad_path).read()


def test_read_source_wraps_failures(tmp_path):
    with pytest.raises(SourceReadError) as excinfo:
        read_source(FileRecordSource(tmp_path / "missing.csv"))

    assert excinfo.value.source == "missing.csv"


def test_discover_sources_skips_generated_files_and_appends_seed(tmp_path):
    output_dir = tmp_path / "output"
    output_dir.mkdir()
    for name in ["TX_shelters.csv", "AZ_shelters.csv", "ALL_SHELTERS_2026-01-01.csv", "CLEAN_shelters_2026-01-01.csv"]:
        (output_dir / name).write_text("name,email\n", encoding="utf-8")
    (output_dir / "notes.json").write_text("[]", encoding="utf-8")
    seed = tmp_path / "starter-list.csv"
    seed.write_text("name,email\n", encoding="utf-8")

    sources = discover_sources(output_dir, seed)

    assert [source.name for source in sources] == ["AZ_shelters.csv", "TX_shelters.csv", "starter-list.csv"]


def test_discover_sources_ignores_missing_seed(tmp_path):
    (tmp_path / "TX_shelters.csv").write_text("name,email\n", encoding="utf-8")

    sources = discover_sources(tmp_path, tmp_path / "nope.csv")

    assert [source.name for source in sources] == ["TX_shelters.csv"]


def test_load_snapshot_reads_quoted_fields(tmp_path):
    snapshot = tmp_path / "CLEAN_shelters_2026-01-01.csv"
    snapshot.write_text(
        "Name,Email,Phone,City,State,Website,Facebook,Type,Notes\n"
        '"Paws, Claws & Co",paws@claws.org,(520) 555-0100,"Tucson",AZ,,,Rescue,"Said ""hi"""\n'
        '"Phone Only",,(512) 555-0100,"Austin",TX,,,,""',
        encoding="utf-8",
    )

    records = load_snapshot(snapshot)

    assert records[0].name == "Paws, Claws & Co"
    assert records[0].phone == "(520) 555-0100"
    assert records[0].notes == 'Said "hi"'
    assert records[1].email == ""
    assert records[1].type == "Shelter"
