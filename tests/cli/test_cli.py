import pytest

from property_matrix import cli
from property_matrix.core.generate_sample_data import generate_sample_data


@pytest.fixture(scope="module")
def workbook(tmp_path_factory):
    return generate_sample_data(tmp_path_factory.mktemp("cli"), seed=11)


def test_sample_command_writes_workbook(tmp_path, capsys) -> None:
    assert cli.main(["sample", "--output-dir", str(tmp_path), "--seed", "3"]) == 0

    assert (tmp_path / "society_sample.xlsx").exists()
    assert "Wrote sample workbook" in capsys.readouterr().out


def test_years_command(workbook, capsys) -> None:
    assert cli.main(["years", "--workbook", str(workbook)]) == 0

    out = capsys.readouterr().out.splitlines()
    assert out == ["2024  FY 2024-25", "2023  FY 2023-24"]


def test_amc_command_exports_xlsx(workbook, tmp_path, capsys) -> None:
    output = tmp_path / "amc.xlsx"

    assert cli.main(["amc", "--workbook", str(workbook), "--year", "2023", "--output", str(output)]) == 0

    out = capsys.readouterr().out
    assert "AMC matrix FY 2023-24: 3 blocks x 8 flats" in out
    assert "Z-999" in out      # orphan receipt is reported
    assert output.exists()


def test_amc_command_with_plots(workbook, tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "REPORTS_FIGURES_DIR", tmp_path / "figures")

    assert cli.main([
        "amc", "--workbook", str(workbook), "--format", "csv",
        "--output", str(tmp_path / "amc.csv"), "--plot",
    ]) == 0

    assert (tmp_path / "amc.csv").exists()
    assert (tmp_path / "figures" / "amc_matrix_2024.png").exists()
    assert (tmp_path / "figures" / "amc_collection_2024.png").exists()


def test_stickers_command(workbook, tmp_path, capsys) -> None:
    output = tmp_path / "stickers.csv"

    assert cli.main(["stickers", "--workbook", str(workbook), "--format", "csv", "--output", str(output)]) == 0

    assert "Sticker matrix: 3 blocks x 8 flats" in capsys.readouterr().out
    assert output.read_text(encoding="utf-8").startswith("Export,Car Sticker Assignment Matrix")


def test_sample_flag_generates_missing_workbook(tmp_path, monkeypatch, capsys) -> None:
    sample = tmp_path / "data" / "society_sample.xlsx"
    monkeypatch.setattr(cli, "SAMPLE_WORKBOOK", sample)

    assert cli.main(["years", "--sample"]) == 0

    assert sample.exists()
    assert "FY 2024-25" in capsys.readouterr().out


def test_missing_workbook_returns_error(tmp_path, capsys) -> None:
    code = cli.main(["amc", "--workbook", str(tmp_path / "missing.xlsx")])

    assert code == 1
    err = capsys.readouterr().err
    assert "AMC_RECEIPTS_FETCH_ERROR" in err
    assert "missing.xlsx" in err


def test_workbook_and_sample_are_exclusive(workbook) -> None:
    with pytest.raises(SystemExit):
        cli.main(["amc", "--sample", "--workbook", str(workbook)])


def test_master_command(workbook, capsys) -> None:
    assert cli.main(["master", "--workbook", str(workbook)]) == 0

    out = capsys.readouterr().out.splitlines()
    assert out[0] == "Blocks: A, B, C"
    assert out[1] == "  A: 8 flats (101, 102, 103, 104, 201, 202, 203, 204)"
    assert out[-1].startswith("Last updated: 2025-03-")


def test_master_command_without_credentials_returns_error(monkeypatch, capsys) -> None:
    for key in ("GOOGLE_SHEETS_API_KEY", "NEXT_PUBLIC_GOOGLE_SHEETS_API_KEY"):
        monkeypatch.delenv(key, raising=False)

    assert cli.main(["master"]) == 1
    assert "MISSING_API_KEY" in capsys.readouterr().err
