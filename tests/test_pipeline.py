from datetime import date

import pytest

import uls_merge
from uls_common.config import CONFIG_ENV_KEY, Settings, load_config
from uls_common.errors import ConfigError, MissingJoinTargetError, SourceFileError
from uls_common.pipeline import run
from uls_common.schema import MERGED_SCHEMA

TODAY = date(2024, 6, 1)


def field_of(line, name):
    return line.split("|")[MERGED_SCHEMA.index(name)]


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    monkeypatch.delenv(CONFIG_ENV_KEY, raising=False)
    monkeypatch.chdir(tmp_path)


def test_single_license_end_to_end(write_extracts, dat_line):
    data_dir = write_extracts(
        {
            "AM": [dat_line("AM", ID="100", CALLSIGN="K1ABC", OPERATOR_CLASS="E")],
            "HD": [
                dat_line(
                    "HD",
                    ID="100",
                    CALLSIGN="K1ABC",
                    LICENSE_STATUS="A",
                    RADIO_SERVICE_CODE="HA",
                    GRANT_DATE="03/04/2020",
                    EXPIRED_DATE="03/04/2030",
                )
            ],
        }
    )

    result = run(Settings(data_dir=data_dir), today=TODAY)

    assert [r.callsign for r in result.records] == ["K1ABC"]
    line = result.records[0].to_line()
    assert field_of(line, "ID") == "100"
    assert field_of(line, "LICENSE_STATUS") == "A"
    assert field_of(line, "RADIO_SERVICE_CODE") == "HA"
    assert field_of(line, "GRANT_DATE") == "2020-03-04"
    assert field_of(line, "EXPIRED_DATE") == "2030-03-04"


def test_expired_license_never_reaches_store(write_extracts, dat_line):
    data_dir = write_extracts(
        {
            "AM": [dat_line("AM", ID="1", CALLSIGN="K1OLD"), dat_line("AM", ID="2", CALLSIGN="K1NEW")],
            "CO": [dat_line("CO", ID="1", CALLSIGN="K1OLD", DESCRIPTION="stale")],
            "EN": [dat_line("EN", ID="1", CALLSIGN="K1OLD", ENTITY_NAME="GONE")],
            "HD": [
                dat_line("HD", ID="1", CALLSIGN="K1OLD", EXPIRED_DATE="01/01/2020"),
                dat_line("HD", ID="2", CALLSIGN="K1NEW", EXPIRED_DATE="01/01/2030"),
            ],
        }
    )

    result = run(Settings(data_dir=data_dir), today=TODAY)

    assert "1" not in result.store
    assert "1" in result.exclusions.expired
    assert [r.key for r in result.records] == ["2"]


def test_cancelled_id_excludes_mismatching_records_too(write_extracts, dat_line):
    # A cancelled ID is filtered before merge, so its bad CO record is never checked.
    data_dir = write_extracts(
        {
            "AM": [dat_line("AM", ID="1", CALLSIGN="K1A")],
            "CO": [dat_line("CO", ID="1", CALLSIGN="K9Z")],
            "HD": [dat_line("HD", ID="1", CALLSIGN="K1A", CANCELLATION_DATE="02/02/2022")],
        }
    )

    result = run(Settings(data_dir=data_dir), today=TODAY)

    assert result.records == []


def test_orphan_en_record_is_dropped(write_extracts, dat_line):
    data_dir = write_extracts(
        {
            "AM": [dat_line("AM", ID="1", CALLSIGN="K1A")],
            "EN": [dat_line("EN", ID="77", CALLSIGN="K7Z", ENTITY_NAME="NOBODY")],
        }
    )

    result = run(Settings(data_dir=data_dir), today=TODAY)

    assert list(result.store) == ["1"]
    assert result.store.stats.skipped == {"EN": 1}


def test_orphan_co_record_aborts(write_extracts, dat_line):
    data_dir = write_extracts(
        {
            "AM": [dat_line("AM", ID="1", CALLSIGN="K1A")],
            "CO": [dat_line("CO", ID="2", CALLSIGN="K2B")],
        }
    )

    with pytest.raises(MissingJoinTargetError):
        run(Settings(data_dir=data_dir), today=TODAY)


def test_missing_input_file_aborts(write_extracts, dat_line):
    data_dir = write_extracts({"AM": [dat_line("AM", ID="1", CALLSIGN="K1A")]})
    (data_dir / "EN.dat").unlink()

    with pytest.raises(SourceFileError):
        run(Settings(data_dir=data_dir), today=TODAY)


def test_as_of_from_settings_is_used(write_extracts, dat_line):
    data_dir = write_extracts(
        {
            "AM": [dat_line("AM", ID="1", CALLSIGN="K1A")],
            "HD": [dat_line("HD", ID="1", CALLSIGN="K1A", EXPIRED_DATE="01/01/2025")],
        }
    )

    assert run(Settings(data_dir=data_dir, as_of=date(2024, 12, 31))).records
    assert not run(Settings(data_dir=data_dir, as_of=date(2025, 1, 2))).records


def test_load_config_resolves_relative_paths(tmp_path):
    config_path = tmp_path / "uls_merge.yaml"
    config_path.write_text(
        "data_dir: ./extract\nas_of: 2024-01-31\noutput_format: CSV\nfiles:\n  hd: HD_week.dat\n",
        encoding="utf-8",
    )

    settings = load_config(config_path)

    assert settings.data_dir == (tmp_path / "extract").resolve()
    assert settings.as_of == date(2024, 1, 31)
    assert settings.output_format == "csv"
    assert settings.source_path("HD") == (tmp_path / "extract").resolve() / "HD_week.dat"
    assert settings.files["AM"] == "AM.dat"


@pytest.mark.parametrize(
    "body",
    [
        "output_format: xml\n",
        "as_of: yesterday\n",
        "files:\n  ZZ: ZZ.dat\n",
        "- just\n- a list\n",
    ],
)
def test_load_config_rejects_bad_values(tmp_path, body):
    config_path = tmp_path / "bad.yaml"
    config_path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(config_path)


def test_cli_writes_sorted_records(write_extracts, dat_line, capsys):
    data_dir = write_extracts(
        {
            "AM": [
                dat_line("AM", ID="1", CALLSIGN="W0AA"),
                dat_line("AM", ID="2", CALLSIGN="N1A/M"),
                dat_line("AM", ID="3", CALLSIGN="N1A"),
            ],
        }
    )

    code = uls_merge.main([str(data_dir), "--as-of", "2024-06-01"])

    out = capsys.readouterr().out
    assert code == 0
    assert out.endswith("\n")
    assert [field_of(line, "CALLSIGN") for line in out.splitlines()] == ["N1A", "N1A/M", "W0AA"]


def test_cli_reports_mismatch_with_exit_code(write_extracts, dat_line, capsys):
    data_dir = write_extracts(
        {
            "AM": [dat_line("AM", ID="X", CALLSIGN="W1AW")],
            "CO": [dat_line("CO", ID="X", CALLSIGN="W1AA")],
        }
    )

    code = uls_merge.main([str(data_dir)])

    assert code == 1
    assert capsys.readouterr().out == ""


def test_cli_rejects_bad_as_of(write_extracts):
    data_dir = write_extracts({})
    assert uls_merge.main([str(data_dir), "--as-of", "06/01/2024"]) == 1


def test_cli_uses_config_from_environment(write_extracts, dat_line, monkeypatch, capsys, tmp_path):
    write_extracts({"AM": [dat_line("AM", ID="1", CALLSIGN="K1A")]})
    config_path = tmp_path / "custom.yaml"
    config_path.write_text(f"data_dir: {tmp_path}\noutput_format: csv\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_KEY, str(config_path))

    code = uls_merge.main([])

    out = capsys.readouterr().out
    assert code == 0
    assert out.splitlines()[0].startswith("ID,CALLSIGN,")


def test_cli_defaults_to_current_directory(write_extracts, dat_line, capsys):
    write_extracts({"AM": [dat_line("AM", ID="1", CALLSIGN="K1A")]})

    assert uls_merge.main([]) == 0
    assert field_of(capsys.readouterr().out, "CALLSIGN") == "K1A"


def test_cli_names_file_and_record_for_bad_date(write_extracts, dat_line, caplog, capsys):
    bad_line = dat_line("HD", ID="1", CALLSIGN="K1A", GRANT_DATE="1/5/2020")
    data_dir = write_extracts({"AM": [dat_line("AM", ID="1", CALLSIGN="K1A")], "HD": [bad_line]})

    code = uls_merge.main([str(data_dir), "--as-of", "2024-06-01"])

    assert code == 1
    assert capsys.readouterr().out == ""
    errors = [r.getMessage() for r in caplog.records if r.levelname == "ERROR"]
    assert len(errors) == 1
    assert "HD.dat" in errors[0]
    assert bad_line in errors[0]


def test_bad_expiry_date_aborts_run_with_source_file(write_extracts, dat_line):
    data_dir = write_extracts(
        {
            "AM": [dat_line("AM", ID="1", CALLSIGN="K1A")],
            "HD": [dat_line("HD", ID="1", CALLSIGN="K1A", EXPIRED_DATE="1/1/2020")],
        }
    )

    with pytest.raises(SourceFileError) as excinfo:
        run(Settings(data_dir=data_dir), today=TODAY)

    assert excinfo.value.path == str(data_dir / "HD.dat")
    assert "EXPIRED_DATE of HD record 1" in str(excinfo.value)


def test_cli_output_keeps_latin1_bytes(write_extracts, dat_line, capsysbinary):
    data_dir = write_extracts({"AM": [dat_line("AM", ID="1", CALLSIGN="k1a", TRUSTEE_NAME="straße µ ÿ")]})

    code = uls_merge.main([str(data_dir), "--as-of", "2024-06-01"])

    out = capsysbinary.readouterr().out
    assert code == 0
    assert "STRAßE µ ÿ".encode("latin-1") in out
    assert out.decode("latin-1").split("|")[MERGED_SCHEMA.index("CALLSIGN")] == "K1A"


def test_config_path_that_is_a_directory_is_rejected(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_cli_reports_unreadable_config(write_extracts, tmp_path):
    write_extracts({})
    config_dir = tmp_path / "conf.yaml"
    config_dir.mkdir()

    assert uls_merge.main(["--config", str(config_dir)]) == 1
