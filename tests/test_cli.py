import json

from click.testing import CliRunner

from ordinal.cli import ordinal_cli

from pe_builder import build_pe


def _invoke(*args):
    return CliRunner().invoke(ordinal_cli, [str(a) for a in args])


def test_table_output(sample_dll):
    result = _invoke(sample_dll)
    assert result.exit_code == 0, result.output
    assert "AddNumbers" in result.output
    assert "_Sleep@4" in result.output


def test_json_output(sample_dll, sample_header):
    result = _invoke(sample_dll, "--json", "--header", sample_header)
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    functions = {f["name"]: f for f in data["image"]["functions"]}
    assert functions["AddNumbers"]["return_type"] == "int"
    assert functions["_Sleep@4"]["param_types"] == ["unknown"]


def test_filter_option(sample_dll):
    result = _invoke(sample_dll, "--json", "--filter", "version")
    data = json.loads(result.stdout)
    assert [f["name"] for f in data["image"]["functions"]] == ["GetVersionInfo"]


def test_no_decoration_option(sample_dll):
    result = _invoke(sample_dll, "--json", "--no-decoration")
    data = json.loads(result.stdout)
    assert all(f["param_types"] == [] for f in data["image"]["functions"])


def test_include_unnamed_option(tmp_path):
    path = build_pe(["Named"], function_count=3, name_ordinals=[0]).save(tmp_path / "u.dll")
    result = _invoke(path, "--json", "--include-unnamed")
    names = [f["name"] for f in json.loads(result.stdout)["image"]["functions"]]
    assert names == ["Named", "Ordinal_2", "Ordinal_3"]


def test_snippets(sample_dll, sample_header):
    result = _invoke(sample_dll, "--header", sample_header, "--snippets")
    assert result.exit_code == 0, result.output
    assert "Shutdown(); // void Shutdown()" in result.output


def test_output_def_file(sample_dll, tmp_path):
    out = tmp_path / "sample.def"
    result = _invoke(sample_dll, "--output", out)
    assert result.exit_code == 0, result.output
    text = out.read_text(encoding="utf-8")
    assert text.startswith("LIBRARY sample.dll\nEXPORTS\n")
    assert "    AddNumbers @1" in text


def test_output_symbol_list(sample_dll, tmp_path):
    out = tmp_path / "names.txt"
    result = _invoke(sample_dll, "--json", "--output", out)
    assert result.exit_code == 0, result.output
    assert out.read_text(encoding="utf-8").splitlines()[0] == "AddNumbers"


def test_no_exports_is_success(tmp_path):
    path = build_pe(["Ignored"], exports=False).save(tmp_path / "app.exe")
    result = _invoke(path, "--json")
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["image"]["functions"] == []


def test_not_a_pe_image_exits_1(tmp_path):
    path = tmp_path / "readme.txt"
    path.write_text("plain text")
    result = _invoke(path)
    assert result.exit_code == 1
    assert "dos_header" in result.output


def test_truncated_image_exits_1(tmp_path):
    path = build_pe(["A"]).truncate(0x90).save(tmp_path / "cut.dll")
    result = _invoke(path)
    assert result.exit_code == 1
    assert "truncated" in result.output


def test_missing_config_exits_1(sample_dll, tmp_path):
    result = _invoke(sample_dll, "--config", tmp_path / "absent.toml")
    assert result.exit_code == 1


def test_config_file_applies(sample_dll, tmp_path):
    cfg = tmp_path / "ordinal.toml"
    cfg.write_text("[ordinal]\ndecoration_heuristic = false\n")
    result = _invoke(sample_dll, "--json", "--config", cfg)
    data = json.loads(result.stdout)
    assert data["image"]["functions"][2]["param_types"] == []


def test_missing_path_is_usage_error(tmp_path):
    result = _invoke(tmp_path / "missing.dll")
    assert result.exit_code == 2


def test_json_output_format_from_config(sample_dll, tmp_path):
    cfg = tmp_path / "ordinal.toml"
    cfg.write_text('[ordinal]\noutput_format = "json"\n')
    result = _invoke(sample_dll, "--config", cfg)
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["export_count"] == 4


def test_invalid_config_exits_1(sample_dll, tmp_path):
    cfg = tmp_path / "ordinal.toml"
    cfg.write_text("[ordinal]\nmax_file_size = -1\n")
    result = _invoke(sample_dll, "--config", cfg)
    assert result.exit_code == 1
    assert "max_file_size" in result.output
