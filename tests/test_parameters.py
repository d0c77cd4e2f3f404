import pathlib
import pytest

from strslip.calculator import NULL_CALCULATOR, ParameterName, SimpleSTRModelCalculator, STRModelParameter
from strslip.exceptions import InputError, ModelFileError
from strslip.parameters import PARAMETER_FILE_HEADER, load_calculators, load_parameter_file

TEST_MODEL = pathlib.Path(__file__).parent / "data" / "str_model.tsv"


def _entries(unit_length: str, names=("pi", "tau", "del", "ins")) -> list[str]:
    values = {"pi": "0.99\t3.0\t-0.1", "tau": "0.5\t-1.0\t0.05", "del": "0.9\t0.5\t0.0", "ins": "0.9\t-0.5\t0.0"}
    return [f"{unit_length}\t{n}\t{values[n]}" for n in names]


def _write_model(tmp_path: pathlib.Path, lines: list[str], header: bool = True) -> pathlib.Path:
    path = tmp_path / "model.tsv"
    path.write_text("\n".join(([PARAMETER_FILE_HEADER] if header else []) + lines) + "\n")
    return path


def test_load_parameter_file():
    parameters, max_unit_length = load_parameter_file(TEST_MODEL)
    assert max_unit_length == 2
    assert len(parameters) == 8
    assert parameters[(1, ParameterName.PI)] == STRModelParameter(0.99, 3.0, -0.15)
    assert parameters[(2, ParameterName.INS)] == STRModelParameter(0.8, -0.4, 0.0)


def test_load_calculators():
    calculators = load_calculators(TEST_MODEL)
    assert len(calculators) == 3
    assert calculators[0] is NULL_CALCULATOR
    assert isinstance(calculators[1], SimpleSTRModelCalculator)
    assert isinstance(calculators[2], SimpleSTRModelCalculator)
    assert calculators[2].tau == STRModelParameter(0.4, -1.0, 0.03)


def test_load_calculators_no_file():
    assert load_calculators(None) == (NULL_CALCULATOR,)


def test_load_plus_notation(tmp_path):
    path = _write_model(tmp_path, [*_entries("1"), *_entries("2"), *_entries("3+")])
    calculators = load_calculators(path)
    assert len(calculators) == 4
    assert calculators[0].is_null
    assert all(not c.is_null for c in calculators[1:])


def test_load_case_insensitive(tmp_path):
    path = tmp_path / "model.tsv"
    path.write_text(
        PARAMETER_FILE_HEADER.upper() + "\n" +
        "\n".join(f"1\t{n.upper()}\t0.5\t0.0\t0.0" for n in ("pi", "tau", "del", "ins")) + "\n")
    parameters, max_unit_length = load_parameter_file(path)
    assert max_unit_length == 1
    assert parameters[(1, ParameterName.DEL)] == STRModelParameter(0.5, 0.0, 0.0)


def test_load_without_header(tmp_path):
    _, max_unit_length = load_parameter_file(_write_model(tmp_path, _entries("1"), header=False))
    assert max_unit_length == 1


@pytest.mark.parametrize("lines,message", [
    (["unit\tparam\tmax\tintercept\tcoef", *_entries("1")], "unexpected header content"),
    (["1\tpi\t0.9\t1.0", *_entries("1", ("tau", "del", "ins"))], "we expect 5 values per line but we found 4"),
    (["1a\tpi\t0.9\t1.0\t0.0"], "unit_length values must be a positive integer: 1a"),
    (["0\tpi\t0.9\t1.0\t0.0"], "unit_length must be greater than 0"),
    (["1\tfoo\t0.9\t1.0\t0.0"], "unknown parameter: foo"),
    (["1\tpi\tabc\t1.0\t0.0"], "invalid double string"),
    (["1\tpi\t0\t1.0\t0.0"], "invalid maximum value"),
    (["1\tpi\t1.5\t1.0\t0.0"], "invalid maximum value"),
    (["1\tpi\tnan\t1.0\t0.0"], "invalid maximum value"),
    (["1\tpi\t0.9\tinf\t0.0"], "invalid intercept value"),
    (["1\tpi\t0.9\t1.0\tNaN"], "invalid repeat count coef value"),
    ([*_entries("1"), "1\tpi\t0.5\t1.0\t0.0"], "repeated entry: (1, PI)"),
    ([], "no entries found in file"),
    (["# only a comment", ""], "no entries found in file"),
    ([*_entries("1"), *_entries("2+"), *_entries("3+")], "more than one maximum unit length declared: 2 and 3"),
    ([*_entries("1"), *_entries("2", ("pi", "tau", "del"))], "missing: (2, INS)"),
    ([*_entries("1"), *_entries("3")], "missing: (2, PI)"),
    (
        [*_entries("1"), *_entries("2"), *_entries("3+", ("pi", "tau")), *_entries("3", ("del", "ins")),
         *_entries("4")],
        "the maximum unit length found (4) is not the one declared with a '+' (3)",
    ),
])
def test_load_invalid(tmp_path, lines: list[str], message: str):
    path = _write_model(tmp_path, lines)
    with pytest.raises(ModelFileError) as e:
        load_parameter_file(path)

    assert message in str(e.value)
    assert e.value.path == path
    assert str(path) in str(e.value)


def test_load_invalid_line_context(tmp_path):
    path = _write_model(tmp_path, [*_entries("1"), "2\tfoo\t0.9\t1.0\t0.0"])
    with pytest.raises(ModelFileError) as e:
        load_parameter_file(path)
    assert e.value.line_no == 6
    assert e.value.line == "2\tfoo\t0.9\t1.0\t0.0"


def test_load_missing_file(tmp_path):
    with pytest.raises(InputError):
        load_parameter_file(tmp_path / "does_not_exist.tsv")


def test_load_undecodable_file(tmp_path):
    path = tmp_path / "model.tsv"
    path.write_bytes(f"{PARAMETER_FILE_HEADER}\n# caf\xe9\n".encode("latin-1") + "\n".join(_entries("1")).encode())
    with pytest.raises(ModelFileError) as e:
        load_parameter_file(path)
    assert e.value.path == path


def test_load_trailing_empty_fields(tmp_path):
    path = _write_model(tmp_path, [f"{line}\t" for line in _entries("1")] + [f"{line}\t\t" for line in _entries("2")])
    table, max_unit_length = load_parameter_file(path)
    assert max_unit_length == 2
    assert table[(1, ParameterName.PI)] == STRModelParameter(0.99, 3.0, -0.1)

    # empty fields inside the line still count
    bad = _write_model(tmp_path, ["1\tpi\t0.99\t\t3.0\t-0.1", *_entries("1", names=("tau", "del", "ins"))])
    with pytest.raises(ModelFileError, match="we expect 5 values per line but we found 6"):
        load_parameter_file(bad)
