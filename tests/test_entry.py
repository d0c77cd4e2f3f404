import orjson
import pathlib
import pysam

from strslip.entry import main

TEST_MODEL = pathlib.Path(__file__).parent / "data" / "str_model.tsv"

REF_SEQ = "GGAG" + "T" + "CA" * 8 + "GGATCCTAGGCATTGACGT"

VCF_TEXT = "\n".join((
    "##fileformat=VCFv4.2",
    f"##contig=<ID=chr1,length={len(REF_SEQ)}>",
    '##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">',
    '##FORMAT=<ID=AD,Number=R,Type=Integer,Description="Allelic depths">',
    "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tsample1",
    "chr1\t5\t.\tT\tTCA\t50\tPASS\t.\tGT:AD\t0/1:10,5",
    "chr1\t30\t.\tG\tC\t50\tPASS\t.\tGT:AD\t0/1:7,6",
)) + "\n"


def _write_inputs(tmp_path: pathlib.Path) -> tuple[pathlib.Path, pathlib.Path]:
    fasta = tmp_path / "ref.fa"
    fasta.write_text(f">chr1\n{REF_SEQ}\n")
    pysam.faidx(str(fasta))

    vcf = tmp_path / "calls.vcf"
    vcf.write_text(VCF_TEXT)

    return fasta, vcf


def test_validate_model(capsys):
    assert main(["validate-model", str(TEST_MODEL)]) == 0
    assert capsys.readouterr().out.splitlines() == ["0\tnull", "1\tsimple", "2\tsimple"]


def test_validate_model_bad_file(tmp_path):
    bad = tmp_path / "bad.tsv"
    bad.write_text("not a header\n")
    assert main(["validate-model", str(bad)]) == 1
    assert main(["validate-model", str(tmp_path / "missing.tsv")]) == 1

    undecodable = tmp_path / "undecodable.tsv"
    undecodable.write_bytes(b"\xff\xfeunit_length\n")
    assert main(["validate-model", str(undecodable)]) == 1


def test_matrix(capsys):
    assert main(["matrix", str(TEST_MODEL), "--unit-length", "2", "--min-count", "3", "--max-count", "7"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 6
    assert lines[0].split("\t")[1:] == ["3", "4", "5", "6", "7"]
    for line, rc in zip(lines[1:], range(3, 8)):
        row = line.split("\t")
        assert row[0] == str(rc)
        assert len(row) == 6
        assert all(float(v) <= 0.0 for v in row[1:])


def test_matrix_bad_args():
    assert main(["matrix", str(TEST_MODEL), "-u", "0"]) == 1
    assert main(["matrix", str(TEST_MODEL), "-u", "1", "--min-count", "5", "--max-count", "2"]) == 1


def test_annotate(tmp_path):
    fasta, vcf = _write_inputs(tmp_path)
    out = tmp_path / "out.vcf"
    log = tmp_path / "str.jsonl"

    assert main([
        "annotate", str(vcf),
        "--ref", str(fasta),
        "--output", str(out),
        "--str-model", str(TEST_MODEL),
        "--str-log", str(log),
    ]) == 0

    text = out.read_text()
    assert "##INFO=<ID=STRUnit" in text

    records = [line.split("\t") for line in text.splitlines() if not line.startswith("#")]
    assert len(records) == 2
    assert records[0][1] == "5"
    assert "STRUnit=CA" in records[0][7]
    assert records[1][1] == "30"
    assert "STRUnit" not in records[1][7]

    logged = [orjson.loads(line) for line in log.read_text().splitlines()]
    assert len(logged) == 1
    assert logged[0]["unit"] == "CA"
    assert logged[0]["cns"] == [8, 9]
    assert logged[0]["ad"] == [10, 5]


def test_annotate_missing_inputs(tmp_path):
    fasta, vcf = _write_inputs(tmp_path)
    assert main(["annotate", str(vcf), "--ref", str(tmp_path / "missing.fa")]) == 1
    assert main(["annotate", str(tmp_path / "missing.vcf"), "--ref", str(fasta)]) == 1
    assert main(["annotate", str(vcf), "--ref", str(fasta), "--str-max-unit", "0"]) == 1


def test_annotate_bad_window(tmp_path):
    fasta, vcf = _write_inputs(tmp_path)
    out = tmp_path / "out.vcf"
    assert main(["annotate", str(vcf), "--ref", str(fasta), "--output", str(out), "--window", "-1"]) == 1
    assert not out.exists()
