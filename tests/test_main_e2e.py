import pytest

from lz77 import LZ77


def test_compress_and_decompress_roundtrip(
        sample_file, tmp_path, no_progress, m
):
    comp_path = tmp_path / "sample.lz"
    assert m.compress_file(str(sample_file), str(comp_path)) == 0
    assert comp_path.exists()
    assert comp_path.stat().st_size < sample_file.stat().st_size

    out_path = tmp_path / "sample.out"
    assert m.decompress_file(str(comp_path), str(out_path)) == 0
    assert out_path.read_bytes() == sample_file.read_bytes()
    assert no_progress


def test_default_output_name(sample_file, m, capsys):
    assert m.compress_file(str(sample_file), None, hide_progress=True) == 0
    assert (sample_file.parent / (sample_file.name + ".lz77")).exists()
    assert "Compression ratio" in capsys.readouterr().out


def test_raw_mode_via_main(sample_file, tmp_path, m, capsys):
    comp_path = tmp_path / "raw.lz"
    out_path = tmp_path / "raw.out"
    rc = m.main(["c", str(sample_file), "-o", str(comp_path), "-r", "-P",
                 "-d", "64", "-l", "8"])
    assert rc == 0
    assert comp_path.read_bytes() == LZ77(64, 8).compress(
        sample_file.read_bytes()
    )
    rc = m.main(["d", str(comp_path), "-o", str(out_path), "-r", "-P"])
    assert rc == 0
    assert out_path.read_bytes() == sample_file.read_bytes()


def test_framed_keeps_trailing_zero(tmp_path, m):
    src = tmp_path / "zero.bin"
    src.write_bytes(b"abc\x00")
    comp_path = tmp_path / "zero.lz"
    out_path = tmp_path / "zero.out"
    assert m.compress_file(str(src), str(comp_path), hide_progress=True) == 0
    assert m.decompress_file(str(comp_path), str(out_path),
                             hide_progress=True) == 0
    assert out_path.read_bytes() == b"abc\x00"


def test_raw_trailing_zero_warns(tmp_path, m, capsys):
    src = tmp_path / "zero.bin"
    src.write_bytes(b"abc\x00")
    assert m.compress_file(str(src), str(tmp_path / "z.lz"), raw=True,
                           hide_progress=True) == 0
    assert "[!]" in capsys.readouterr().out


def test_errors_are_reported(tmp_path, m, capsys):
    missing = tmp_path / "missing.bin"
    assert m.compress_file(str(missing), None, hide_progress=True) == 1
    assert "[!]" in capsys.readouterr().out

    assert m.compress_file(str(missing), None, dictionary_size=5000,
                           hide_progress=True) == 2

    bad = tmp_path / "bad.lz"
    bad.write_bytes(b"\x00\x00\x61\x00")
    out = tmp_path / "bad.out"
    assert m.decompress_file(str(bad), str(out), raw=True,
                             hide_progress=True) == 1
    assert not out.exists()
    assert "Cannot decompress" in capsys.readouterr().out


@pytest.mark.parametrize("framed", [True, False])
def test_inspect_lists_tokens(tmp_path, m, capsys, framed):
    src = tmp_path / "run.txt"
    src.write_bytes(b"aaaaaa")
    comp_path = tmp_path / "run.lz"
    m.compress_file(str(src), str(comp_path), raw=not framed,
                    hide_progress=True)
    capsys.readouterr()
    assert m.main(["inspect", str(comp_path)]) == 0
    out = capsys.readouterr().out
    assert ("Framed stream" in out) == framed
    assert "dist=   3  len= 3  lit=0x00" in out
    assert "lit='a'" in out
