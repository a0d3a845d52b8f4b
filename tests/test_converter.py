import struct

from PIL import Image

from qoi_decoder.converter import qoi_to_png, main
from qoi_decoder.utils import QOI_END_MARKER


def write_qoi(path):
    body = b"\xff\x0a\x14\x1e\xff" + b"\xfe\xc8\x00\x00"
    path.write_bytes(struct.pack(">4sIIBB", b"qoif", 2, 1, 3, 0) + body + QOI_END_MARKER)
    return path


def test_qoi_to_png(tmp_path):
    qoi_path = write_qoi(tmp_path / "test.qoi")
    png_path = tmp_path / "test.png"
    qoi_to_png(qoi_path, png_path)
    with Image.open(png_path) as image:
        assert image.format == "PNG"
        assert image.size == (2, 1)
        assert image.getpixel((0, 0)) == (10, 20, 30, 255)
        assert image.getpixel((1, 0)) == (200, 0, 0, 255)


def test_cli_info(tmp_path, capsys):
    qoi_path = write_qoi(tmp_path / "test.qoi")
    assert main([str(qoi_path), "--info"]) == 0
    assert capsys.readouterr().out.strip() == "2x1 channels=3 colorspace=0"


def test_cli_convert(tmp_path):
    qoi_path = write_qoi(tmp_path / "test.qoi")
    png_path = tmp_path / "out.png"
    assert main([str(qoi_path), str(png_path)]) == 0
    with Image.open(png_path) as image:
        assert image.getpixel((1, 0)) == (200, 0, 0, 255)


def test_cli_reports_decode_errors(tmp_path, capsys):
    qoi_path = tmp_path / "broken.qoi"
    qoi_path.write_bytes(b"qoix" + bytes(10))
    assert main([str(qoi_path), str(tmp_path / "out.png")]) == 1
    assert "invalid magic" in capsys.readouterr().err
    assert not (tmp_path / "out.png").exists()


def test_cli_refuses_huge_images(tmp_path, capsys):
    qoi_path = tmp_path / "huge.qoi"
    qoi_path.write_bytes(struct.pack(">4sIIBB", b"qoif", 0xffffffff, 0xffffffff, 4, 0))
    assert main([str(qoi_path), str(tmp_path / "out.png")]) == 1
    assert "exceeds the limit" in capsys.readouterr().err


def test_cli_reports_missing_input(tmp_path, capsys):
    assert main([str(tmp_path / "missing.qoi"), str(tmp_path / "out.png")]) == 1
    assert "missing.qoi" in capsys.readouterr().err


def test_cli_reports_unknown_output_format(tmp_path, capsys):
    qoi_path = write_qoi(tmp_path / "test.qoi")
    assert main([str(qoi_path), str(tmp_path / "out.notaformat")]) == 1
    assert capsys.readouterr().err
