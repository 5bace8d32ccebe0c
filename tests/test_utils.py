import os

import pytest

from wizperiph.utils import MarkedSpan, SpansConfigError, mtime_ms, parse_colored_spans


def _write(tmp_path, text):
    path = tmp_path / "mem-spans.txt"
    path.write_text(text)
    return path


def test_length_form_with_description(tmp_path):
    path = _write(tmp_path, "D000,16,ff0000,Stack\n")
    assert parse_colored_spans(path) == [
        MarkedSpan(start=0xD000, length=16, color=(255, 0, 0, 50), desc="Stack")
    ]


def test_end_address_form_with_alpha(tmp_path):
    path = _write(tmp_path, "D000,0xD0FF,80112233\n")
    (span,) = parse_colored_spans(path)
    assert span.start == 0xD000
    assert span.length == 0x100
    assert span.color == (0x11, 0x22, 0x33, 0x80)
    assert span.desc == ""


def test_comments_and_short_lines_are_skipped(tmp_path):
    path = _write(tmp_path, "# comment,1,ffffff\n\nD000,2\nE000,4,00ff00\n")
    spans = parse_colored_spans(path)
    assert [s.start for s in spans] == [0xE000]
    assert spans[0].color == (0, 255, 0, 50)


def test_five_fields_drop_description(tmp_path):
    path = _write(tmp_path, "10,1,000000,name,extra\n")
    (span,) = parse_colored_spans(path)
    assert span.desc == ""
    assert span.length == 1


def test_odd_colour_length_defaults_to_black(tmp_path):
    path = _write(tmp_path, "10,1,fff\n")
    (span,) = parse_colored_spans(path)
    assert span.color == (0, 0, 0, 50)


def test_missing_file_raises(tmp_path):
    with pytest.raises(SpansConfigError):
        parse_colored_spans(tmp_path / "absent.txt")


def test_mtime_ms_matches_set_time(tmp_path):
    path = _write(tmp_path, "")
    os.utime(path, ns=(5_000_000_000, 7_250_000_000))
    assert mtime_ms(path) == 7250


def test_mtime_ms_missing_file_is_zero(tmp_path):
    assert mtime_ms(tmp_path / "absent.txt") == 0