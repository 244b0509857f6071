import re

from admin_panel.utils.filenames import (
    file_type_of,
    fix_latin1_name,
    generate_stored_name,
    sanitize_name,
)


def test_fix_latin1_recovers_utf8_name():
    garbled = "報告.pdf".encode("utf-8").decode("latin-1")
    assert garbled != "報告.pdf"
    assert fix_latin1_name(garbled) == "報告.pdf"


def test_fix_latin1_keeps_correct_names():
    assert fix_latin1_name("report.pdf") == "report.pdf"
    assert fix_latin1_name("報告.pdf") == "報告.pdf"
    assert fix_latin1_name("café.png") == "café.png"


def test_fix_latin1_percent_decodes():
    assert fix_latin1_name("my%20file.txt") == "my file.txt"


def test_sanitize_replaces_unsafe_characters():
    assert sanitize_name("my report (1).pdf") == "my_report__1_.pdf"
    assert sanitize_name("a-b.c") == "a-b.c"
    assert sanitize_name("報告.pdf") == "__.pdf"


def test_generate_stored_name_format():
    name = generate_stored_name("my photo.png")
    assert re.fullmatch(r"\d{13}-\d{9}-my_photo\.png", name)


def test_generated_names_differ():
    names = {generate_stored_name("a.png") for _ in range(50)}
    assert len(names) == 50


def test_file_type_of():
    assert file_type_of("1700000000000-123456789-A.png") == "png"
    assert file_type_of("1700000000000-123456789-archive.tar.gz") == "gz"
    assert file_type_of("1700000000000-123456789-README") == ""
