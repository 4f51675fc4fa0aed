"""Tests for documents and selections."""
import pytest

from linelens.analyzer.document import Selection, TextDocument, split_lines


def test_from_text_splits_lines():
    doc = TextDocument.from_text("a();\r\nb();\n", language_id='javascript')

    assert doc.line_count == 2
    assert doc.line_at(1).text == "b();"
    assert doc.line_at(1).line_number == 1
    assert doc.get_text() == "a();\nb();"


@pytest.mark.parametrize("index", [-1, 2, 100])
def test_line_at_out_of_range(index):
    doc = TextDocument.from_lines(["a();", "b();"])
    with pytest.raises(IndexError):
        doc.line_at(index)


@pytest.mark.parametrize("file_name, language", [
    ("app.ts", 'typescript'),
    ("App.TSX", 'typescript'),
    ("main.py", 'python'),
    ("index.mjs", 'javascript'),
    ("notes.txt", 'plaintext'),
    ("Makefile", 'plaintext'),
])
def test_language_from_extension(file_name, language):
    assert TextDocument.language_from_extension(file_name) == language


def test_from_file(sample_document):
    assert sample_document.language_id == 'typescript'
    assert sample_document.line_count == 41
    assert sample_document.uri.endswith('sample.ts')
    assert sample_document.line_at(5).text == "export class FileCache {"


def test_single_line_selection():
    assert Selection.single_line(4) == Selection(4, 4)


def test_only_line_terminators_split_lines():
    doc = TextDocument.from_text("x = 1\n# section\x0c break here\ry = x\n")

    assert doc.line_count == 3
    assert doc.line_at(1).text == "# section\x0c break here"
    assert doc.line_at(2).text == "y = x"


def test_form_feed_keeps_file_line_numbers(tmp_path):
    path = tmp_path / "paged.py"
    path.write_bytes(b"x = 1\n# section\x0c break\ny = x\n")

    doc = TextDocument.from_file(path)

    assert doc.line_count == 3
    assert doc.line_at(2).text == "y = x"


@pytest.mark.parametrize("text, lines", [
    ("", []),
    ("a();", ["a();"]),
    ("a();\n\n", ["a();", ""]),
])
def test_trailing_terminator(text, lines):
    assert split_lines(text) == lines
