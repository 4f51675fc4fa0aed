"""Shared fixtures for the LineLens test suite."""
import io
from pathlib import Path

import pytest

from linelens.analyzer.document import TextDocument
from linelens.config import reset_config
from linelens.utils.safe_console import SafeConsole

FIXTURES_DIR = Path(__file__).parent / 'fixtures'
SAMPLE_TS = FIXTURES_DIR / 'sample.ts'

LINELENS_ENV_VARS = (
    'LINELENS_API_KEY',
    'LINELENS_MODEL',
    'LINELENS_TEMPERATURE',
    'LINELENS_MAX_TOKENS',
    'LINELENS_BASE_URL',
    'LINELENS_HISTORY_PATH',
    'LINELENS_LOG_PATH',
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Run every test in an empty directory without LINELENS_* settings."""
    for name in LINELENS_ENV_VARS:
        # setenv first so the variable is removed again on teardown even if
        # the test writes it
        monkeypatch.setenv(name, '')
        monkeypatch.delenv(name)

    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_document():
    """Build an in-memory TypeScript document from a list of lines."""
    def _make(lines, language_id='typescript', uri='memory://test.ts'):
        return TextDocument.from_lines(lines, language_id=language_id, uri=uri)
    return _make


@pytest.fixture
def sample_document():
    return TextDocument.from_file(SAMPLE_TS)


@pytest.fixture
def console():
    """SafeConsole writing to a buffer; read it with console.file.getvalue()."""
    return SafeConsole(file=io.StringIO(), width=120, color_system=None)
