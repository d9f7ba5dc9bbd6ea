import sys
from pathlib import Path
import importlib
import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture()
def m():
    """Lazily import the main module for tests to avoid module-level import."""
    return importlib.import_module("main")


@pytest.fixture()
def no_progress(monkeypatch, m):
    """Suppress progress rendering in main module during tests."""
    calls = []

    def _stub(line: str):
        calls.append(line)

    monkeypatch.setattr(m, "_print_progress", _stub)
    return calls


@pytest.fixture()
def progress_recorder():
    """Provide a reusable progress callback and its call log."""
    calls = []

    def cb(done, total):
        calls.append((done, total))

    return cb, calls


@pytest.fixture()
def sample_files(tmp_path: Path):
    """Create a few input files of different shapes.

    Structure:
        inputs/
            text.txt    (repetitive English text)
            single.bin  (one repeated byte)
            empty.dat   (zero bytes)
    """
    root = tmp_path / "inputs"
    root.mkdir()
    (root / "text.txt").write_text(
        "The quick brown fox jumps over the lazy dog.\n" * 20,
        encoding="utf-8",
    )
    (root / "single.bin").write_bytes(b"a" * 100)
    (root / "empty.dat").write_bytes(b"")
    return root


def code_str(code, length):
    """Render a ``(code, length)`` tuple as a string of 0/1 characters."""
    return format(code, f"0{length}b")


@pytest.fixture()
def code_str_fn():
    """
    Fixture that provides the code_str helper without importing conftest.
    """
    return code_str
