import pytest

from huntcore import ir, javascript


@pytest.fixture
def lower():
    """Parse JavaScript source and return its built IR file."""
    def _lower(src: str, name: str = "test.js") -> ir.File:
        return ir.lower(javascript.parse(src, name))
    return _lower
