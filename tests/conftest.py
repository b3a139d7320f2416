import textwrap

import pytest

import minitac


SAMPLE_PROGRAM = """
int a;
int b;
a = 3 + 4 * 2;
print a - b;
"""


def compile_ok(src):
    """Run every phase and return the TAC as strings."""
    tokens = minitac.tokenize(textwrap.dedent(src))
    program = minitac.parse(tokens)
    minitac.analyze(program)
    return [repr(i) for i in minitac.generate(program)]


@pytest.fixture
def client():
    from app import app

    app.config.update(TESTING=True)
    with app.test_client() as c:
        yield c
