import pytest

from grammar_uml.grammar_ast import TerminalRule


@pytest.fixture
def id_terminal():
    return TerminalRule(name="ID", regex=r"/[_a-zA-Z][\w_]*/")


@pytest.fixture
def int_terminal():
    return TerminalRule(name="INT", regex=r"/[0-9]+/")
