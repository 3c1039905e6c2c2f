"""
Shared fixtures for the QuantumCalc tests.
"""
import pytest

from api import create_app
from calculator import Calculator
from database import Database


def enter(calc, text):
    """Type a number the way a user would, one key at a time."""
    for char in text:
        if char == ".":
            calc.input_decimal()
        else:
            calc.input_digit(char)


@pytest.fixture
def calc():
    return Calculator()


@pytest.fixture
def db(tmp_path):
    return Database(str(tmp_path / "quantumcalc-test.db"))


@pytest.fixture
def app(db):
    app = create_app(db)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
