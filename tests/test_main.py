"""Tests for the command line entry point."""

from unittest.mock import patch

import pytest

from marketgazer.main import main


@pytest.fixture(autouse=True)
def no_logger_setup():
    with patch("marketgazer.main.setup_logger") as mock_setup:
        yield mock_setup


@patch("marketgazer.main.serve")
def test_serve(mock_serve):
    assert main(["serve", "--host", "0.0.0.0", "--port", "9000", "--debug"]) == 0
    mock_serve.assert_called_once_with("0.0.0.0", 9000, True)


@patch("marketgazer.main.check", return_value=True)
def test_check_ok(mock_check, no_logger_setup):
    assert main(["check"]) == 0
    no_logger_setup.assert_called_once()


@patch("marketgazer.main.check", return_value=False)
def test_check_failed(mock_check):
    assert main(["check"]) == 1


def test_command_required():
    with pytest.raises(SystemExit):
        main([])
