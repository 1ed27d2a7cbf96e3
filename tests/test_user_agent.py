import platform

import requests

from shuttle import __version__
from shuttle.networking.user_agent import compose_user_agent


def _base():
    system = platform.system() or "unknown"
    return (
        f"shuttle/{__version__} (requests/{requests.__version__}"
        f" Python/{platform.python_version()} ({system})"
    )


def test_environment_override_is_verbatim():
    assert compose_user_agent({"USER_AGENT": ""}) == ""
    assert compose_user_agent({"USER_AGENT": "Mine/1.0"}) == "Mine/1.0"


def test_plain_environment():
    assert compose_user_agent({}) == _base() + ")"


def test_terminal_program_is_appended():
    environ = {"TERM_PROGRAM": "iTerm.app", "TERM_PROGRAM_VERSION": "3.4"}

    assert compose_user_agent(environ) == _base() + " iTerm.app/3.4)"


def test_server_software_wins_over_terminal_and_drops_python_token():
    environ = {
        "SERVER_SOFTWARE": "gunicorn/21.2 Python/3.12.1",
        "TERM_PROGRAM": "iTerm.app",
        "HTTP_USER_AGENT": "Mozilla/5.0",
    }

    expected = _base() + " gunicorn/21.2 Mozilla/5.0)"
    assert compose_user_agent(environ) == expected
