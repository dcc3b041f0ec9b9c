"""Smoke Test for the sample demo entry point

Run: pytest tests/sample/
"""
import json

import structlog

from secure_serialization.sample.demo import main


def test_demo_prints_encrypted_plain_and_decoded(capsys):
    try:
        assert main() == 0
    finally:
        structlog.reset_defaults()

    lines = dict(line.split(":", 1) for line in capsys.readouterr().out.splitlines())
    encrypted = json.loads(lines["encrypted"])
    plain = json.loads(lines["plain"])

    assert encrypted["e2e_iv"] == "sample-iv"
    assert "firstname" not in encrypted
    assert plain["firstname"] == "John"
    assert plain["e2e_iv"] is None
    assert "first_name='John'" in lines["decoded"]
