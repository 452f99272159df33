"""Tests for the Slack slash command endpoint."""

import json
import pytest
from unittest.mock import AsyncMock, patch
from api.slack import commands
from src.services import wiring
from src.services.command_pipeline import EXECUTE_COMMAND_JOB
from tests.utils.helpers import create_command_body


@pytest.fixture(autouse=True)
def fresh_memory_stores(monkeypatch):
    monkeypatch.setattr(wiring, "_memory_job_store", None)
    monkeypatch.setattr(wiring, "_memory_seen_store", None)


@pytest.fixture
def chat_client(mock_chat_client):
    with patch('api.slack.commands.build_chat_client', return_value=mock_chat_client):
        yield mock_chat_client


@pytest.mark.unit
def test_invalid_signature_rejected():
    """Test rejection of invalid signature."""
    with patch('api.slack.commands.verify_slack_request', return_value=False):
        response = commands.process_request(create_command_body(), {"X-Slack-Signature": "v0=invalid"})

    assert response["statusCode"] == 401
    assert "error" in json.loads(response["body"])


@pytest.mark.unit
def test_command_is_acknowledged_and_queued(chat_client):
    """Test a verified command is queued for the job processor."""
    body = create_command_body(text="cat", trigger_id="111.222.aaa")

    with patch('api.slack.commands.verify_slack_request', return_value=True):
        response = commands.process_request(body, {})

    assert response["statusCode"] == 200
    assert json.loads(response["body"])["text"] == "Please wait."

    jobs = [entry["job"] for entry in wiring._memory_job_store.jobs.values()]
    assert [job.job_name for job in jobs] == [EXECUTE_COMMAND_JOB]
    assert jobs[0].data["command"]["text"] == "cat"


@pytest.mark.unit
def test_retried_delivery_is_ignored(chat_client):
    """Test Slack retries of the same trigger are acknowledged empty."""
    body = create_command_body(trigger_id="111.222.bbb")

    with patch('api.slack.commands.verify_slack_request', return_value=True):
        first = commands.process_request(body, {})
        second = commands.process_request(body, {})

    assert first["statusCode"] == 200
    assert second["statusCode"] == 200
    assert second["body"] == ""
    assert second["headers"] == {"X-Slack-Ignored-Retry": "true"}
    assert len(wiring._memory_job_store.jobs) == 1


@pytest.mark.unit
def test_unexpected_error_returns_500(chat_client):
    """Test errors below the handler become a 500."""
    with patch('api.slack.commands.verify_slack_request', return_value=True):
        with patch('api.slack.commands.handle_slash_command', new_callable=AsyncMock) as mock_handle:
            mock_handle.side_effect = RuntimeError("boom")
            response = commands.process_request(create_command_body(), {})

    assert response["statusCode"] == 500
    assert json.loads(response["body"]) == {"error": "internal server error"}
