"""
Tests for the ``requests``-based API client.

The HTTP session is mocked; no server is started.
"""

import io
from unittest.mock import Mock

import pytest
import requests

from preinstall_client import PreInstallAPI, main


def ok_response(payload):
    response = Mock()
    response.content = b"{}"
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def error_response(status_code, payload):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.raise_for_status.side_effect = requests.HTTPError(response=response)
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(session):
    return PreInstallAPI(base_url="http://forms.local/", session=session)


class TestRequests:
    def test_list_submissions_sends_filters(self, client, session):
        session.request.return_value = ok_response({"submissions": [], "total": 0})

        data, error = client.list_submissions(city="Springfield", cabinet_type="332", page=2, limit=10)

        assert error is None
        assert data == {"submissions": [], "total": 0}
        kwargs = session.request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == "http://forms.local/api/submissions"
        assert kwargs["params"] == {"page": 2, "limit": 10, "city": "Springfield", "cabinetType": "332"}

    def test_submit_with_files(self, client, session):
        session.request.return_value = ok_response({"success": True, "id": 7, "message": "ok"})
        phasing = ("phasing.pdf", io.BytesIO(b"pdf"))

        data, error = client.submit({"city": "Springfield"}, phasing_file=phasing)

        assert error is None
        assert data["id"] == 7
        kwargs = session.request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == "http://forms.local/api/submit"
        assert kwargs["data"] == {"city": "Springfield"}
        assert kwargs["files"] == {"phasingFile": phasing}

    def test_submit_without_files_sends_none(self, client, session):
        session.request.return_value = ok_response({"success": True, "id": 1, "message": "ok"})
        client.submit({"city": "Springfield"})
        assert session.request.call_args.kwargs["files"] is None

    def test_no_credentials_sent(self, client, session):
        session.request.return_value = ok_response({})
        client.get_filters()
        assert "headers" not in session.request.call_args.kwargs
        assert session.request.call_args.kwargs["url"] == "http://forms.local/api/filters"

    def test_http_error_uses_error_body(self, client, session):
        session.request.return_value = error_response(404, {"error": "Submission not found"})

        data, error = client.get_submission(5)

        assert data is None
        assert error == {"status_code": 404, "message": "Submission not found"}

    def test_connection_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("refused")

        ok, error = client.delete_submission(5)

        assert ok is False
        assert error["status_code"] is None
        assert "refused" in error["message"]

    def test_delete_success(self, client, session):
        session.request.return_value = ok_response({"success": True, "message": "Submission deleted successfully"})
        ok, error = client.delete_submission(3)
        assert ok is True
        assert error is None
        assert session.request.call_args.kwargs["url"] == "http://forms.local/api/submissions/3"

    def test_get_filters_failure_returns_empty_lists(self, client, session):
        session.request.return_value = error_response(500, {"error": "boom"})
        data, error = client.get_filters()
        assert data == {"cities": [], "states": [], "cabinetTypes": []}
        assert error["status_code"] == 500


class TestIterSubmissions:
    def test_walks_all_pages(self, client, session):
        session.request.side_effect = [
            ok_response({"submissions": [{"id": 3}, {"id": 2}], "totalPages": 2}),
            ok_response({"submissions": [{"id": 1}], "totalPages": 2}),
        ]
        assert [s["id"] for s in client.iter_submissions(limit=2)] == [3, 2, 1]
        assert session.request.call_count == 2

    def test_empty_listing(self, client, session):
        session.request.return_value = ok_response({"submissions": [], "totalPages": 0})
        assert list(client.iter_submissions()) == []

    def test_failed_page_raises(self, client, session):
        session.request.return_value = error_response(500, {"error": "Failed to fetch submissions"})
        with pytest.raises(RuntimeError):
            list(client.iter_submissions())


class TestCli:
    def test_show_not_found_exit_code(self, monkeypatch, capsys):
        monkeypatch.setattr(
            PreInstallAPI,
            "get_submission",
            lambda self, submission_id: (None, {"status_code": 404, "message": "Submission not found"}),
        )
        assert main(["show", "9"]) == 2
        assert "Submission not found" in capsys.readouterr().err

    def test_filters_prints_json(self, monkeypatch, capsys):
        monkeypatch.setattr(
            PreInstallAPI,
            "get_filters",
            lambda self: ({"cities": ["a"], "states": [], "cabinetTypes": []}, None),
        )
        assert main(["filters"]) == 0
        assert '"cities"' in capsys.readouterr().out
