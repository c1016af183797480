import json
import sys

import pytest

import scripts.accounts as accounts
from identity_admin.config import settings

BASE_URL = "http://identity.test"
PROJECT_ID = "demo-project"
ACCOUNTS = f"/v1/projects/{PROJECT_ID}"
TENANTS = f"/v2/projects/{PROJECT_ID}/tenants"


@pytest.fixture(autouse=True)
def restore_sys_argv():
    """Make sure every test sees a clean CLI invocation."""
    original = sys.argv[:]
    yield
    sys.argv = original


@pytest.fixture(autouse=True)
def cli_env(monkeypatch, tmp_path):
    """Static-token configuration against the fake API host, no Docker secrets."""
    real_path = settings.Path

    def fake_path(target):
        if str(target) == "/run/secrets":
            return tmp_path
        return real_path(target)

    monkeypatch.setattr(settings, "Path", fake_path)
    for name in ("IDENTITY_TENANT_ID", "IDENTITY_PAGE_SIZE", "IDENTITY_CLIENT_SECRET", "GOOGLE_CLOUD_PROJECT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("IDENTITY_PROJECT_ID", PROJECT_ID)
    monkeypatch.setenv("IDENTITY_API_URL", BASE_URL)
    monkeypatch.setenv("IDENTITY_ACCESS_TOKEN", "cli-token")


def _lines(out):
    return [json.loads(line) for line in out.splitlines() if line]


def test_no_command_prints_help(capsys):
    sys.argv = ["accounts.py"]
    accounts.main()
    assert "list-users" in capsys.readouterr().out


def test_missing_project_id(monkeypatch):
    monkeypatch.delenv("IDENTITY_PROJECT_ID")
    sys.argv = ["accounts.py", "list-users"]
    with pytest.raises(SystemExit) as excinfo:
        accounts.main()
    assert excinfo.value.code == 2


def test_list_users_single_page(fake_api, capsys):
    fake_api.add(
        "GET",
        f"{ACCOUNTS}/accounts:batchGet",
        {"users": [{"localId": "u1"}, {"localId": "u2"}], "nextPageToken": "tok-2"},
    )
    sys.argv = ["accounts.py", "list-users", "--page-size", "2"]

    accounts.main()

    lines = _lines(capsys.readouterr().out)
    assert [line.get("uid") for line in lines[:2]] == ["u1", "u2"]
    assert lines[2] == {"next_page_token": "tok-2"}
    call = fake_api.calls[0]
    assert call.params == {"maxResults": 2}
    assert call.headers["Authorization"] == "Bearer cli-token"


def test_list_users_all_pages_for_tenant(fake_api, capsys):
    path = f"{ACCOUNTS}/tenants/acme-1/accounts:batchGet"
    fake_api.add(
        "GET",
        path,
        {"users": [{"localId": "u1"}], "nextPageToken": "tok-2"},
        {"users": [{"localId": "u2"}]},
    )
    sys.argv = ["accounts.py", "list-users", "--tenant", "acme-1", "--all"]

    accounts.main()

    assert [line["uid"] for line in _lines(capsys.readouterr().out)] == ["u1", "u2"]
    assert [call.params for call in fake_api.calls] == [
        {"maxResults": 1000},
        {"maxResults": 1000, "nextPageToken": "tok-2"},
    ]


def test_list_tenants_all_pages(fake_api, capsys):
    fake_api.add(
        "GET",
        TENANTS,
        {"tenants": [{"name": f"projects/{PROJECT_ID}/tenants/t1"}], "nextPageToken": "n"},
        {"tenants": [{"name": f"projects/{PROJECT_ID}/tenants/t2"}]},
    )
    sys.argv = ["accounts.py", "list-tenants", "--all"]

    accounts.main()

    assert [line["tenant_id"] for line in _lines(capsys.readouterr().out)] == ["t1", "t2"]


def test_get_user_by_email(fake_api, capsys):
    fake_api.add(
        "POST",
        f"{ACCOUNTS}/accounts:lookup",
        {"users": [{"localId": "u1", "email": "u1@example.com"}]},
    )
    sys.argv = ["accounts.py", "get-user", "--email", "u1@example.com"]

    accounts.main()

    record = _lines(capsys.readouterr().out)[0]
    assert record["uid"] == "u1"
    assert fake_api.calls[0].json == {"email": ["u1@example.com"]}


def test_get_missing_user_exits_with_error(fake_api, capsys):
    fake_api.add("POST", f"{ACCOUNTS}/accounts:lookup", {})
    sys.argv = ["accounts.py", "get-user", "--uid", "ghost"]

    with pytest.raises(SystemExit) as excinfo:
        accounts.main()

    assert excinfo.value.code == 1
    assert "[accounts] get-user failed" in capsys.readouterr().err


def test_invalid_page_size_fails_before_request(fake_api, capsys):
    sys.argv = ["accounts.py", "list-users", "--page-size", "5000"]

    with pytest.raises(SystemExit) as excinfo:
        accounts.main()

    assert excinfo.value.code == 1
    assert "max_results" in capsys.readouterr().err
    assert fake_api.calls == []


@pytest.mark.parametrize("page_size", ["0", "-3"])
def test_non_positive_page_size_fails_before_request(fake_api, capsys, page_size):
    sys.argv = ["accounts.py", "list-tenants", "--page-size", page_size]

    with pytest.raises(SystemExit) as excinfo:
        accounts.main()

    assert excinfo.value.code == 1
    assert "max_results" in capsys.readouterr().err
    assert fake_api.calls == []


def test_page_size_from_environment(monkeypatch, fake_api, capsys):
    monkeypatch.setenv("IDENTITY_PAGE_SIZE", "25")
    fake_api.add("GET", f"{ACCOUNTS}/accounts:batchGet", {})
    sys.argv = ["accounts.py", "list-users"]

    accounts.main()

    assert fake_api.calls[0].params == {"maxResults": 25}


def test_default_tenant_from_environment(monkeypatch, fake_api, capsys):
    monkeypatch.setenv("IDENTITY_TENANT_ID", "acme-1")
    fake_api.add("GET", f"{ACCOUNTS}/tenants/acme-1/accounts:batchGet", {"users": [{"localId": "u1"}]})
    fake_api.add("GET", f"{ACCOUNTS}/tenants/acme-2/accounts:batchGet", {})
    sys.argv = ["accounts.py", "list-users"]

    accounts.main()

    sys.argv = ["accounts.py", "list-users", "--tenant", "acme-2"]
    accounts.main()

    assert [call.path for call in fake_api.calls] == [
        f"{ACCOUNTS}/tenants/acme-1/accounts:batchGet",
        f"{ACCOUNTS}/tenants/acme-2/accounts:batchGet",
    ]


def test_list_all_stops_on_malformed_page(fake_api, capsys, stub_response):
    fake_api.add(
        "GET",
        f"{ACCOUNTS}/accounts:batchGet",
        {"users": [{"localId": "u1"}], "nextPageToken": "tok-2"},
        stub_response(None, text="<html>proxy</html>"),
    )
    sys.argv = ["accounts.py", "list-users", "--all"]

    with pytest.raises(SystemExit) as excinfo:
        accounts.main()

    captured = capsys.readouterr()
    assert excinfo.value.code == 1
    assert [line["uid"] for line in _lines(captured.out)] == ["u1"]
    assert "[accounts] list-users failed" in captured.err
    assert "malformed response" in captured.err


def test_missing_credentials(monkeypatch, fake_api, capsys):
    monkeypatch.delenv("IDENTITY_ACCESS_TOKEN")
    sys.argv = ["accounts.py", "delete-user", "--uid", "u1"]

    with pytest.raises(SystemExit):
        accounts.main()

    assert "No credentials configured" in capsys.readouterr().err
    assert fake_api.calls == []


def test_delete_user(fake_api, capsys):
    fake_api.add("POST", f"{ACCOUNTS}/accounts:delete", {})
    sys.argv = ["accounts.py", "--token", "override", "delete-user", "--uid", "u1"]

    accounts.main()

    assert fake_api.calls[0].json == {"localId": "u1"}
    assert fake_api.calls[0].headers["Authorization"] == "Bearer override"
    assert "User 'u1' deleted" in capsys.readouterr().err


def test_password_reset_link(fake_api, capsys):
    fake_api.add("POST", f"{ACCOUNTS}/accounts:sendOobCode", {"oobLink": "https://example.com/reset?oob=1"})
    sys.argv = ["accounts.py", "password-reset-link", "--email", "u1@example.com"]

    accounts.main()

    assert capsys.readouterr().out.strip() == "https://example.com/reset?oob=1"
    assert fake_api.calls[0].json["requestType"] == "PASSWORD_RESET"
