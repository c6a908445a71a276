from config.supabase_schema import SETTINGS_TABLE
from infocard import get_options_store
from infocard.options import DEFAULT_OPTIONS


def _login(client, role="ADMIN"):
    with client.session_transaction() as sess:
        sess["username"] = role
        sess["role"] = role


def _tokens(client):
    response = client.get("/admin/settings")
    assert response.status_code == 200
    payload = response.get_json()
    return payload["saveNonce"], payload["resetNonce"]


def _stored_options(app):
    with app.app_context():
        return get_options_store().get_options()


def test_create_app_seeds_defaults(settings_app):
    app, supabase = settings_app

    rows = supabase.tables[SETTINGS_TABLE.name]
    assert len(rows) == 1
    assert rows[0]["option_name"] == "infocard_settings"
    assert rows[0]["version"] == 1
    assert rows[0]["value"] == DEFAULT_OPTIONS
    assert _stored_options(app) == DEFAULT_OPTIONS


def test_settings_page_returns_state_for_admin(settings_app):
    app, _ = settings_app
    client = app.test_client()
    _login(client)

    response = client.get("/admin/settings", query_string={"tab": "Plugin Screenshots"})

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["options"] == DEFAULT_OPTIONS
    assert payload["defaults"] == DEFAULT_OPTIONS
    assert payload["tab"] == "plugin-screenshots"
    assert payload["settingsUrl"] == "/admin/settings?tab=plugin-screenshots"
    assert payload["branding"]["name"] == "InfoCard"
    assert payload["saveNonce"]
    assert payload["resetNonce"]
    assert payload["saveNonce"] != payload["resetNonce"]


def test_settings_page_defaults_to_home_tab(settings_app):
    app, _ = settings_app
    client = app.test_client()
    _login(client)

    payload = client.get("/admin/settings").get_json()

    assert payload["tab"] == "home"


def test_save_sanitizes_and_replaces_document(settings_app):
    app, _ = settings_app
    client = app.test_client()
    _login(client)
    save_token, _ = _tokens(client)

    response = client.post(
        "/admin/settings/save",
        json={
            "saveNonce": save_token,
            "formData": {
                "colorscheme": "<b>blue</b>",
                "widget": "true",
                "ajax": "false",
                "cacheExpiration": "0",
                "ratio": 1.5,
                "screenshots": {"enabled": "true", "maxScreenshots": 3},
            },
        },
    )

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "message": "Options saved"}
    assert _stored_options(app) == {
        "colorscheme": "blue",
        "widget": True,
        "ajax": False,
        "cacheExpiration": 0,
        "screenshots": {"enabled": True, "maxScreenshots": 3},
    }


def test_save_accepts_bracketed_form_fields(settings_app):
    app, _ = settings_app
    client = app.test_client()
    _login(client)
    save_token, _ = _tokens(client)

    response = client.post(
        "/admin/settings/save",
        data={
            "formData[saveNonce]": save_token,
            "formData[layout]": "flex",
            "formData[enqueue]": "false",
            "formData[list][plugins]": "akismet, jetpack",
            "formData[screenshots][maxScreenshots]": "0",
        },
    )

    assert response.status_code == 200
    stored = _stored_options(app)
    assert stored == {
        "layout": "flex",
        "enqueue": False,
        "list": {"plugins": "akismet, jetpack"},
        "screenshots": {"maxScreenshots": 0},
    }
    assert "saveNonce" not in stored


def test_save_rejects_invalid_token(settings_app):
    app, _ = settings_app
    client = app.test_client()
    _login(client)

    response = client.post(
        "/admin/settings/save",
        json={"saveNonce": "forged", "formData": {"layout": "flex"}},
    )

    assert response.status_code == 400
    assert response.get_json() == {
        "success": False,
        "message": "Integrity token verification failed",
    }
    assert _stored_options(app) == DEFAULT_OPTIONS


def test_save_rejects_missing_token(settings_app):
    app, _ = settings_app
    client = app.test_client()
    _login(client)

    response = client.post("/admin/settings/save", json={"formData": {"layout": "flex"}})

    assert response.status_code == 400
    assert _stored_options(app) == DEFAULT_OPTIONS


def test_save_rejects_reset_token(settings_app):
    app, _ = settings_app
    client = app.test_client()
    _login(client)
    _, reset_token = _tokens(client)

    response = client.post(
        "/admin/settings/save",
        json={"saveNonce": reset_token, "formData": {"layout": "flex"}},
    )

    assert response.status_code == 400
    assert _stored_options(app) == DEFAULT_OPTIONS


def test_save_without_login_returns_empty_forbidden(settings_app):
    app, supabase = settings_app
    client = app.test_client()
    calls_before = list(supabase.calls)

    response = client.post(
        "/admin/settings/save",
        json={"saveNonce": "anything", "formData": {"layout": "flex"}},
    )

    assert response.status_code == 403
    assert response.data == b""
    assert supabase.calls == calls_before
    assert _stored_options(app) == DEFAULT_OPTIONS


def test_standard_user_cannot_save_or_reset(settings_app):
    app, _ = settings_app
    client = app.test_client()
    _login(client, role="USER")

    save = client.post("/admin/settings/save", json={"formData": {"layout": "flex"}})
    reset = client.post("/admin/settings/reset", json={})
    page = client.get("/admin/settings")

    assert save.status_code == 403
    assert reset.status_code == 403
    assert page.status_code == 403
    assert save.data == b"" and reset.data == b"" and page.data == b""
    assert _stored_options(app) == DEFAULT_OPTIONS


def test_reset_restores_defaults(settings_app):
    app, _ = settings_app
    client = app.test_client()
    _login(client)
    save_token, reset_token = _tokens(client)

    client.post(
        "/admin/settings/save",
        json={"saveNonce": save_token, "formData": {"layout": "flex"}},
    )
    assert _stored_options(app) == {"layout": "flex"}

    response = client.post("/admin/settings/reset", data={"resetNonce": reset_token})

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "message": "Options reset"}
    assert _stored_options(app) == DEFAULT_OPTIONS


def test_reset_rejects_save_token(settings_app):
    app, _ = settings_app
    client = app.test_client()
    _login(client)
    save_token, _ = _tokens(client)
    client.post(
        "/admin/settings/save",
        json={"saveNonce": save_token, "formData": {"layout": "flex"}},
    )

    response = client.post("/admin/settings/reset", json={"resetNonce": save_token})

    assert response.status_code == 400
    assert response.get_json()["success"] is False
    assert _stored_options(app) == {"layout": "flex"}


def test_token_is_bound_to_the_issuing_user(settings_app):
    app, _ = settings_app
    client = app.test_client()
    _login(client)
    save_token, _ = _tokens(client)

    with client.session_transaction() as sess:
        sess["username"] = "other-admin"

    response = client.post(
        "/admin/settings/save",
        json={"saveNonce": save_token, "formData": {"layout": "flex"}},
    )

    assert response.status_code == 400


def test_save_reports_persistence_failure(settings_app):
    app, supabase = settings_app
    client = app.test_client()
    _login(client)
    save_token, _ = _tokens(client)
    supabase.fail = True

    response = client.post(
        "/admin/settings/save",
        json={"saveNonce": save_token, "formData": {"layout": "flex"}},
    )

    assert response.status_code == 500
    assert response.get_json() == {
        "success": False,
        "message": "Options could not be saved",
    }


def test_login_grants_settings_access(settings_app):
    app, _ = settings_app
    client = app.test_client()

    assert client.get("/login").status_code == 200

    response = client.post(
        "/login",
        data={"username": "admin", "password": "pw"},
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/admin/settings")
    with client.session_transaction() as sess:
        assert sess["role"] == "ADMIN"
    assert client.get("/admin/settings").status_code == 200


def test_login_rejects_bad_password(settings_app):
    app, _ = settings_app
    client = app.test_client()

    response = client.post("/login", data={"username": "admin", "password": "nope"})

    assert response.status_code == 200
    assert b"Invalid credentials." in response.data
    with client.session_transaction() as sess:
        assert "role" not in sess


def test_reset_reports_persistence_failure(settings_app):
    app, supabase = settings_app
    client = app.test_client()
    _login(client)
    _, reset_token = _tokens(client)
    supabase.fail = True

    response = client.post("/admin/settings/reset", json={"resetNonce": reset_token})

    assert response.status_code == 500
    assert response.get_json() == {
        "success": False,
        "message": "Options could not be reset",
    }
