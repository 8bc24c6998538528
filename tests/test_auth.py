from models import AccountCreate

import main


def login(client, username, password):
    return client.post("/api/login", json={"username": username, "password": password})


def test_login_and_session_persists(client):
    # Nobody logged in yet
    r = client.get("/api/auth/status")
    assert r.status_code == 200
    assert r.json() == {"authenticated": False}

    r = login(client, "admin", "password123")
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Login successful"
    assert body["user"]["username"] == "admin"
    assert body["user"]["isAdmin"] is True
    assert "password" not in body["user"] and "passwordHash" not in body["user"]

    r = client.get("/api/auth/status")
    assert r.json() == {"authenticated": True, "user": body["user"]}
    assert len(main.session_store) == 1

    # Logout clears the server-side session
    r = client.post("/api/logout")
    assert r.status_code == 200
    assert r.json() == {"message": "Logout successful"}
    assert len(main.session_store) == 0
    assert client.get("/api/auth/status").json()["authenticated"] is False


def test_wrong_password_is_rejected_without_session(client):
    r = login(client, "admin", "not-the-password")
    assert r.status_code == 401
    assert r.json() == {"message": "Invalid username or password"}
    assert len(main.session_store) == 0
    assert client.get("/api/auth/status").json() == {"authenticated": False}


def test_unknown_user_gets_same_message(client):
    r = login(client, "ghost", "password123")
    assert r.status_code == 401
    assert r.json() == {"message": "Invalid username or password"}


def test_missing_credentials_is_a_validation_error(client):
    r = client.post("/api/login", json={"username": "admin"})
    assert r.status_code == 400
    assert "password" in r.json()["errors"]


def test_logout_is_idempotent(client):
    assert client.post("/api/logout").status_code == 200

    login(client, "admin", "password123")
    assert client.post("/api/logout").status_code == 200
    assert client.post("/api/logout").status_code == 200
    assert client.get("/api/auth/status").json()["authenticated"] is False


def test_relogin_rotates_session(client):
    login(client, "admin", "password123")
    first = next(iter(main.session_store._records))

    login(client, "admin", "password123")
    assert len(main.session_store) == 1
    assert first not in main.session_store._records


def test_non_admin_account_can_log_in(client, store):
    store.create_account(AccountCreate(username="volunteer", password="volunteer-pass"))

    r = login(client, "volunteer", "volunteer-pass")
    assert r.status_code == 200
    assert r.json()["user"]["isAdmin"] is False


def test_repeated_failures_are_throttled(client):
    for _ in range(main.LOGIN_MAX_ATTEMPTS):
        assert login(client, "admin", "wrong").status_code == 401

    # even the right password is refused until the window passes
    r = login(client, "admin", "password123")
    assert r.status_code == 429
    assert r.json() == {"message": "Too many login attempts"}
    assert len(main.session_store) == 0


def test_successful_login_resets_attempts(client):
    for _ in range(main.LOGIN_MAX_ATTEMPTS - 1):
        login(client, "admin", "wrong")
    assert login(client, "admin", "password123").status_code == 200
    assert "testclient" not in main.LOGIN_ATTEMPTS


def test_stale_attempts_are_forgotten(client):
    # a full quota of failures from long ago must not block or linger
    main.LOGIN_ATTEMPTS["testclient"] = [0.0] * main.LOGIN_MAX_ATTEMPTS

    assert login(client, "admin", "password123").status_code == 200
    assert "testclient" not in main.LOGIN_ATTEMPTS


def test_failure_then_success_drops_the_entry(client):
    login(client, "admin", "wrong")
    assert len(main.LOGIN_ATTEMPTS["testclient"]) == 1

    login(client, "admin", "password123")
    assert main.LOGIN_ATTEMPTS == {}
