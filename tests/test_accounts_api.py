from conftest import login_token, register


def test_register_returns_token_and_public_user(client):
  response = register(client, "a", "p")

  assert response.status_code == 201
  body = response.get_json()
  assert body["token"]
  assert body["user"]["username"] == "a"
  assert set(body["user"]) == {"id", "username"}


def test_register_same_username_twice_conflicts(client):
  assert register(client, "a", "p").status_code == 201

  response = register(client, "a", "other")

  assert response.status_code == 400
  assert response.get_json() == {"message": "User already exists"}


def test_register_alias_route(client):
  response = client.post("/api/register", json={"username": "bob", "password": "pw"})
  assert response.status_code == 201


def test_register_requires_username_and_password(client):
  for payload in ({}, {"username": "a"}, {"password": "p"}, {"username": "  ", "password": "p"}):
    response = client.post("/auth/register", json=payload)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Username and password are required"


def test_register_without_json_body(client):
  response = client.post("/auth/register", data="not json", content_type="text/plain")
  assert response.status_code == 400


def test_password_is_stored_hashed(client, store):
  register(client, "carol", "hunter2")

  user = store.find_user_by_username("carol")
  assert user.password_hash != "hunter2"
  assert "hunter2" not in user.password_hash


def test_login_with_correct_credentials(client):
  register(client, "a", "p")

  response = client.post("/auth/login", json={"username": "a", "password": "p"})

  assert response.status_code == 200
  body = response.get_json()
  assert body["token"]
  assert body["user"]["username"] == "a"
  assert "password_hash" not in body["user"]


def test_login_alias_route(client):
  register(client, "a", "p")
  response = client.post("/api/login", json={"username": "a", "password": "p"})
  assert response.status_code == 200


def test_login_with_wrong_password_fails(client):
  register(client, "a", "p")

  for _ in range(3):
    response = client.post("/auth/login", json={"username": "a", "password": "wrong"})
    assert response.status_code == 400
    assert response.get_json() == {"message": "Invalid credentials"}


def test_login_unknown_user_fails(client):
  response = client.post("/auth/login", json={"username": "ghost", "password": "p"})
  assert response.status_code == 400
  assert response.get_json() == {"message": "Invalid credentials"}


def test_login_token_is_accepted_by_guard(client):
  token = login_token(client, "a", "p")

  response = client.get("/auth/me", headers={"x-auth-token": token})

  assert response.status_code == 200
  assert response.get_json()["user"]["username"] == "a"


def test_me_for_deleted_user_is_not_found(app, client):
  tokens = app.extensions["mealcheck"]["tokens"]
  orphan = tokens.issue("0" * 32)

  response = client.get("/auth/me", headers={"x-auth-token": orphan})

  assert response.status_code == 404
  assert response.get_json() == {"message": "User not found"}


def test_register_login_then_empty_history(client):
  assert register(client, "a", "p").status_code == 201
  second = register(client, "a", "p")
  assert second.status_code == 400
  assert second.get_json()["message"] == "User already exists"

  login = client.post("/auth/login", json={"username": "a", "password": "p"})
  assert login.status_code == 200

  history = client.get("/api/v1/meal-history", headers={"x-auth-token": login.get_json()["token"]})
  assert history.status_code == 200
  assert history.get_json() == []
