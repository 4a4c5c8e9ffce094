import config
import main
from conftest import auth, gql, make_user
from errors import AdminRequired


def register(client, email="new@example.com", password="hunter22"):
    return client.post("/auth/register", json={"name": "New", "email": email, "password": password})


def test_register_login_and_me(client, db):
    registered = register(client)
    assert registered.status_code == 200
    assert registered.json()["token_type"] == "bearer"

    login = client.post("/auth/login", json={"email": "NEW@example.com", "password": "hunter22"})
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = client.get("/me", headers=auth(token))
    assert me.status_code == 200
    assert me.json()["email"] == "new@example.com"
    assert "password_hash" not in me.json()
    assert db["user"].find_one({"email": "new@example.com"})["last_login_at"] is not None


def test_duplicate_and_weak_registration(client):
    register(client)
    duplicate = register(client)
    assert duplicate.status_code == 409
    assert duplicate.json() == {"error": "Email already registered"}

    weak = register(client, email="weak@example.com", password="123")
    assert weak.status_code == 400


def test_bad_credentials(client):
    register(client)
    response = client.post("/auth/login", json={"email": "new@example.com", "password": "wrong-pass"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


def test_me_requires_token(client):
    assert client.get("/me").status_code == 401


def test_current_user_query(client, shopper_token):
    result = gql(client, "query { currentUser { email role status } }", token=shopper_token)
    assert result["data"]["currentUser"] == {"email": "shopper@example.com", "role": "USER", "status": "active"}
    anonymous = gql(client, "query { currentUser { email } }")
    assert anonymous["data"]["currentUser"] is None


def test_banned_session_is_ignored(client, db, shopper, shopper_token):
    db["user"].update_one({"_id": shopper["_id"]}, {"$set": {"status": "banned"}})
    result = gql(client, "query { currentUser { email } }", token=shopper_token)
    assert result["data"]["currentUser"] is None


def test_health_and_seed(client, db):
    health = client.get("/api/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"

    first = main.seed_data()
    second = main.seed_data()
    assert first == {"admin": True, "categories": 3, "products": 4}
    assert second == {"admin": False, "categories": 0, "products": 0}
    assert db["product"].count_documents({"featured": True}) == 2


def test_seed_skips_when_admin_email_is_a_shopper(db):
    make_user(email=config.ADMIN_EMAIL, name="Not Admin")

    assert main.seed_data() == {"admin": False, "categories": 0, "products": 0}
    assert db["category"].count_documents({}) == 0
    assert db["user"].find_one({"email": config.ADMIN_EMAIL})["role"] == "USER"


def test_startup_survives_seed_errors(monkeypatch, db):
    def refuse():
        raise AdminRequired()

    monkeypatch.setattr(main, "seed_data", refuse)
    monkeypatch.setattr(config, "SEED_ON_STARTUP", True)

    main.on_startup()

    assert "email_1" in db["user"].index_information()


def test_malformed_body_uses_error_shape(client):
    response = client.post("/auth/register", json={"name": "New", "email": "new@example.com"})
    assert response.status_code == 400
    assert response.json() == {"error": "password: Field required"}

    not_json = client.post("/auth/login", content=b"{", headers={"Content-Type": "application/json"})
    assert not_json.status_code == 400
    assert set(not_json.json()) == {"error"}
