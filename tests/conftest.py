import pytest

from talenttrek.app import create_app
from talenttrek.config import Config
from talenttrek.database import DatabaseManager


@pytest.fixture
def config(tmp_path):
    return Config(
        jwt_secret="test-secret",
        database_path=str(tmp_path / "talenttrek.db"),
        upload_folder=str(tmp_path / "uploads"),
        environment="testing",
        cors_origins=["http://localhost:5174"],
    )


@pytest.fixture
def app(config):
    app = create_app(config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(str(tmp_path / "store.db"))
    manager.connect()
    manager.create_schema()
    yield manager
    manager.close()


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def signup(client):
    """Create an account and return its token."""
    def _signup(email, role="jobseeker", password="secret123", name="Test User"):
        resp = client.post("/api/auth/signup", json={
            "name": name,
            "email": email,
            "password": password,
            "role": role,
        })
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()["token"]
    return _signup


@pytest.fixture
def seeker_token(signup):
    return signup("seeker@example.com")


@pytest.fixture
def recruiter_token(signup):
    return signup("recruiter@example.com", role="recruiter", name="Rita Recruiter")


@pytest.fixture
def post_job(client, recruiter_token):
    """Post a job as the recruiter and return the stored document."""
    def _post_job(title, requirements="", description="", **extra):
        payload = {"title": title, "company": "Acme", "requirements": requirements,
                   "description": description}
        payload.update(extra)
        resp = client.post("/api/jobs", json=payload, headers=auth_header(recruiter_token))
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()["job"]
    return _post_job
