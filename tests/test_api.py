import io

from talenttrek.app import create_app
from talenttrek.config import Config
from talenttrek.database import DatabaseError, DatabaseManager
from tests.conftest import auth_header


class TestAuth:

    def test_signup_returns_token_without_password(self, client):
        resp = client.post("/api/auth/signup", json={
            "name": "Sam", "email": "Sam@Example.com", "password": "secret123",
        })
        data = resp.get_json()
        assert resp.status_code == 200
        assert data["success"] is True
        assert data["token"]
        assert data["user"]["email"] == "sam@example.com"
        assert data["user"]["role"] == "jobseeker"
        assert "password_hash" not in data["user"]

    def test_duplicate_email_rejected(self, client, signup):
        signup("dup@example.com")
        resp = client.post("/api/auth/signup", json={"email": "dup@example.com", "password": "secret123"})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Email already exists"

    def test_signup_validation(self, client):
        assert client.post("/api/auth/signup", json={"email": "a@b.c"}).status_code == 400
        assert client.post("/api/auth/signup", json={"email": "a@b.c", "password": "123"}).status_code == 400
        resp = client.post("/api/auth/signup", json={"email": "a@b.c", "password": "secret123", "role": "admin"})
        assert resp.status_code == 400

    def test_login(self, client, signup):
        signup("login@example.com", password="secret123")
        resp = client.post("/api/auth/login", json={"email": "login@example.com", "password": "secret123"})
        assert resp.status_code == 200
        assert resp.get_json()["token"]

        bad = client.post("/api/auth/login", json={"email": "login@example.com", "password": "nope"})
        assert bad.status_code == 400
        assert bad.get_json()["message"] == "Invalid credentials"

    def test_me_requires_valid_token(self, client, seeker_token):
        assert client.get("/api/auth/me").status_code == 401
        assert client.get("/api/auth/me", headers=auth_header("garbage")).status_code == 401

        resp = client.get("/api/auth/me", headers=auth_header(seeker_token))
        assert resp.status_code == 200
        assert resp.get_json()["user"]["email"] == "seeker@example.com"

    def test_token_for_deleted_user_rejected(self, app, client, seeker_token):
        with app.app_context():
            from talenttrek.database import get_db
            get_db().delete_all("users")
        resp = client.get("/api/auth/me", headers=auth_header(seeker_token))
        assert resp.status_code == 401


class TestProfile:

    def test_update_skills_normalizes(self, client, seeker_token):
        resp = client.put("/api/profile/jobseeker", json={"skills": ["React", " react ", "Node.js"], "bio": "hi"},
                          headers=auth_header(seeker_token))
        profile = resp.get_json()["user"]["profile"]
        assert profile["skills"] == ["React", "Node.js"]
        assert profile["bio"] == "hi"

    def test_comma_separated_skills_accepted(self, client, seeker_token):
        client.put("/api/profile/jobseeker", json={"skills": "Python, SQL"}, headers=auth_header(seeker_token))
        resp = client.get("/api/profile/skills", headers=auth_header(seeker_token))
        assert resp.get_json() == {"success": True, "skills": ["Python", "SQL"], "source": "explicit"}

    def test_invalid_skills_type(self, client, seeker_token):
        resp = client.put("/api/profile/jobseeker", json={"skills": 5}, headers=auth_header(seeker_token))
        assert resp.status_code == 400

    def test_basic_profile_update_keeps_skills(self, client, seeker_token):
        client.put("/api/profile/jobseeker", json={"skills": ["Python"]}, headers=auth_header(seeker_token))
        resp = client.put("/api/profile/basic", json={
            "name": "Sam Seeker", "phone": "555-0100", "address": {"city": "Pune"}, "password_hash": "x",
        }, headers=auth_header(seeker_token))
        user = resp.get_json()["user"]
        assert user["name"] == "Sam Seeker"
        assert user["profile"]["phone"] == "555-0100"
        assert user["profile"]["address"] == {"city": "Pune"}
        assert user["profile"]["skills"] == ["Python"]
        assert "password_hash" not in user["profile"]

        bad = client.put("/api/profile/basic", json={"address": "Pune"}, headers=auth_header(seeker_token))
        assert bad.status_code == 400

    def test_recruiter_profile(self, client, recruiter_token):
        client.put("/api/profile/recruiter", json={"company_name": "Acme", "industry": "Software"},
                   headers=auth_header(recruiter_token))
        resp = client.put("/api/profile/recruiter", json={"company_size": "50-100"},
                          headers=auth_header(recruiter_token))
        assert resp.status_code == 200
        assert resp.get_json()["user"]["profile"]["recruiter_profile"] == {
            "company_name": "Acme", "industry": "Software", "company_size": "50-100",
        }

    def test_recruiter_profile_forbidden_for_seekers(self, client, seeker_token):
        resp = client.put("/api/profile/recruiter", json={"company_name": "Acme"},
                          headers=auth_header(seeker_token))
        assert resp.status_code == 403

    def test_company_logo_upload(self, client, recruiter_token):
        client.put("/api/profile/recruiter", json={"company_name": "Acme"}, headers=auth_header(recruiter_token))
        resp = client.post("/api/profile/company-logo", data={"company_logo": (io.BytesIO(b"img"), "acme.png")},
                           content_type="multipart/form-data", headers=auth_header(recruiter_token))
        data = resp.get_json()
        assert resp.status_code == 200
        assert data["company_logo"].endswith("acme.png")
        assert data["user"]["profile"]["recruiter_profile"]["company_name"] == "Acme"
        assert data["user"]["profile"]["recruiter_profile"]["company_logo"] == data["company_logo"]

        missing = client.post("/api/profile/company-logo", data={}, content_type="multipart/form-data",
                              headers=auth_header(recruiter_token))
        assert missing.status_code == 400

    def test_experience_entries(self, client, seeker_token):
        headers = auth_header(seeker_token)
        first = client.post("/api/profile/experience", json={"company": "Acme", "position": "Intern"},
                            headers=headers).get_json()["entry"]
        client.post("/api/profile/experience", json={"company": "Globex", "position": "Developer"}, headers=headers)

        resp = client.put(f"/api/profile/experience/{first['id']}", json={"position": "Engineer"}, headers=headers)
        experience = resp.get_json()["user"]["profile"]["experience"]
        assert [(e["company"], e["position"]) for e in experience] == [("Acme", "Engineer"), ("Globex", "Developer")]

        resp = client.delete(f"/api/profile/experience/{first['id']}", headers=headers)
        assert [e["company"] for e in resp.get_json()["user"]["profile"]["experience"]] == ["Globex"]

        assert client.delete(f"/api/profile/experience/{first['id']}", headers=headers).status_code == 404
        assert client.put("/api/profile/experience/missing", json={"company": "x"}, headers=headers).status_code == 404
        assert client.post("/api/profile/experience", json={"unknown": 1}, headers=headers).status_code == 400

    def test_education_entries(self, client, seeker_token):
        resp = client.post("/api/profile/education", json={"institution": "IIT", "degree": "B.Tech"},
                           headers=auth_header(seeker_token))
        education = resp.get_json()["user"]["profile"]["education"]
        assert len(education) == 1
        assert education[0]["institution"] == "IIT"
        assert education[0]["id"]

    def test_dashboard_statistics_for_seeker(self, client, seeker_token, post_job):
        job = post_job("Dev", requirements="React")
        client.post("/api/apply", json={"jobId": job["id"]}, headers=auth_header(seeker_token))

        stats = client.get("/api/user/dashboard", headers=auth_header(seeker_token)).get_json()["data"]["statistics"]
        assert stats["total_applications"] == 1
        assert stats["pending"] == 1
        assert stats["in_review"] == 1

    def test_dashboard_statistics_for_recruiter(self, client, recruiter_token, post_job):
        post_job("Dev", requirements="React")
        stats = client.get("/api/user/dashboard", headers=auth_header(recruiter_token)).get_json()["data"]["statistics"]
        assert stats == {"jobs_posted": 1, "applications_received": 0}


class TestJobs:

    def test_skills_extracted_at_creation(self, post_job):
        job = post_job("Fullstack", requirements="React, Node.js and MongoDB")
        assert job["skills"] == ["React", "Node.js", "MongoDB"]
        assert job["posted_by"] == "recruiter@example.com"
        assert job["location"] == {"country": "India", "city": "Bangalore"}
        assert job["type"] == ["Full Time"]

    def test_client_supplied_skills_are_ignored(self, post_job):
        job = post_job("Backend", requirements="Flask", skills=["Rust"])
        assert job["skills"] == ["Flask"]

    def test_job_seekers_cannot_post(self, client, seeker_token):
        resp = client.post("/api/jobs", json={"title": "x"}, headers=auth_header(seeker_token))
        assert resp.status_code == 403
        assert "recruiter or employer" in resp.get_json()["message"]

    def test_title_required(self, client, recruiter_token):
        resp = client.post("/api/jobs", json={"company": "Acme"}, headers=auth_header(recruiter_token))
        assert resp.status_code == 400

    def test_non_text_title_rejected(self, client, recruiter_token):
        resp = client.post("/api/jobs", json={"title": 123}, headers=auth_header(recruiter_token))
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_json_body_accepts_plain_string_fields(self, post_job):
        job = post_job("Dev", requirements="React", type="Remote", experience_level="Senior",
                       location={"city": "Pune"})
        assert job["type"] == ["Remote"]
        assert job["experience_level"] == ["Senior"]
        assert job["location"] == {"country": "India", "city": "Pune"}
        assert job["skills"] == ["React"]

    def test_json_body_with_non_object_location_rejected(self, client, recruiter_token):
        resp = client.post("/api/jobs", json={"title": "Dev", "location": "Pune"},
                           headers=auth_header(recruiter_token))
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid data format"

    def test_multipart_posting_with_json_fields_and_logo(self, client, recruiter_token):
        resp = client.post("/api/jobs", data={
            "title": "Designer",
            "company": "Pixel",
            "requirements": "CSS and HTML",
            "location": '{"country": "India", "city": "Pune"}',
            "type": '["Contract"]',
            "logo": (io.BytesIO(b"\x89PNG fake"), "logo.png"),
        }, content_type="multipart/form-data", headers=auth_header(recruiter_token))
        job = resp.get_json()["job"]
        assert resp.status_code == 200
        assert job["location"]["city"] == "Pune"
        assert job["type"] == ["Contract"]
        assert job["skills"] == ["HTML", "CSS"]
        assert job["logo"].endswith("logo.png")

    def test_malformed_json_field_rejected(self, client, recruiter_token):
        resp = client.post("/api/jobs", data={"title": "x", "salary": "{not json"},
                           content_type="multipart/form-data", headers=auth_header(recruiter_token))
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid data format"

    def test_list_and_get(self, client, post_job):
        first = post_job("First")
        second = post_job("Second")
        jobs = client.get("/api/jobs").get_json()["jobs"]
        assert [j["id"] for j in jobs] == [second["id"], first["id"]]

        assert client.get(f"/api/jobs/{first['id']}").get_json()["job"]["title"] == "First"
        assert client.get("/api/jobs/not-an-id").status_code == 400
        assert client.get(f"/api/jobs/{'0' * 32}").status_code == 404

    def test_my_jobs(self, client, recruiter_token, signup, post_job):
        post_job("Mine")
        other = signup("other@example.com", role="employer")
        client.post("/api/jobs", json={"title": "Theirs"}, headers=auth_header(other))

        jobs = client.get("/api/jobs/my/jobs", headers=auth_header(recruiter_token)).get_json()["jobs"]
        assert [j["title"] for j in jobs] == ["Mine"]

    def test_clear_and_seed(self, client, post_job):
        post_job("Temp")
        resp = client.delete("/api/jobs/clear")
        assert resp.get_json()["deleted_count"] == 1

        resp = client.post("/api/jobs/seed")
        assert resp.get_json()["count"] == 4
        jobs = client.get("/api/jobs").get_json()["jobs"]
        assert all(job["skills"] for job in jobs)

    def test_clear_and_seed_forbidden_in_production(self, tmp_path):
        config = Config(jwt_secret="x", environment="production",
                        database_path=str(tmp_path / "prod.db"), upload_folder=str(tmp_path / "up"))
        client = create_app(config).test_client()
        assert client.delete("/api/jobs/clear").status_code == 403
        assert client.post("/api/jobs/seed").status_code == 403

    def test_logo_upload(self, client, recruiter_token):
        resp = client.post("/api/jobs/upload-logo", data={"logo": (io.BytesIO(b"img"), "brand.jpg")},
                           content_type="multipart/form-data", headers=auth_header(recruiter_token))
        assert resp.status_code == 200
        assert resp.get_json()["logo_filename"].endswith("brand.jpg")

        bad = client.post("/api/jobs/upload-logo", data={"logo": (io.BytesIO(b"x"), "brand.exe")},
                          content_type="multipart/form-data", headers=auth_header(recruiter_token))
        assert bad.status_code == 400

    def test_same_name_uploads_do_not_overwrite(self, client, recruiter_token):
        paths = []
        for content in (b"first", b"second"):
            resp = client.post("/api/jobs/upload-logo", data={"logo": (io.BytesIO(content), "brand.png")},
                               content_type="multipart/form-data", headers=auth_header(recruiter_token))
            paths.append(resp.get_json()["logo_path"])

        assert paths[0] != paths[1]
        with open(paths[0], "rb") as f:
            assert f.read() == b"first"


class TestApplications:

    def test_apply_once(self, client, seeker_token, post_job):
        job = post_job("Dev")
        resp = client.post("/api/apply", json={"jobId": job["id"], "message": "Hire me"},
                           headers=auth_header(seeker_token))
        assert resp.get_json() == {"success": True, "message": "Application submitted!"}

        again = client.post("/api/apply", json={"jobId": job["id"]}, headers=auth_header(seeker_token))
        assert again.status_code == 400
        assert again.get_json()["message"] == "Already applied to this job."

    def test_apply_validation(self, client, seeker_token):
        assert client.post("/api/apply", json={}, headers=auth_header(seeker_token)).status_code == 400
        resp = client.post("/api/apply", json={"jobId": "f" * 32}, headers=auth_header(seeker_token))
        assert resp.status_code == 404

    def test_apply_with_resume_file(self, client, seeker_token, post_job):
        job = post_job("Dev")
        resp = client.post("/api/apply", data={
            "job_id": job["id"],
            "resume": (io.BytesIO(b"Python developer"), "cv.txt"),
        }, content_type="multipart/form-data", headers=auth_header(seeker_token))
        assert resp.status_code == 200

        apps = client.get("/api/apply/my-applications", headers=auth_header(seeker_token)).get_json()["applications"]
        assert apps[0]["resume_file_name"] == "cv.txt"
        assert apps[0]["job"]["title"] == "Dev"
        assert apps[0]["status"] == "pending"
        assert apps[0]["stage"] == "Resume Screening"

    def test_check_application(self, client, seeker_token, post_job):
        job = post_job("Dev")
        url = f"/api/apply/check/{job['id']}"
        assert client.get(url, headers=auth_header(seeker_token)).get_json()["has_applied"] is False
        client.post("/api/apply", json={"jobId": job["id"]}, headers=auth_header(seeker_token))
        assert client.get(url, headers=auth_header(seeker_token)).get_json()["has_applied"] is True

    def test_job_applications_visible_to_poster_only(self, client, seeker_token, recruiter_token, post_job):
        job = post_job("Dev")
        client.post("/api/apply", json={"jobId": job["id"]}, headers=auth_header(seeker_token))

        url = f"/api/jobs/{job['id']}/applications"
        apps = client.get(url, headers=auth_header(recruiter_token)).get_json()["applications"]
        assert len(apps) == 1
        assert apps[0]["applicant"]["email"] == "seeker@example.com"

        assert client.get(url, headers=auth_header(seeker_token)).status_code == 403


class TestUploads:

    def test_resume_upload_stores_parsed_skills(self, client, seeker_token):
        resp = client.post("/api/upload/resume", data={
            "resume": (io.BytesIO(b"Shipped React apps and Docker images"), "cv.txt"),
        }, content_type="multipart/form-data", headers=auth_header(seeker_token))
        data = resp.get_json()
        assert resp.status_code == 200
        assert data["parsed_data"]["skills"] == ["React", "Docker"]

        skills = client.get("/api/profile/skills", headers=auth_header(seeker_token)).get_json()
        assert skills["skills"] == ["React", "Docker"]
        assert skills["source"] == "resume"

    def test_resume_upload_does_not_replace_explicit_skills(self, client, seeker_token):
        client.put("/api/profile/jobseeker", json={"skills": ["Python"]}, headers=auth_header(seeker_token))
        client.post("/api/upload/resume", data={"resume": (io.BytesIO(b"React"), "cv.txt")},
                    content_type="multipart/form-data", headers=auth_header(seeker_token))

        skills = client.get("/api/profile/skills", headers=auth_header(seeker_token)).get_json()
        assert skills["skills"] == ["Python"]
        assert skills["source"] == "explicit"

    def test_resume_upload_validation(self, client, seeker_token):
        missing = client.post("/api/upload/resume", data={}, content_type="multipart/form-data",
                              headers=auth_header(seeker_token))
        assert missing.status_code == 400
        assert missing.get_json()["message"] == "No file uploaded"

        wrong = client.post("/api/upload/resume", data={"resume": (io.BytesIO(b"x"), "cv.exe")},
                            content_type="multipart/form-data", headers=auth_header(seeker_token))
        assert wrong.status_code == 400

    def test_oversized_upload_rejected(self, tmp_path):
        config = Config(jwt_secret="x", max_upload_mb=1,
                        database_path=str(tmp_path / "big.db"), upload_folder=str(tmp_path / "up"))
        client = create_app(config).test_client()
        token = client.post("/api/auth/signup", json={"email": "big@example.com", "password": "secret123"}
                            ).get_json()["token"]

        resp = client.post("/api/upload/resume",
                           data={"resume": (io.BytesIO(b"x" * (2 * 1024 * 1024)), "cv.txt")},
                           content_type="multipart/form-data", headers=auth_header(token))
        assert resp.status_code == 413
        assert "Maximum size is 1MB" in resp.get_json()["message"]


class TestRecommendations:

    def test_no_skills_yields_empty_list_with_message(self, client, seeker_token, post_job):
        post_job("Fullstack", requirements="React, Node.js and MongoDB")
        data = client.get("/api/job-recommendations", headers=auth_header(seeker_token)).get_json()
        assert data["success"] is True
        assert data["recommendations"] == []
        assert data["message"] == "No resume or skills added yet"
        assert data["skill_source"] == "none"

    def test_ranked_matches_for_explicit_skills(self, client, seeker_token, post_job):
        fullstack = post_job("Fullstack", requirements="React, Node.js and MongoDB")
        post_job("Backend", requirements="Java with Spring Boot")
        client.put("/api/profile/jobseeker", json={"skills": ["React", "Node.js"]},
                   headers=auth_header(seeker_token))

        data = client.get("/api/job-recommendations", headers=auth_header(seeker_token)).get_json()
        assert [r["id"] for r in data["recommendations"]] == [fullstack["id"]]
        assert data["recommendations"][0]["match_percentage"] == 67
        assert data["recommendations"][0]["title"] == "Fullstack"
        assert data["user_skills"] == ["React", "Node.js"]
        assert data["skill_source"] == "explicit"

    def test_resume_skills_used_when_no_explicit_skills(self, client, seeker_token, post_job):
        post_job("Ops", requirements="Docker")
        client.post("/api/upload/resume", data={"resume": (io.BytesIO(b"Docker everywhere"), "cv.txt")},
                    content_type="multipart/form-data", headers=auth_header(seeker_token))

        data = client.get("/api/job-recommendations", headers=auth_header(seeker_token)).get_json()
        assert data["skill_source"] == "resume"
        assert data["recommendations"][0]["match_percentage"] == 100

    def test_no_matches_message(self, client, seeker_token, post_job):
        post_job("Backend", requirements="Java with Spring Boot")
        client.put("/api/profile/jobseeker", json={"skills": ["Python"]}, headers=auth_header(seeker_token))
        data = client.get("/api/job-recommendations", headers=auth_header(seeker_token)).get_json()
        assert data["recommendations"] == []
        assert data["message"] == "No matching jobs found"

    def test_requires_auth(self, client):
        assert client.get("/api/job-recommendations").status_code == 401

    def test_job_loading_failure_fails_whole_request(self, client, seeker_token, post_job, monkeypatch):
        post_job("Ops", requirements="Docker")
        client.put("/api/profile/jobseeker", json={"skills": ["Docker"]}, headers=auth_header(seeker_token))

        def broken_find(self, collection, *args, **kwargs):
            raise DatabaseError("disk I/O error")

        monkeypatch.setattr(DatabaseManager, "find", broken_find)
        resp = client.get("/api/job-recommendations", headers=auth_header(seeker_token))
        data = resp.get_json()
        assert resp.status_code == 500
        assert data["success"] is False
        assert data["message"] == "Error getting recommendations"
        assert "recommendations" not in data


def test_health(client):
    data = client.get("/api/health").get_json()
    assert data["success"] is True
    assert data["environment"] == "testing"


def test_unknown_route_returns_json_404(client):
    resp = client.get("/api/nowhere")
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False
    assert "GET /api/health" in resp.get_json()["available_endpoints"]
