"""
Duplication endpoint tests - request validation, the background job and resume
"""
from sqlalchemy import select, func

from backend.api.auth import create_access_token
from backend.config import get_settings
from backend.models import Project, ProjectMember, ProjectRole, ProjectStatus, Task
from backend.services.duplication import cloners, handler, jobs


async def _project_count(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count(Project.id)))).scalar()


# ===================== SUCCESS =====================


async def test_duplicate_returns_immediately_then_completes(client, session_factory, full_graph):
    source_id = full_graph["project"].id
    response = await client.post("/api/projects/duplicate", json={
        "projectId": source_id,
        "newProjectName": "Alpha Copy",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "duplicating"
    assert body["message"].startswith("Project duplication started")
    new_id = body["newProjectId"]
    assert new_id != source_id

    await jobs.drain()

    project = (await client.get(f"/api/projects/{new_id}")).json()
    assert project["status"] == "active"
    assert project["name"] == "Alpha Copy"
    assert project["description"] == "Flagship"
    assert project["duplicated_from_id"] == source_id
    assert project["theme_colors"] == {"primary": "#111111", "secondary": "#222222"}
    assert project["logo_url"] == "https://cdn.example.com/alpha.png"

    copy_summary = (await client.get(f"/api/projects/{new_id}/summary")).json()
    source_summary = (await client.get(f"/api/projects/{source_id}/summary")).json()
    for key in ("departments", "department_leads", "members", "elements", "tasks",
                "task_dependencies", "document_folders", "document_links",
                "chat_settings", "chat_rooms"):
        assert copy_summary[key] == source_summary[key], key


async def test_name_is_matched_exactly(client, alpha):
    # "Alpha" exists; "Alpha " is a different name and is kept as given
    response = await client.post("/api/projects/duplicate", json={
        "projectId": alpha["project"].id,
        "newProjectName": "Alpha ",
    })
    assert response.status_code == 200
    await jobs.drain()

    project = (await client.get(f"/api/projects/{response.json()['newProjectId']}")).json()
    assert project["name"] == "Alpha "
    assert project["status"] == "active"

    lower = await client.post("/api/projects/duplicate", json={
        "projectId": alpha["project"].id,
        "newProjectName": "alpha",
    })
    assert lower.status_code == 200
    await jobs.drain()


async def test_member_can_duplicate_shared_project(client, db_session, seed_data, alpha):
    teammate = seed_data["teammate"]
    db_session.add(ProjectMember(project_id=alpha["project"].id, user_id=teammate.id,
                                 role=ProjectRole.MEMBER))
    await db_session.commit()

    token = create_access_token(data={"sub": teammate.email})
    response = await client.post(
        "/api/projects/duplicate",
        json={"projectId": alpha["project"].id, "newProjectName": "My Alpha"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200
    await jobs.drain()

    project = (await client.get(
        f"/api/projects/{response.json()['newProjectId']}",
        headers={"Authorization": f"Bearer {token}"},
    )).json()
    assert project["owner_id"] == teammate.id
    assert project["status"] == "active"


# ===================== REJECTIONS =====================


async def test_missing_parameters(client, session_factory, alpha):
    before = await _project_count(session_factory)

    for body in ({}, {"projectId": alpha["project"].id}, {"newProjectName": "X"},
                 {"projectId": alpha["project"].id, "newProjectName": "   "}):
        response = await client.post("/api/projects/duplicate", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required parameters"}

    assert await _project_count(session_factory) == before
    assert jobs.running_count() == 0


async def test_wrong_field_type(client, session_factory, alpha):
    before = await _project_count(session_factory)

    response = await client.post("/api/projects/duplicate", json={
        "projectId": alpha["project"].id,
        "newProjectName": 123,
    })
    assert response.status_code == 422
    assert list(response.json()) == ["error"]
    assert "newProjectName" in response.json()["error"]
    assert await _project_count(session_factory) == before


async def test_body_is_not_json(client, session_factory, alpha):
    before = await _project_count(session_factory)

    response = await client.post(
        "/api/projects/duplicate",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 422
    assert list(response.json()) == ["error"]
    assert response.json()["error"].startswith("Invalid request")
    assert await _project_count(session_factory) == before
    assert jobs.running_count() == 0


async def test_unexpected_failure_before_shell(monkeypatch, client, session_factory, alpha):
    async def broken_lookup(db, owner_id, name):
        raise ValueError("lookup exploded")

    monkeypatch.setattr(handler, "find_owned_project_by_name", broken_lookup)
    before = await _project_count(session_factory)

    response = await client.post("/api/projects/duplicate", json={
        "projectId": alpha["project"].id,
        "newProjectName": "Alpha Copy",
    })
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to start duplication: ValueError"}
    assert await _project_count(session_factory) == before
    assert jobs.running_count() == 0


async def test_name_conflict_creates_nothing(client, session_factory, alpha):
    before = await _project_count(session_factory)

    response = await client.post("/api/projects/duplicate", json={
        "projectId": alpha["project"].id,
        "newProjectName": "Alpha",
    })
    assert response.status_code == 409
    assert "already exists" in response.json()["error"]
    assert await _project_count(session_factory) == before
    assert jobs.running_count() == 0


async def test_conflict_with_finished_copy(client, alpha):
    payload = {"projectId": alpha["project"].id, "newProjectName": "Alpha Copy"}
    assert (await client.post("/api/projects/duplicate", json=payload)).status_code == 200
    await jobs.drain()

    response = await client.post("/api/projects/duplicate", json=payload)
    assert response.status_code == 409


async def test_unknown_project(client):
    response = await client.post("/api/projects/duplicate", json={
        "projectId": "00000000-0000-0000-0000-000000000000",
        "newProjectName": "Ghost Copy",
    })
    assert response.status_code == 404
    assert response.json() == {"error": "Project not found"}


async def test_invisible_project_is_not_found(client, db_session, seed_data):
    private = Project(name="Secret", owner_id=seed_data["outsider"].id)
    db_session.add(private)
    await db_session.commit()

    response = await client.post("/api/projects/duplicate", json={
        "projectId": private.id,
        "newProjectName": "Stolen",
    })
    assert response.status_code == 404


async def test_requires_authentication(unauth_client, alpha):
    response = await unauth_client.post("/api/projects/duplicate", json={
        "projectId": alpha["project"].id,
        "newProjectName": "Alpha Copy",
    })
    assert response.status_code == 401
    assert response.json()["error"].startswith("Unauthorized")


async def test_disabled_by_configuration(monkeypatch, client, session_factory, alpha):
    monkeypatch.setattr(get_settings(), "DUPLICATION_ENABLED", False)
    before = await _project_count(session_factory)

    response = await client.post("/api/projects/duplicate", json={
        "projectId": alpha["project"].id,
        "newProjectName": "Alpha Copy",
    })
    assert response.status_code == 503
    assert "error" in response.json()
    assert await _project_count(session_factory) == before


# ===================== FAILURE & RESUME =====================


async def test_failed_job_leaves_error_status(monkeypatch, client, alpha):
    async def store_down(ctx):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(cloners, "clone_tasks", store_down)

    response = await client.post("/api/projects/duplicate", json={
        "projectId": alpha["project"].id,
        "newProjectName": "Alpha Copy",
    })
    # The request itself succeeds; the failure only shows in the project status
    assert response.status_code == 200
    await jobs.drain()

    new_id = response.json()["newProjectId"]
    assert (await client.get(f"/api/projects/{new_id}")).json()["status"] == "error"
    summary = (await client.get(f"/api/projects/{new_id}/summary")).json()
    assert summary["departments"] == 1
    assert summary["elements"] == 1
    assert summary["tasks"] == 0


async def test_resume_after_failure(monkeypatch, client, session_factory, alpha):
    payload = {"projectId": alpha["project"].id, "newProjectName": "Alpha Copy"}

    async def store_down(ctx):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(cloners, "clone_tasks", store_down)
    first = await client.post("/api/projects/duplicate", json=payload)
    await jobs.drain()
    monkeypatch.undo()

    second = await client.post("/api/projects/duplicate", json=payload)
    assert second.status_code == 200
    body = second.json()
    assert body["newProjectId"] == first.json()["newProjectId"]
    assert body["status"] == "duplicating"
    assert body["message"].startswith("Resuming project duplication")
    await jobs.drain()

    new_id = body["newProjectId"]
    assert (await client.get(f"/api/projects/{new_id}")).json()["status"] == "active"
    summary = (await client.get(f"/api/projects/{new_id}/summary")).json()
    assert summary["departments"] == 1
    assert summary["elements"] == 1
    assert summary["tasks"] == 2

    async with session_factory() as session:
        copies = (await session.execute(
            select(func.count(Project.id)).where(Project.name == "Alpha Copy")
        )).scalar()
        assert copies == 1
        tasks = (await session.execute(select(Task).where(Task.project_id == new_id))).scalars().all()
        by_title = {t.title: t for t in tasks}
        assert by_title["Build endpoint"].parent_task_id == by_title["Design API"].id


async def test_resume_requires_same_source(client, db_session, seed_data, alpha):
    other = Project(name="Other", owner_id=seed_data["user"].id)
    db_session.add(other)
    await db_session.commit()
    db_session.add(Project(name="Alpha Copy", owner_id=seed_data["user"].id,
                           status=ProjectStatus.ERROR, duplicated_from_id=other.id))
    await db_session.commit()

    response = await client.post("/api/projects/duplicate", json={
        "projectId": alpha["project"].id,
        "newProjectName": "Alpha Copy",
    })
    assert response.status_code == 409


# ===================== HEALTH =====================


async def test_health_reports_running_jobs(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "duplication_jobs": 0}
