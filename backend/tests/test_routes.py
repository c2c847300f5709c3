"""
HTTP API: projects, tasks, dependencies and schedule runs.
"""

import uuid

import pytest

from app.models import Dependency, Task


async def create_project(client, **fields):
    body = {"name": "Kitchen remodel", **fields}
    response = await client.post("/projects/", json=body)
    assert response.status_code == 201
    return response.json()


async def create_task(client, project_id, title, duration=1, order=0):
    response = await client.post("/tasks/", json={
        "title": title,
        "duration_days": duration,
        "order": order,
        "project_id": project_id,
    })
    assert response.status_code == 201
    return response.json()


async def link(client, predecessor, successor, dep_type="FS"):
    return await client.post("/dependencies/", json={
        "predecessor_id": predecessor["id"],
        "successor_id": successor["id"],
        "type": dep_type,
    })


async def seed(client, **project_fields):
    """
    A (3 days) --FS--> B (2 days)
    A          --SS--> C (1 day)
    """
    project = await create_project(client, **project_fields)
    a = await create_task(client, project["id"], "A", 3, order=0)
    b = await create_task(client, project["id"], "B", 2, order=1)
    c = await create_task(client, project["id"], "C", 1, order=2)
    assert (await link(client, a, b, "FS")).status_code == 201
    assert (await link(client, a, c, "SS")).status_code == 201
    return project, a, b, c


class TestHealth:

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestScheduleRoute:

    async def test_forward_schedule(self, client):
        project, a, b, c = await seed(client, anchor_date="2024-01-01")

        response = await client.post(f"/projects/{project['id']}/schedule", json={})

        assert response.status_code == 200
        data = response.json()
        assert data["direction"] == "start"
        assert data["project_start"] == "2024-01-01"
        assert data["project_end"] == "2024-01-05"
        assert data["is_at_risk"] is False
        assert data["persisted"] is True
        by_id = {t["task_id"]: t for t in data["tasks"]}
        assert by_id[b["id"]]["start_date"] == "2024-01-04"
        assert by_id[c["id"]]["end_date"] == "2024-01-01"
        assert data["tasks"][-1]["task_id"] == b["id"]

        stored = (await client.get(f"/tasks/{b['id']}")).json()
        assert stored["start_date"] == "2024-01-04"
        assert stored["due_date"] == "2024-01-05"

        stored_project = (await client.get(f"/projects/{project['id']}")).json()
        assert stored_project["calculated_end_date"] == "2024-01-05"

    async def test_backward_override_with_risk_reason(self, client):
        project, a, b, c = await seed(client, anchor_date="2024-01-01")

        response = await client.post(
            f"/projects/{project['id']}/schedule",
            json={"anchor_date": "2000-01-14", "schedule_from": "end"},
        )

        data = response.json()
        assert data["direction"] == "end"
        assert data["project_end"] == "2000-01-14"
        assert data["is_at_risk"] is True
        assert data["risk_reason"] == "required start date is in the past"

        stored_project = (await client.get(f"/projects/{project['id']}")).json()
        assert stored_project["anchor_date"] == "2000-01-14"
        assert stored_project["schedule_from"] == "end"
        assert stored_project["is_at_risk"] is True

    async def test_preview_does_not_persist(self, client):
        project, a, b, c = await seed(client, anchor_date="2024-01-01")

        response = await client.post(
            f"/projects/{project['id']}/schedule", json={"persist": False}
        )

        assert response.json()["persisted"] is False
        stored = (await client.get(f"/tasks/{b['id']}")).json()
        assert stored["start_date"] is None

    async def test_project_without_anchor(self, client):
        project = await create_project(client)

        response = await client.post(f"/projects/{project['id']}/schedule", json={})

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_input"

    async def test_unknown_project(self, client):
        response = await client.post(f"/projects/{uuid.uuid4()}/schedule", json={})

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    async def test_direction_override_uses_stored_anchor(self, client):
        """
        Stored anchor Fri 2024-01-12, stored direction start; body asks for end.
        Expected: backward pass ending on the stored anchor
        """
        project, a, b, c = await seed(client, anchor_date="2024-01-12")

        response = await client.post(
            f"/projects/{project['id']}/schedule", json={"schedule_from": "end"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["direction"] == "end"
        assert data["project_end"] == "2024-01-12"
        by_id = {t["task_id"]: t for t in data["tasks"]}
        assert by_id[b["id"]]["start_date"] == "2024-01-11"

        stored_project = (await client.get(f"/projects/{project['id']}")).json()
        assert stored_project["schedule_from"] == "end"
        assert stored_project["anchor_date"] == "2024-01-12"

    async def test_direction_override_without_any_anchor(self, client):
        project = await create_project(client)

        response = await client.post(
            f"/projects/{project['id']}/schedule", json={"schedule_from": "end"}
        )

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_input"

    async def test_stored_cycle(self, client, session_factory):
        """A cycle written around the API still fails the run with 400."""
        project, a, b, c = await seed(client, anchor_date="2024-01-01")
        async with session_factory() as session:
            session.add(Dependency(predecessor_id=uuid.UUID(b["id"]), successor_id=uuid.UUID(a["id"])))
            await session.commit()

        response = await client.post(f"/projects/{project['id']}/schedule", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "circular_dependency"
        stored = (await client.get(f"/projects/{project['id']}")).json()
        assert stored["calculated_start_date"] is None

    async def test_stored_zero_duration(self, client, session_factory):
        project, a, b, c = await seed(client, anchor_date="2024-01-01")
        async with session_factory() as session:
            session.add(Task(title="Empty", duration_days=0, project_id=uuid.UUID(project["id"])))
            await session.commit()

        response = await client.post(f"/projects/{project['id']}/schedule", json={})

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_input"


class TestDependencyRoutes:

    async def test_cycle_rejected(self, client):
        project, a, b, c = await seed(client)

        response = await link(client, b, a)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "circular_dependency"
        assert a["id"] in body["message"]
        path = body["details"][0]["msg"]
        assert a["id"] in path and b["id"] in path

    async def test_self_dependency_rejected(self, client):
        project, a, b, c = await seed(client)

        response = await link(client, a, a, "SS")

        assert response.status_code == 400
        assert response.json()["error"] == "self_dependency"

    async def test_duplicate_rejected(self, client):
        project, a, b, c = await seed(client)

        response = await link(client, a, b, "SS")

        assert response.status_code == 409
        assert response.json()["error"] == "duplicate_dependency"

    async def test_cross_project_rejected(self, client):
        project, a, b, c = await seed(client)
        other = await create_project(client, name="Garage")
        outsider = await create_task(client, other["id"], "Outsider")

        response = await link(client, outsider, b)

        assert response.status_code == 400
        assert response.json()["error"] == "cross_project_dependency"

    async def test_unknown_type_rejected(self, client):
        project, a, b, c = await seed(client)

        response = await link(client, b, c, "FF")

        assert response.status_code == 422

    async def test_negative_lag_rejected(self, client):
        project, a, b, c = await seed(client)

        response = await client.post("/dependencies/", json={
            "predecessor_id": b["id"],
            "successor_id": c["id"],
            "lag_days": -2,
        })

        assert response.status_code == 422
        listed = (await client.get("/dependencies/", params={"task_id": c["id"]})).json()
        assert [d["predecessor_id"] for d in listed] == [a["id"]]

    async def test_list_and_delete(self, client):
        project, a, b, c = await seed(client)

        listed = (await client.get("/dependencies/", params={"project_id": project["id"]})).json()
        assert {(d["predecessor_id"], d["successor_id"], d["type"]) for d in listed} == {
            (a["id"], b["id"], "FS"),
            (a["id"], c["id"], "SS"),
        }

        response = await client.delete(f"/dependencies/{a['id']}/{b['id']}")
        assert response.status_code == 204

        listed = (await client.get("/dependencies/", params={"task_id": b["id"]})).json()
        assert listed == []


class TestTaskRoutes:

    @pytest.mark.parametrize("duration", [0, -2])
    async def test_non_positive_duration_rejected(self, client, duration):
        project = await create_project(client)

        response = await client.post("/tasks/", json={
            "title": "Bad", "duration_days": duration, "project_id": project["id"],
        })

        assert response.status_code == 422

    async def test_task_in_unknown_project(self, client):
        response = await client.post("/tasks/", json={"title": "Orphan", "project_id": str(uuid.uuid4())})
        assert response.status_code == 404

    @pytest.mark.parametrize("field", ["title", "duration_days", "order"])
    async def test_null_for_required_task_field_rejected(self, client, field):
        project, a, b, c = await seed(client)

        response = await client.patch(f"/tasks/{a['id']}", json={field: None})

        assert response.status_code == 422
        stored = (await client.get(f"/tasks/{a['id']}")).json()
        assert (stored["title"], stored["duration_days"], stored["order"]) == ("A", 3, 0)

    async def test_list_is_ordered(self, client):
        project, a, b, c = await seed(client)

        listed = (await client.get("/tasks/", params={"project_id": project["id"]})).json()

        assert [t["title"] for t in listed] == ["A", "B", "C"]

    async def test_delete_removes_its_dependencies(self, client):
        project, a, b, c = await seed(client)

        response = await client.delete(f"/tasks/{a['id']}")

        assert response.status_code == 204
        listed = (await client.get("/dependencies/", params={"project_id": project["id"]})).json()
        assert listed == []


class TestRescheduleQueue:

    async def test_edits_without_anchor_are_not_queued(self, client, enqueued):
        await seed(client)
        assert enqueued == []

    async def test_edits_with_anchor_are_queued(self, client, enqueued):
        project, a, b, c = await seed(client, anchor_date="2024-01-01")

        # three tasks and two dependencies
        assert len(enqueued) == 5
        assert {job[0] for job in enqueued} == {project["id"]}

    async def test_only_latest_job_is_current(self, client, enqueued):
        project, a, b, c = await seed(client, anchor_date="2024-01-01")

        response = await client.patch(f"/tasks/{b['id']}", json={"duration_days": 4})
        assert response.status_code == 200

        current = (await client.get(f"/projects/{project['id']}")).json()["calc_version_id"]
        versions = [version for _, version in enqueued]
        assert versions[-1] == current
        assert current not in versions[:-1]

    async def test_anchor_change_is_queued(self, client, enqueued):
        project = await create_project(client)

        response = await client.patch(f"/projects/{project['id']}", json={"anchor_date": "2024-03-04"})

        assert response.status_code == 200
        assert enqueued == [(project["id"], response.json()["calc_version_id"])]

    async def test_rename_is_not_queued(self, client, enqueued):
        project = await create_project(client, anchor_date="2024-03-04")

        await client.patch(f"/projects/{project['id']}", json={"name": "Renamed"})

        assert enqueued == []

    @pytest.mark.parametrize("field", ["schedule_from", "name"])
    async def test_null_for_required_project_field_rejected(self, client, enqueued, field):
        project = await create_project(client, anchor_date="2024-03-04")

        response = await client.patch(f"/projects/{project['id']}", json={field: None})

        assert response.status_code == 422
        assert enqueued == []
        stored = (await client.get(f"/projects/{project['id']}")).json()
        assert stored["schedule_from"] == "start"
        assert stored["name"] == "Kitchen remodel"

    async def test_clearing_deadline_is_allowed(self, client, enqueued):
        project = await create_project(client, anchor_date="2024-03-04", deadline="2024-04-01")

        response = await client.patch(f"/projects/{project['id']}", json={"deadline": None})

        assert response.status_code == 200
        assert response.json()["deadline"] is None
        assert len(enqueued) == 1


class TestProjectRoutes:

    async def test_templates_listed_separately(self, client):
        await create_project(client, name="Live")
        await create_project(client, name="Blueprint", is_template=True)

        projects = (await client.get("/projects/")).json()
        templates = (await client.get("/projects/templates")).json()

        assert [p["name"] for p in projects] == ["Live"]
        assert [t["name"] for t in templates] == ["Blueprint"]

    async def test_from_template(self, client):
        template, a, b, c = await seed(client, name="Remodel template", is_template=True)

        response = await client.post("/projects/from-template", json={
            "template_id": template["id"],
            "name": "Smith kitchen",
            "anchor_date": "2024-01-01",
        })

        assert response.status_code == 201
        project = response.json()
        assert project["is_template"] is False
        assert project["calculated_start_date"] == "2024-01-01"
        assert project["calculated_end_date"] == "2024-01-05"

        tasks = (await client.get("/tasks/", params={"project_id": project["id"]})).json()
        assert [t["start_date"] for t in tasks] == ["2024-01-01", "2024-01-04", "2024-01-01"]

    async def test_from_non_template(self, client):
        project = await create_project(client)

        response = await client.post("/projects/from-template", json={
            "template_id": project["id"],
            "name": "Copy",
            "anchor_date": "2024-01-01",
        })

        assert response.status_code == 400
        assert response.json()["error"] == "not_a_template"

    async def test_delete_project(self, client):
        project, a, b, c = await seed(client)

        response = await client.delete(f"/projects/{project['id']}")

        assert response.status_code == 204
        assert (await client.get(f"/projects/{project['id']}")).status_code == 404
        assert (await client.get(f"/tasks/{a['id']}")).status_code == 404
        assert (await client.get("/dependencies/", params={"task_id": a["id"]})).json() == []
