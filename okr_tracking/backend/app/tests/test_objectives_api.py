import pytest

from app.models import Objective, ObjectiveKPILink

API = "/api/v1/objectives"


def payload(**overrides):
    data = {"title": "Objetivo", "level": "individual", "year": 2025}
    data.update(overrides)
    return data


# ========== CREACIÓN ==========
def test_admin_creates_company_objective(client, admin, auth_headers):
    response = client.post(f"{API}/", json=payload(level="company"), headers=auth_headers(admin))

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["owner_id"] == admin.id
    assert body["data"]["created_by"] == admin.id
    assert body["data"]["progress_percentage"] == 0.0
    assert body["data"]["is_featured"] is False


@pytest.mark.parametrize(
    "role, level",
    [
        ("employee", "team"),
        ("employee", "company"),
        ("manager", "company"),
    ],
)
def test_role_level_ceiling(client, make_user, auth_headers, role, level):
    user = make_user(f"user_{role}", role=role, department="Ventas")

    response = client.post(f"{API}/", json=payload(level=level), headers=auth_headers(user))

    assert response.status_code == 403


def test_manager_creates_unit_objective(client, manager, auth_headers):
    response = client.post(f"{API}/", json=payload(level="unit"), headers=auth_headers(manager))

    assert response.status_code == 201
    assert response.json()["data"]["department"] == "Ventas"


@pytest.mark.parametrize(
    "parent_level, child_level",
    [
        ("company", "company"),
        ("unit", "company"),
        ("division", "unit"),
        ("team", "team"),
        ("individual", "team"),
    ],
)
def test_child_must_be_deeper_than_parent(client, admin, auth_headers, make_objective, parent_level, child_level):
    parent = make_objective("Padre", parent_level, admin)

    response = client.post(
        f"{API}/",
        json=payload(level=child_level, parent_id=parent.id),
        headers=auth_headers(admin),
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["detail"] == f"Jerarquía inválida: {child_level} no puede ser hijo de {parent_level}"


def test_create_with_missing_parent(client, admin, auth_headers):
    response = client.post(
        f"{API}/",
        json=payload(level="unit", parent_id=999),
        headers=auth_headers(admin),
    )

    assert response.status_code == 404
    assert response.json()["detail"] == "Objetivo padre no encontrado"


def test_create_rejects_inverted_dates(client, admin, auth_headers):
    response = client.post(
        f"{API}/",
        json=payload(start_date="2025-06-01", end_date="2025-01-01"),
        headers=auth_headers(admin),
    )

    assert response.status_code == 422


def test_requires_authentication(client):
    assert client.get(f"{API}/").status_code == 401


# ========== LECTURA ==========
def test_employee_lists_only_own(client, employee, other_employee, auth_headers, make_objective):
    own = make_objective("Propio", "individual", employee)
    make_objective("Ajeno", "individual", other_employee)

    response = client.get(f"{API}/", params={"owner_id": other_employee.id}, headers=auth_headers(employee))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert [item["id"] for item in body["data"]] == [own.id]


def test_manager_list_defaults_to_department(client, manager, employee, other_employee, auth_headers, make_objective):
    ventas = make_objective("Ventas", "individual", employee)
    make_objective("Finanzas", "individual", other_employee)

    response = client.get(f"{API}/", headers=auth_headers(manager))

    assert [item["id"] for item in response.json()["data"]] == [ventas.id]


def test_list_filters_and_search(client, admin, auth_headers, make_objective):
    make_objective("Reducir costos", "company", admin, year=2025)
    target = make_objective("Aumentar retención", "unit", admin, year=2026)

    response = client.get(
        f"{API}/",
        params={"year": 2026, "search": "retención", "level": "unit"},
        headers=auth_headers(admin),
    )

    body = response.json()
    assert body["total"] == 1
    assert body["data"][0]["id"] == target.id
    assert body["metadata"]["filters"] == {"year": 2026, "search": "retención", "level": "unit"}


def test_list_pagination(client, admin, auth_headers, make_objective):
    for index in range(5):
        make_objective(f"Objetivo {index}", "company", admin)

    response = client.get(
        f"{API}/",
        params={"skip": 1, "limit": 2, "order_by": "id", "order_dir": "asc"},
        headers=auth_headers(admin),
    )

    body = response.json()
    assert body["total"] == 5
    assert [item["title"] for item in body["data"]] == ["Objetivo 1", "Objetivo 2"]


def test_employee_cannot_view_foreign_objective(client, employee, other_employee, auth_headers, make_objective):
    foreign = make_objective("Ajeno", "individual", other_employee)

    response = client.get(f"{API}/{foreign.id}", headers=auth_headers(employee))

    assert response.status_code == 403


def test_get_objective_detail(client, admin, auth_headers, make_objective, make_kpi, link):
    root = make_objective("Empresa", "company", admin)
    unit = make_objective("Unidad", "unit", admin, parent=root)
    make_objective("División", "division", admin, parent=unit)
    link(unit, make_kpi(admin, progress=10.0))

    response = client.get(f"{API}/{unit.id}", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["parent_title"] == "Empresa"
    assert body["data"]["owner_name"] == "Admin"
    assert body["data"]["children_count"] == 1
    assert body["data"]["kpi_count"] == 1
    assert "move" in body["metadata"]["actions"]


def test_get_missing_objective(client, admin, auth_headers):
    response = client.get(f"{API}/404", headers=auth_headers(admin))

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "detail": "Objetivo no encontrado",
        "status_code": 404,
        "metadata": {"error_type": "NotFoundError"},
    }


# ========== ACTUALIZACIÓN ==========
def test_employee_cannot_update_foreign(client, employee, other_employee, auth_headers, make_objective):
    foreign = make_objective("Ajeno", "individual", other_employee)

    response = client.put(f"{API}/{foreign.id}", json={"title": "x"}, headers=auth_headers(employee))

    assert response.status_code == 403


def test_manager_updates_department_objective(client, manager, employee, auth_headers, make_objective):
    objective = make_objective("Del equipo", "individual", employee)

    response = client.put(
        f"{API}/{objective.id}",
        json={"title": "Renombrado", "is_featured": True, "progress_percentage": 35.0},
        headers=auth_headers(manager),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Renombrado"
    assert data["is_featured"] is True
    assert data["progress_percentage"] == 35.0


def test_manager_cannot_update_other_department(client, manager, other_employee, auth_headers, make_objective):
    objective = make_objective("Finanzas", "individual", other_employee)

    response = client.put(f"{API}/{objective.id}", json={"title": "x"}, headers=auth_headers(manager))

    assert response.status_code == 403


def test_update_parent_rejects_cycle(client, admin, auth_headers, make_objective):
    root = make_objective("Empresa", "company", admin)
    unit = make_objective("Unidad", "unit", admin, parent=root)

    response = client.put(f"{API}/{root.id}", json={"parent_id": unit.id}, headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()["detail"] == "No se puede crear una referencia circular"


def test_update_parent_checks_levels(client, admin, auth_headers, make_objective):
    unit = make_objective("Unidad", "unit", admin)
    other = make_objective("Otra unidad", "unit", admin)

    response = client.put(f"{API}/{other.id}", json={"parent_id": unit.id}, headers=auth_headers(admin))

    assert response.status_code == 400


def test_update_level_checks_children(client, admin, auth_headers, make_objective):
    unit = make_objective("Unidad", "unit", admin)
    make_objective("Equipo", "team", admin, parent=unit)

    response = client.put(f"{API}/{unit.id}", json={"level": "team"}, headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()["detail"] == "Jerarquía inválida: team no puede ser hijo de team"


def test_update_parent_to_valid_target(client, admin, auth_headers, make_objective):
    root = make_objective("Empresa", "company", admin)
    unit = make_objective("Unidad", "unit", admin)

    response = client.put(f"{API}/{unit.id}", json={"parent_id": root.id}, headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["data"]["parent_id"] == root.id


# ========== ELIMINACIÓN ==========
def test_delete_cascades_to_subtree_and_links(client, db, admin, auth_headers, make_objective, make_kpi, link):
    root = make_objective("Empresa", "company", admin)
    unit = make_objective("Unidad", "unit", admin, parent=root)
    make_objective("División", "division", admin, parent=unit)
    link(unit, make_kpi(admin, progress=10.0))

    response = client.delete(f"{API}/{root.id}", headers=auth_headers(admin))

    assert response.status_code == 200
    assert db.query(Objective).count() == 0
    assert db.query(ObjectiveKPILink).count() == 0


def test_employee_cannot_delete_foreign(client, employee, other_employee, auth_headers, make_objective):
    foreign = make_objective("Ajeno", "individual", other_employee)

    response = client.delete(f"{API}/{foreign.id}", headers=auth_headers(employee))

    assert response.status_code == 403


def test_manager_deletes_objective_they_created(client, manager, other_employee, auth_headers, make_objective):
    objective = make_objective("Asignado", "individual", other_employee, created_by=manager)

    response = client.delete(f"{API}/{objective.id}", headers=auth_headers(manager))

    assert response.status_code == 200


# ========== JERARQUÍA ==========
def test_children_and_ancestors(client, employee, auth_headers, admin, make_objective):
    root = make_objective("Empresa", "company", admin)
    unit = make_objective("Unidad", "unit", admin, parent=root)
    division = make_objective("División", "division", admin, parent=unit)
    headers = auth_headers(employee)

    children = client.get(f"{API}/{root.id}/children", headers=headers).json()["data"]
    ancestors = client.get(f"{API}/{division.id}/ancestors", headers=headers).json()["data"]

    assert [c["id"] for c in children] == [unit.id]
    assert [a["id"] for a in ancestors] == [root.id, unit.id]


def test_tree_view(client, admin, auth_headers, make_objective):
    root = make_objective("Empresa", "company", admin)
    unit = make_objective("Unidad", "unit", admin, parent=root)
    make_objective("División", "division", admin, parent=unit)

    response = client.get(f"{API}/tree/view", params={"root_id": root.id}, headers=auth_headers(admin))

    [tree] = response.json()["data"]
    assert tree["id"] == root.id
    assert tree["children"][0]["id"] == unit.id
    assert tree["children"][0]["children"][0]["title"] == "División"


def test_gantt_view(client, admin, auth_headers, make_objective):
    root = make_objective("Empresa", "company", admin)
    first = make_objective("Unidad A", "unit", admin, parent=root)
    second = make_objective("Unidad B", "unit", admin, parent=root)

    response = client.get(f"{API}/gantt/view", headers=auth_headers(admin))

    items = response.json()["data"]
    assert [item["id"] for item in items][0] == root.id
    assert set(items[0]["dependencies"]) == {first.id, second.id}
    assert response.json()["metadata"]["count"] == 3


def test_only_admin_moves(client, manager, admin, auth_headers, make_objective):
    root = make_objective("Empresa", "company", admin)
    unit = make_objective("Unidad", "unit", admin)

    response = client.post(f"{API}/{unit.id}/move", params={"new_parent_id": root.id}, headers=auth_headers(manager))

    assert response.status_code == 403


def test_admin_move_validations(client, admin, auth_headers, make_objective):
    root = make_objective("Empresa", "company", admin)
    unit = make_objective("Unidad", "unit", admin, parent=root)
    headers = auth_headers(admin)

    self_move = client.post(f"{API}/{unit.id}/move", params={"new_parent_id": unit.id}, headers=headers)
    circular = client.post(f"{API}/{root.id}/move", params={"new_parent_id": unit.id}, headers=headers)
    to_root = client.post(f"{API}/{unit.id}/move", headers=headers)

    assert self_move.status_code == 400
    assert self_move.json()["detail"] == "No se puede mover un objetivo a sí mismo"
    assert circular.status_code == 400
    assert to_root.status_code == 200
    assert to_root.json()["data"]["parent_id"] is None


# ========== KPIs Y PROGRESO ==========
def test_link_kpi_upsert(client, db, admin, auth_headers, make_objective, make_kpi):
    objective = make_objective("Empresa", "company", admin)
    kpi = make_kpi(admin, progress=50.0)
    headers = auth_headers(admin)

    first = client.post(f"{API}/{objective.id}/kpis", json={"kpi_id": kpi.id, "weight": 0.3}, headers=headers)
    second = client.post(f"{API}/{objective.id}/kpis", json={"kpi_id": kpi.id, "weight": 0.7}, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 201
    assert db.query(ObjectiveKPILink).count() == 1
    linked = client.get(f"{API}/{objective.id}/kpis", headers=headers).json()["data"]
    assert len(linked) == 1
    assert linked[0]["weight"] == 0.7


def test_link_rejects_weight_out_of_range(client, admin, auth_headers, make_objective, make_kpi):
    objective = make_objective("Empresa", "company", admin)
    kpi = make_kpi(admin)

    response = client.post(
        f"{API}/{objective.id}/kpis",
        json={"kpi_id": kpi.id, "weight": 1.5},
        headers=auth_headers(admin),
    )

    assert response.status_code == 422


def test_link_unknown_kpi(client, admin, auth_headers, make_objective):
    objective = make_objective("Empresa", "company", admin)

    response = client.post(f"{API}/{objective.id}/kpis", json={"kpi_id": 99}, headers=auth_headers(admin))

    assert response.status_code == 404
    assert response.json()["detail"] == "KPI no encontrado"


def test_employee_links_only_own(client, employee, other_employee, auth_headers, make_objective, make_kpi):
    foreign = make_objective("Ajeno", "individual", other_employee)
    kpi = make_kpi(employee)

    response = client.post(f"{API}/{foreign.id}/kpis", json={"kpi_id": kpi.id}, headers=auth_headers(employee))

    assert response.status_code == 403


def test_unlink_kpi(client, admin, auth_headers, make_objective, make_kpi, link):
    objective = make_objective("Empresa", "company", admin)
    kpi = make_kpi(admin)
    link(objective, kpi)
    headers = auth_headers(admin)

    removed = client.delete(f"{API}/{objective.id}/kpis/{kpi.id}", headers=headers)
    missing = client.delete(f"{API}/{objective.id}/kpis/{kpi.id}", headers=headers)

    assert removed.status_code == 200
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Vínculo no encontrado"


def test_progress_report_and_recalculate(client, admin, auth_headers, make_objective, make_kpi, link):
    root = make_objective("Empresa", "company", admin)
    unit = make_objective("Unidad", "unit", admin, parent=root)
    link(unit, make_kpi(admin, progress=80.0), weight=0.5)
    link(unit, make_kpi(admin, progress=40.0), weight=0.5)
    headers = auth_headers(admin)

    report = client.get(f"{API}/{unit.id}/progress", headers=headers).json()["data"]
    recalculated = client.post(f"{API}/{unit.id}/recalculate", headers=headers)
    root_after = client.get(f"{API}/{root.id}", headers=headers).json()["data"]

    assert report["calculation_method"] == "kpis"
    assert report["progress_percentage"] == pytest.approx(60.0)
    assert report["kpi_count"] == 2
    assert recalculated.status_code == 200
    assert recalculated.json()["data"]["progress_percentage"] == pytest.approx(60.0)
    assert root_after["progress_percentage"] == pytest.approx(60.0)


def test_stats_summary(client, admin, employee, auth_headers, make_objective):
    make_objective("A", "company", admin, progress=10.0)
    make_objective("B", "unit", admin, progress=20.0)
    make_objective("C", "individual", employee, progress=33.333)

    admin_stats = client.get(f"{API}/stats/summary", headers=auth_headers(admin)).json()["data"]
    employee_stats = client.get(f"{API}/stats/summary", headers=auth_headers(employee)).json()["data"]

    assert admin_stats["total"] == 3
    assert admin_stats["by_level"] == {"company": 1, "unit": 1, "individual": 1}
    assert admin_stats["by_status"] == {"active": 3}
    assert admin_stats["average_progress"] == 21.11
    assert employee_stats["total"] == 1
    assert employee_stats["average_progress"] == 33.33


def test_kpi_objectives_and_recalculation(client, admin, auth_headers, make_objective, make_kpi, link):
    first = make_objective("Unidad A", "unit", admin)
    second = make_objective("Unidad B", "unit", admin)
    kpi = make_kpi(admin, progress=70.0)
    link(first, kpi, weight=0.4)
    link(second, kpi)
    headers = auth_headers(admin)

    linked = client.get(f"/api/v1/kpis/{kpi.id}/objectives", headers=headers).json()["data"]
    recalculated = client.post(f"/api/v1/kpis/{kpi.id}/recalculate-objectives", headers=headers).json()["data"]

    assert {(item["objective_id"], item["weight"]) for item in linked} == {(first.id, 0.4), (second.id, 1.0)}
    assert {item["id"] for item in recalculated} == {first.id, second.id}
    assert all(item["progress_percentage"] == pytest.approx(70.0) for item in recalculated)


def test_kpi_objectives_unknown_kpi(client, admin, auth_headers):
    response = client.get("/api/v1/kpis/55/objectives", headers=auth_headers(admin))

    assert response.status_code == 404
