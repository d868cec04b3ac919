"""
Stateless estimate and materials catalog endpoints.
"""


def _catalog(client, locale=None):
    params = {"locale": locale} if locale else {}
    return client.get("/api/materials/", params=params).json()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_materials_empty_until_seeded(client):
    assert _catalog(client) == []

    resp = client.get("/api/materials/seed")
    assert resp.json() == {"ok": True, "seeded": 11}
    assert client.get("/api/materials/seed").json()["seeded"] == 0
    assert len(_catalog(client)) == 11


def test_materials_localized(client, seeded):
    es = _catalog(client)[0]
    en = _catalog(client, "en")[0]

    assert es["id"] == en["id"]
    assert es["name"] == es["name_es"]
    assert en["name"] == en["name_en"]
    assert es["price_formatted"] == "RD$520.00"
    assert en["price_formatted"] == "DOP 520.00"


def test_materials_grouped(client, seeded):
    groups = client.get("/api/materials/grouped", params={"locale": "en"}).json()
    assert [g["category"] for g in groups] == ["Structure", "Masonry", "Finishes", "Electrical", "Plumbing"]
    assert sum(len(g["materials"]) for g in groups) == 11


def test_categories(client, seeded):
    categories = client.get("/api/materials/categories").json()
    assert [c["sort_order"] for c in categories] == [1, 2, 3, 4, 5]


def test_estimate_base_cost_only(client):
    resp = client.post("/api/estimate", json={"area": 100, "project_type": "residential"})
    data = resp.json()

    assert resp.status_code == 200
    assert data["base_cost"] == 120000.0
    assert data["materials_cost"] == 0.0
    assert data["total_cost"] == 120000.0
    assert data["rate_per_m2"] == 1200.0
    assert data["formatted"]["total_cost"] == "RD$120,000.00"


def test_estimate_with_materials(client, seeded):
    cement = _catalog(client)[0]
    resp = client.post("/api/estimate", json={
        "area": "100",
        "project_type": "commercial",
        "locale": "en",
        "materials": [
            {"material_id": cement["id"], "quantity": 3},
            {"material_id": cement["id"]},
        ],
    })
    data = resp.json()

    assert resp.status_code == 200
    assert len(data["materials"]) == 1
    assert data["materials"][0]["quantity"] == 4
    assert data["materials"][0]["name"] == cement["name_en"]
    assert data["materials_cost"] == 2080.0
    assert data["total_cost"] == 182080.0
    assert data["formatted"]["total_cost"] == "DOP 182,080.00"


def test_estimate_rejects_bad_input(client):
    for body in [{"area": 0}, {"area": "abc"}, {}, {"area": 10, "project_type": "industrial"}]:
        assert client.post("/api/estimate", json=body).status_code == 400


def test_estimate_unknown_material_is_404(client, seeded):
    resp = client.post("/api/estimate", json={"area": 10, "materials": [{"material_id": 999}]})
    assert resp.status_code == 404


def test_estimate_rejects_non_positive_line_quantity(client, seeded):
    cement = _catalog(client)[0]
    for quantity in [0, -5]:
        resp = client.post("/api/estimate", json={
            "area": 100,
            "materials": [
                {"material_id": cement["id"], "quantity": 3},
                {"material_id": cement["id"], "quantity": quantity},
            ],
        })
        assert resp.status_code == 422


def test_estimate_rejects_fractional_line_quantity(client, seeded):
    cement = _catalog(client)[0]
    resp = client.post("/api/estimate", json={
        "area": 100,
        "materials": [{"material_id": cement["id"], "quantity": 2.5}],
    })
    assert resp.status_code == 422
