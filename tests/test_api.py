ADMIN_HEADERS = {"Authorization": "Bearer test-admin-key"}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_correlation_id_is_echoed(client):
    response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"


def test_correlation_id_is_generated(client):
    assert client.get("/health").headers.get("X-Correlation-ID")


# ============ Monsters ============

def test_list_monsters_paginated(client):
    data = client.get("/api/v1/monsters", params={"limit": 4}).json()
    assert data["total"] == 6
    assert data["pages"] == 2
    assert data["has_more"] is True
    assert [m["slug"] for m in data["items"]][:2] == ["king-ghidorah", "godzilla"]


def test_list_monsters_unknown_filter_value_is_empty_not_error(client):
    response = client.get("/api/v1/monsters", params={"alignment": "chaotic"})
    assert response.status_code == 200
    assert response.json()["items"] == []
    assert response.json()["total"] == 0


def test_list_monsters_filter_and_sort(client):
    data = client.get("/api/v1/monsters", params={"era": "Heisei", "sort": "name", "sort_order": "asc"}).json()
    assert [m["slug"] for m in data["items"]] == ["godzilla", "king-ghidorah", "mothra"]


def test_monster_profile(client):
    data = client.get("/api/v1/monsters/godzilla").json()
    assert data["detail"]["monster"]["fan_power_index"] == 95
    assert data["fan_power"]["total"] == 95
    assert data["fan_power"]["tier"] == "Legendary"
    assert data["fight_record"]["wins"] == 1
    assert [m["slug"] for m in data["related"]][0] == "kong"


def test_unknown_and_inactive_monster_404(client):
    assert client.get("/api/v1/monsters/zilla-jr").status_code == 404
    assert client.get("/api/v1/monsters/destoroyah").status_code == 404


def test_monster_fight_record(client):
    data = client.get("/api/v1/monsters/godzilla/fight-record").json()
    assert (data["wins"], data["losses"], data["draws"]) == (1, 1, 1)


def test_monster_fan_power(client):
    data = client.get("/api/v1/monsters/godzilla/fan-power").json()
    assert data["total"] == 95
    assert data["era_scaling"] == 1.08


def test_monster_products(client):
    data = client.get("/api/v1/monsters/mechagodzilla/products").json()
    assert [p["id"] for p in data] == ["pr-kiryu-kit", "pr-mecha"]


# ============ Works, battles, posts ============

def test_work_detail_and_404(client):
    data = client.get("/api/v1/works/godzilla-vs-kong").json()
    assert [m["slug"] for m in data["monsters"]] == ["godzilla", "kong", "mechagodzilla"]
    assert client.get("/api/v1/works/godzilla-vs-destoroyah").status_code == 404


def test_works_by_decade(client):
    data = client.get("/api/v1/works/by-decade").json()
    assert [g["decade"] for g in data] == [1950, 1960, 2010, 2020]


def test_battle_detail(client):
    data = client.get("/api/v1/battles/battle-of-boston").json()
    assert [p["monster"]["slug"] for p in data["participants"]] == ["godzilla", "king-ghidorah"]
    assert client.get("/api/v1/battles/no-such-battle").status_code == 404


def test_draft_post_404(client):
    assert client.get("/api/v1/posts/draft-ranking").status_code == 404
    assert client.get("/api/v1/posts/tokyo-1954").status_code == 200


# ============ Shop ============

def test_products_get_affiliate_links(client):
    items = client.get("/api/v1/shop/products").json()["items"]
    by_id = {p["id"]: p for p in items}
    assert by_id["pr-figure"]["amazon_url_with_tag"] == "https://www.amazon.com/dp/B000000001?tag=gojipedia-20"
    # a stored link is kept as-is
    assert by_id["pr-gvk-bluray"]["amazon_url_with_tag"].endswith("tag=custom-20")


def test_products_for_unknown_monster_is_empty(client):
    data = client.get("/api/v1/shop/products", params={"monster": "zilla-jr"}).json()
    assert data["items"] == []
    assert data["total"] == 0


def test_collection(client):
    data = client.get("/api/v1/shop/collections/best-godzilla-figures").json()
    assert [i["product"]["id"] for i in data["items"]] == ["pr-figure", "pr-mecha"]
    assert client.get("/api/v1/shop/collections/old-picks").status_code == 404


# ============ Stats ============

def test_site_stats(client):
    data = client.get("/api/v1/stats/site").json()
    assert data == {"monsters": 6, "works": 6, "battles": 4, "products": 6, "posts": 4}


def test_fan_power_weights(client):
    data = client.get("/api/v1/stats/fan-power/weights").json()
    assert data["attack_power"] == 0.25
    assert abs(sum(data.values()) - 1.0) < 1e-9


# ============ Admin ============

def test_admin_requires_key(client):
    assert client.get("/api/v1/admin/monsters").status_code == 401
    bad = client.get("/api/v1/admin/monsters", headers={"Authorization": "Bearer wrong"})
    assert bad.status_code == 401


def test_admin_lists_inactive(client):
    data = client.get("/api/v1/admin/monsters", headers=ADMIN_HEADERS).json()
    assert "destoroyah" in [m["slug"] for m in data["items"]]
    assert data["total"] == 7


def test_admin_fpi_audit(client):
    data = client.get("/api/v1/admin/fpi/audit", headers=ADMIN_HEADERS).json()
    assert data == {"checked": 7, "drifted": [], "incomplete": []}
