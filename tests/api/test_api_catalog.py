from core.persistence import CATEGORIES, PRODUCTS


def _product(**overrides):
    body = {
        "name": "Studio One",
        "description": "Closed-back headphones",
        "price": 149.99,
        "category": "Headphones",
        "brand": "Radeo",
        "imageUrl": "/img/1.jpg",
        "countInStock": 5,
    }
    body.update(overrides)
    return body


def test_list_categories_sorted_with_product_count(client, store):
    store.create(CATEGORIES, {"name": "Speakers", "description": "x"})
    store.create(CATEGORIES, {"name": "Headphones", "description": "y"})
    store.create(PRODUCTS, {"name": "P", "category": "Headphones"})

    r = client.get("/api/categories")
    assert r.status_code == 200
    data = r.json()
    assert [c["name"] for c in data] == ["Headphones", "Speakers"]
    assert [c["productCount"] for c in data] == [1, 0]


def test_get_category_not_found(client):
    r = client.get("/api/categories/missing")
    assert r.status_code == 404
    assert r.json() == {"message": "Category not found"}


def test_create_category_requires_token(client):
    r = client.post("/api/categories", json={"name": "Audio", "description": "x"})
    assert r.status_code == 401
    assert r.json()["message"] == "Not authorized, no token"


def test_create_category_requires_admin(client, user_headers):
    r = client.post("/api/categories", json={"name": "Audio", "description": "x"}, headers=user_headers)
    assert r.status_code == 403
    assert r.json()["message"] == "Not authorized as an admin"


def test_invalid_token_rejected(client):
    r = client.get("/api/cart", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401
    assert r.json()["message"] == "Not authorized, token failed"


def test_create_and_duplicate_category(client, admin_headers):
    r = client.post("/api/categories", json={"name": "  Audio ", "description": "x"}, headers=admin_headers)
    assert r.status_code == 201
    assert r.json()["name"] == "Audio"

    dup = client.post("/api/categories", json={"name": "Audio", "description": "x"}, headers=admin_headers)
    assert dup.status_code == 400
    assert dup.json()["message"] == "Category already exists"


def test_create_category_validation_error(client, admin_headers):
    r = client.post("/api/categories", json={"name": "Audio"}, headers=admin_headers)
    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "Validation failed"
    assert body["errors"]


def test_rename_category_moves_products(client, store, admin_headers):
    cat = store.create(CATEGORIES, {"name": "Audio", "description": "x"})
    store.create(PRODUCTS, {"name": "P1", "category": "Audio"})
    store.create(PRODUCTS, {"name": "P2", "category": "Audio"})

    r = client.put(f"/api/categories/{cat['_id']}", json={"name": "Sound"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["name"] == "Sound"
    assert r.json()["description"] == "x"
    assert store.count(PRODUCTS, {"category": "Sound"}) == 2
    assert store.count(PRODUCTS, {"category": "Audio"}) == 0


def test_rename_category_to_existing_name(client, store, admin_headers):
    store.create(CATEGORIES, {"name": "Audio", "description": "x"})
    other = store.create(CATEGORIES, {"name": "Video", "description": "y"})
    r = client.put(f"/api/categories/{other['_id']}", json={"name": "Audio"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Category with that name already exists"


def test_update_category_rejects_explicit_null(client, store, admin_headers):
    cat = store.create(CATEGORIES, {"name": "Audio", "description": "x"})
    r = client.put(f"/api/categories/{cat['_id']}", json={"description": None}, headers=admin_headers)
    assert r.status_code == 400


def test_update_category_can_clear_image(client, store, admin_headers):
    cat = store.create(CATEGORIES, {"name": "Audio", "description": "x", "imageUrl": "/a.jpg"})
    r = client.put(f"/api/categories/{cat['_id']}", json={"imageUrl": None}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["imageUrl"] is None


def test_delete_category_in_use(client, store, admin_headers):
    cat = store.create(CATEGORIES, {"name": "Audio", "description": "x"})
    store.create(PRODUCTS, {"name": "P1", "category": "Audio"})
    r = client.delete(f"/api/categories/{cat['_id']}", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Cannot delete category. 1 products are using this category."


def test_delete_category(client, store, admin_headers):
    cat = store.create(CATEGORIES, {"name": "Audio", "description": "x"})
    r = client.delete(f"/api/categories/{cat['_id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Category removed"}
    assert store.count(CATEGORIES) == 0


def test_product_crud(client, store, admin_headers):
    store.create(CATEGORIES, {"name": "Headphones", "description": "x"})

    created = client.post("/api/products", json=_product(), headers=admin_headers)
    assert created.status_code == 201
    pid = created.json()["_id"]
    assert created.json()["featured"] is False

    got = client.get(f"/api/products/{pid}")
    assert got.status_code == 200
    assert got.json()["name"] == "Studio One"

    # 0 e False sono valori validi in un aggiornamento parziale
    upd = client.put(f"/api/products/{pid}", json={"countInStock": 0, "price": 0}, headers=admin_headers)
    assert upd.status_code == 200
    assert upd.json()["countInStock"] == 0
    assert upd.json()["price"] == 0
    assert upd.json()["name"] == "Studio One"

    deleted = client.delete(f"/api/products/{pid}", headers=admin_headers)
    assert deleted.json() == {"message": "Product removed"}
    assert client.get(f"/api/products/{pid}").status_code == 404


def test_create_product_unknown_category(client, admin_headers):
    r = client.post("/api/products", json=_product(category="Nope"), headers=admin_headers)
    assert r.status_code == 400


def test_product_not_found_message(client):
    r = client.get("/api/products/42")
    assert r.status_code == 404
    assert r.json() == {"message": "Product not found"}


def test_list_products_filters(client, store):
    store.create(PRODUCTS, {"name": "Studio One", "brand": "Radeo", "category": "Headphones", "featured": True})
    store.create(PRODUCTS, {"name": "Boom", "brand": "Loud", "category": "Speakers", "featured": False})

    assert len(client.get("/api/products").json()) == 2
    assert [p["name"] for p in client.get("/api/products", params={"category": "Speakers"}).json()] == ["Boom"]
    assert [p["name"] for p in client.get("/api/products", params={"featured": "true"}).json()] == ["Studio One"]
    assert [p["name"] for p in client.get("/api/products", params={"keyword": "radeo"}).json()] == ["Studio One"]


def test_unknown_route_message(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json() == {"message": "Not found - /api/nothing-here"}
