async def test_create_and_list_with_counts(client, admin_headers, make_product):
    created = await client.post(
        "/api/categories",
        json={"name": "specchiere", "displayName": "Specchiere", "displayNameEn": "Mirrors", "sortOrder": 2},
        headers=admin_headers,
    )
    assert created.status_code == 201
    await client.post(
        "/api/categories",
        json={"name": "tavoli", "displayName": "Tavoli", "sortOrder": 1},
        headers=admin_headers,
    )

    listed = await client.get("/api/categories")

    assert [c["name"] for c in listed.json()] == ["tavoli", "specchiere"]
    assert all(c["productCount"] == 0 for c in listed.json())


async def test_product_count(client, make_category, make_product):
    category = await make_category()
    await make_product(category=category)
    await make_product(category=category)

    response = await client.get(f"/api/categories/{category.id}")

    assert response.json()["productCount"] == 2


async def test_duplicate_name_is_conflict(client, admin_headers, make_category):
    await make_category(name="tavoli")

    response = await client.post(
        "/api/categories", json={"name": "tavoli", "displayName": "Tavoli"}, headers=admin_headers
    )

    assert response.status_code == 409


async def test_update(client, admin_headers, make_category):
    category = await make_category(name="sedie", display_name="Sedie")

    response = await client.put(
        f"/api/categories/{category.id}", json={"displayNameEn": "Chairs"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["displayName"] == "Sedie"
    assert response.json()["displayNameEn"] == "Chairs"


async def test_delete_with_products_is_refused(client, admin_headers, make_category, make_product):
    category = await make_category()
    await make_product(category=category)

    response = await client.delete(f"/api/categories/{category.id}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["errorCode"] == "HAS_PRODUCTS"


async def test_delete_empty_category(client, admin_headers, make_category):
    category = await make_category()

    response = await client.delete(f"/api/categories/{category.id}", headers=admin_headers)

    assert response.status_code == 200
    assert (await client.get(f"/api/categories/{category.id}")).status_code == 404
