VERSIONS = "/api/v1/versions"


def dataset(n: int, wallet_dupes: bool = False) -> list:
    records = []
    for i in range(n):
        records.append({
            "id": f"d{i}",
            "partnerCode": "P1",
            "walletAddress": "0.0.1" if wallet_dupes else f"0.0.{i}",
            "createdAt": "2024-10-01T08:00:00Z",
            "completedAt": "2024-10-01T12:00:00Z",
            "finalGrade": "Pass",
        })
    return records


async def test_upload_activates_and_replaces_developers(client, repos, auth_headers):
    response = await client.post(VERSIONS, json={"fileName": "october.csv", "records": dataset(3)}, headers=auth_headers)

    assert response.status_code == 200
    version = response.json()
    assert version["recordCount"] == 3
    assert "records" not in version

    developers = await repos.developers.get_all()
    assert [d.id for d in developers] == ["d0", "d1", "d2"]
    assert developers[0].duration_hours == 4

    active = await client.get(f"{VERSIONS}/active", headers=auth_headers)
    assert active.json()["id"] == version["id"]


async def test_upload_flags_shared_wallets(client, repos, auth_headers):
    await client.post(VERSIONS, json={"fileName": "dupes.csv", "records": dataset(2, wallet_dupes=True)}, headers=auth_headers)
    assert all(d.is_suspicious for d in await repos.developers.get_all())


async def test_version_store_keeps_five(client, repos, auth_headers):
    ids = []
    for i in range(6):
        response = await client.post(VERSIONS, json={"fileName": f"f{i}.csv", "records": dataset(1)}, headers=auth_headers)
        ids.append(response.json()["id"])

    listed = await client.get(VERSIONS, headers=auth_headers)
    assert [v["id"] for v in listed.json()] == list(reversed(ids[1:]))
    assert await repos.versions.get_by_id(ids[0]) is None


async def test_activate_older_version(client, repos, auth_headers):
    first = (await client.post(VERSIONS, json={"fileName": "a.csv", "records": dataset(1)}, headers=auth_headers)).json()
    await client.post(VERSIONS, json={"fileName": "b.csv", "records": dataset(4)}, headers=auth_headers)
    assert len(await repos.developers.get_all()) == 4

    response = await client.post(f"{VERSIONS}/{first['id']}/activate", headers=auth_headers)
    assert response.status_code == 200
    assert len(await repos.developers.get_all()) == 1
    assert (await repos.versions.get_active()).id == first["id"]


async def test_upload_without_activation_keeps_developers(client, repos, auth_headers):
    await client.post(VERSIONS, json={"fileName": "a.csv", "records": dataset(2)}, headers=auth_headers)
    await client.post(VERSIONS, json={"fileName": "b.csv", "records": dataset(5), "activate": False}, headers=auth_headers)
    assert len(await repos.developers.get_all()) == 2


async def test_get_and_delete_version(client, repos, auth_headers):
    version = (await client.post(VERSIONS, json={"fileName": "a.csv", "records": dataset(2)}, headers=auth_headers)).json()

    detail = await client.get(f"{VERSIONS}/{version['id']}", headers=auth_headers)
    assert len(detail.json()["records"]) == 2

    response = await client.delete(f"{VERSIONS}/{version['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert (await client.get(f"{VERSIONS}/{version['id']}", headers=auth_headers)).status_code == 404
    assert (await client.get(f"{VERSIONS}/active", headers=auth_headers)).status_code == 404


async def test_scoped_admin_cannot_upload(client, community_headers):
    response = await client.post(VERSIONS, json={"fileName": "a.csv", "records": []}, headers=community_headers)
    assert response.status_code == 403
