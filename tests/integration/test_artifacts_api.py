import io


def _create_html(client, headers, content="<h1>V1</h1>", title="Landing page"):
    resp = client.post(
        "/api/v1/artifacts",
        json={"title": title, "file_type": "html", "html_content": content, "file_size": len(content)},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def _add_html_version(client, headers, artifact_id, content):
    resp = client.post(
        f"/api/v1/artifacts/{artifact_id}/versions",
        json={"file_type": "html", "html_content": content, "file_size": len(content)},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_create_requires_authentication(client):
    resp = client.post(
        "/api/v1/artifacts",
        json={"title": "x", "file_type": "html", "html_content": "<p>x</p>", "file_size": 8},
    )
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "not_authenticated"


def test_create_rejects_payload_that_does_not_match_type(client, sign_up):
    owner = sign_up()
    resp = client.post(
        "/api/v1/artifacts",
        json={"title": "x", "file_type": "markdown", "file_size": 0},
        headers=owner["headers"],
    )
    assert resp.status_code == 422


def test_version_lifecycle(client, sign_up):
    owner = sign_up()
    created = _create_html(client, owner["headers"])
    artifact_id = created["artifact_id"]
    assert created["version_number"] == 1
    assert len(created["share_token"]) == 8

    _add_html_version(client, owner["headers"], artifact_id, "<h1>V2</h1>")
    v3 = _add_html_version(client, owner["headers"], artifact_id, "<h1>V3</h1>")
    assert v3["version_number"] == 3

    versions = client.get(f"/api/v1/artifacts/{artifact_id}/versions")
    assert [v["version_number"] for v in versions.json()] == [3, 2, 1]

    second = client.get(f"/api/v1/artifacts/{artifact_id}/versions/2")
    assert second.json()["html_content"] == "<h1>V2</h1>"

    # Deleting the newest version moves "latest" back
    deleted = client.delete(f"/api/v1/versions/{v3['version_id']}", headers=owner["headers"])
    assert deleted.status_code == 200, deleted.text
    assert deleted.json()["ok"] is True

    latest = client.get(f"/api/v1/artifacts/{artifact_id}/versions/latest")
    assert latest.json()["version_number"] == 2
    assert client.get(f"/api/v1/artifacts/{artifact_id}/versions/3").json() is None

    direct = client.get(f"/api/v1/versions/{v3['version_id']}")
    assert direct.json()["is_deleted"] is True

    # Numbers are never reused
    v4 = _add_html_version(client, owner["headers"], artifact_id, "<h1>V4</h1>")
    assert v4["version_number"] == 4


def test_last_active_version_is_protected(client, sign_up):
    owner = sign_up()
    created = _create_html(client, owner["headers"])
    resp = client.delete(f"/api/v1/versions/{created['version_id']}", headers=owner["headers"])
    assert resp.status_code == 409
    assert resp.json()["detail"]["message"] == "Cannot delete the last active version"


def test_non_owner_cannot_mutate(client, sign_up):
    owner = sign_up()
    intruder = sign_up()
    created = _create_html(client, owner["headers"])
    artifact_id = created["artifact_id"]

    add = client.post(
        f"/api/v1/artifacts/{artifact_id}/versions",
        json={"file_type": "html", "html_content": "<p>x</p>", "file_size": 8},
        headers=intruder["headers"],
    )
    assert add.status_code == 403
    assert client.delete(f"/api/v1/artifacts/{artifact_id}", headers=intruder["headers"]).status_code == 403
    assert client.delete(f"/api/v1/artifacts/{artifact_id}", headers=owner["headers"]).status_code == 200


def test_list_share_lookup_and_delete(client, sign_up):
    owner = sign_up()
    first = _create_html(client, owner["headers"], title="First")
    second = _create_html(client, owner["headers"], title="Second")

    listed = client.get("/api/v1/artifacts", headers=owner["headers"])
    assert listed.status_code == 200
    assert {a["artifact_id"] for a in listed.json()} == {first["artifact_id"], second["artifact_id"]}
    assert client.get("/api/v1/artifacts").status_code == 401

    shared = client.get(f"/api/v1/shared/{first['share_token']}")
    assert shared.json()["title"] == "First"

    deleted = client.delete(f"/api/v1/artifacts/{first['artifact_id']}", headers=owner["headers"])
    assert deleted.status_code == 200, deleted.text
    assert deleted.json()["deleted_at"]

    assert client.get(f"/api/v1/shared/{first['share_token']}").json() is None
    listed = client.get("/api/v1/artifacts", headers=owner["headers"])
    assert [a["artifact_id"] for a in listed.json()] == [second["artifact_id"]]

    # Direct reads still see the soft-deleted row
    direct = client.get(f"/api/v1/artifacts/{first['artifact_id']}")
    assert direct.json()["is_deleted"] is True
    assert client.get("/api/v1/artifacts/does-not-exist").json() is None


def test_zip_upload_and_file_listing(client, sign_up, make_zip):
    owner = sign_up()
    payload = make_zip(
        {
            "site/index.html": "<h1>home</h1>",
            "site/about.html": "<p>about</p>",
            "site/app.js": "console.log(1)",
            "__MACOSX/site/._index.html": "junk",
        }
    )
    resp = client.post(
        "/api/v1/artifacts/upload",
        data={"title": "Site"},
        files={"file": ("site.zip", io.BytesIO(payload), "application/zip")},
        headers=owner["headers"],
    )
    assert resp.status_code == 200, resp.text
    created = resp.json()

    version = client.get(f"/api/v1/versions/{created['version_id']}").json()
    assert version["file_type"] == "zip"
    assert version["entry_point"] == "site/index.html"
    assert version["file_size"] == len(payload)

    files = client.get(f"/api/v1/versions/{created['version_id']}/files").json()
    assert [f["file_path"] for f in files] == ["site/about.html", "site/app.js", "site/index.html"]

    html = client.get(f"/api/v1/versions/{created['version_id']}/html-files").json()
    assert sorted(f["file_path"] for f in html) == ["site/about.html", "site/index.html"]

    again = client.post(
        f"/api/v1/artifacts/{created['artifact_id']}/versions/upload",
        files={"file": ("site.zip", io.BytesIO(payload), "application/zip")},
        headers=owner["headers"],
    )
    assert again.status_code == 200, again.text
    assert again.json()["version_number"] == 2


def test_zip_upload_errors(client, sign_up, make_zip):
    owner = sign_up()
    no_auth = client.post(
        "/api/v1/artifacts/upload",
        data={"title": "Site"},
        files={"file": ("site.zip", io.BytesIO(make_zip({"index.html": "<p/>"})), "application/zip")},
    )
    assert no_auth.status_code == 401

    not_a_zip = client.post(
        "/api/v1/artifacts/upload",
        data={"title": "Site"},
        files={"file": ("site.zip", io.BytesIO(b"plain text"), "application/zip")},
        headers=owner["headers"],
    )
    assert not_a_zip.status_code == 400
    assert not_a_zip.json()["detail"]["code"] == "invalid_zip"

    no_html = client.post(
        "/api/v1/artifacts/upload",
        data={"title": "Site"},
        files={"file": ("site.zip", io.BytesIO(make_zip({"style.css": "body{}"})), "application/zip")},
        headers=owner["headers"],
    )
    assert no_html.status_code == 400
    assert no_html.json()["detail"]["code"] == "zip_missing_html"


def test_version_number_outside_column_range_is_rejected(client, sign_up):
    owner = sign_up()
    created = _create_html(client, owner["headers"])
    artifact_id = created["artifact_id"]

    assert client.get(f"/api/v1/artifacts/{artifact_id}/versions/99999999999999999999999").status_code == 422
    assert client.get(f"/api/v1/artifacts/{artifact_id}/versions/0").status_code == 422
    assert client.get(f"/api/v1/artifacts/{artifact_id}/versions/2147483647").json() is None
