from datetime import datetime, timezone


def upload(client, name="notes.txt", content=b"hello", content_type="text/plain"):
    return client.post("/file", files={"file": (name, content, content_type)})


def assert_empty_error(response, status_code):
    assert response.status_code == status_code
    assert response.content == b""
    assert response.headers["content-length"] == "0"


# 测试上传文件
def test_upload_file_returns_created_record(client, blob_store):
    response = upload(client)

    assert response.status_code == 201
    body = response.json()
    assert set(body) == {"file_name", "id", "url", "upload_date"}
    assert body["file_name"] == "notes.txt"
    assert f"{body['id']}-notes.txt" in body["url"]
    assert body["url"] == f"test-bucket/default-user/{body['id']}-notes.txt"
    assert body["upload_date"] == datetime.now(timezone.utc).date().isoformat()

    key = f"default-user/{body['id']}-notes.txt"
    assert blob_store.objects[key] == b"hello"
    assert blob_store.content_types[key] == "text/plain"


def test_uploaded_file_can_be_looked_up(client):
    created = upload(client).json()

    response = client.get(f"/file/{created['id']}")

    assert response.status_code == 200
    assert response.json() == created


def test_file_name_is_stored_verbatim(client):
    created = upload(client, name="report (final) v2.pdf", content_type="application/pdf").json()

    assert created["file_name"] == "report (final) v2.pdf"
    assert client.get(f"/file/{created['id']}").json()["file_name"] == "report (final) v2.pdf"


def test_each_upload_gets_a_new_id(client, blob_store):
    first = upload(client).json()
    second = upload(client).json()

    assert first["id"] != second["id"]
    assert len(blob_store.objects) == 2


# 测试多文件上传
def test_upload_with_two_files_is_rejected(client, blob_store, file_record_count):
    response = client.post(
        "/file",
        files=[
            ("file", ("a.txt", b"first", "text/plain")),
            ("file", ("b.txt", b"second", "text/plain")),
        ],
    )

    assert_empty_error(response, 400)
    assert blob_store.objects == {}
    assert file_record_count() == 0


def test_upload_with_second_file_under_other_field_is_rejected(client, blob_store):
    response = client.post(
        "/file",
        files=[
            ("file", ("a.txt", b"first", "text/plain")),
            ("attachment", ("b.txt", b"second", "text/plain")),
        ],
    )

    assert_empty_error(response, 400)
    assert blob_store.calls == []


def test_upload_without_file_field_is_rejected(client, blob_store):
    response = client.post("/file", files={"document": ("a.txt", b"data", "text/plain")})

    assert_empty_error(response, 400)
    assert blob_store.calls == []


def test_upload_with_form_fields_only_is_rejected(client):
    response = client.post("/file", data={"name": "notes.txt"})

    assert_empty_error(response, 400)


def test_upload_extra_text_fields_are_ignored(client):
    response = client.post(
        "/file",
        data={"description": "quarterly numbers"},
        files={"file": ("numbers.csv", b"a,b\n1,2\n", "text/csv")},
    )

    assert response.status_code == 201
    assert response.json()["file_name"] == "numbers.csv"


def test_upload_over_size_limit_is_rejected(client, blob_store):
    too_big = b"x" * (5 * 1024 * 1024 + 1)

    response = upload(client, name="big.bin", content=too_big, content_type="application/octet-stream")

    assert_empty_error(response, 413)
    assert blob_store.calls == []


def test_upload_with_oversized_text_field_is_rejected(client, blob_store):
    response = client.post(
        "/file",
        data={"description": "x" * (1024 * 1024 + 1)},
        files={"file": ("a.txt", b"hi", "text/plain")},
    )

    assert_empty_error(response, 413)
    assert blob_store.calls == []


def test_upload_with_disallowed_header_is_rejected(client, blob_store):
    response = client.post(
        "/file",
        files={"file": ("a.txt", b"hi", "text/plain")},
        headers={"x-custom": "1"},
    )

    assert_empty_error(response, 400)
    assert blob_store.calls == []


def test_upload_with_non_multipart_content_type_is_rejected(client, blob_store):
    response = client.post("/file", content=b"hello", headers={"content-type": "application/octet-stream"})

    assert_empty_error(response, 400)
    assert blob_store.calls == []


def test_upload_multipart_without_boundary_is_rejected(client):
    response = client.post("/file", content=b"hello", headers={"content-type": "multipart/form-data"})

    assert_empty_error(response, 400)

def test_upload_at_size_limit_is_accepted(client):
    response = upload(client, name="edge.bin", content=b"x" * (5 * 1024 * 1024))

    assert response.status_code == 201


# 测试补偿删除
def test_failed_blob_write_skips_metadata(client, blob_store, file_record_count):
    blob_store.fail_on.add("put")

    response = upload(client)

    assert_empty_error(response, 503)
    assert file_record_count() == 0
    assert [call[0] for call in blob_store.calls] == ["put"]


def test_failed_metadata_write_removes_blob(client, blob_store, record_store, file_record_count, instrumentation):
    record_store.fail_on.add("create")

    response = upload(client)

    assert_empty_error(response, 503)
    assert blob_store.objects == {}
    assert [call[0] for call in blob_store.calls] == ["put", "delete"]
    assert blob_store.calls[0][1] == blob_store.calls[1][1]
    assert file_record_count() == 0
    assert instrumentation.registry.get_sample_value(
        "file_service_saga_compensations_total", {"outcome": "succeeded"}
    ) == 1.0


def test_failed_compensation_still_answers_unavailable(client, blob_store, record_store, instrumentation):
    record_store.fail_on.add("create")
    blob_store.fail_on.add("delete")

    response = upload(client)

    assert_empty_error(response, 503)
    # 补偿失败时只留下孤儿对象，不会出现没有对象的记录
    assert len(blob_store.objects) == 1
    assert instrumentation.registry.get_sample_value(
        "file_service_saga_compensations_total", {"outcome": "failed"}
    ) == 1.0


# 测试查询
def test_get_unknown_file_returns_not_found(client):
    response = client.get("/file/3f2504e0-4f89-41d3-9a0c-0305e82c3301")

    assert_empty_error(response, 404)


def test_get_malformed_id_returns_not_found(client):
    response = client.get("/file/not-a-uuid")

    assert_empty_error(response, 404)


def test_get_with_unknown_header_is_rejected(client):
    created = upload(client).json()

    response = client.get(f"/file/{created['id']}", headers={"x-custom": "1"})

    assert_empty_error(response, 400)


def test_get_when_metadata_store_is_down(client, record_store):
    created = upload(client).json()
    record_store.fail_on.add("find")

    response = client.get(f"/file/{created['id']}")

    assert_empty_error(response, 503)


# 测试删除
def test_delete_file_removes_blob_and_record(client, blob_store):
    created = upload(client).json()

    response = client.delete(f"/file/{created['id']}")

    assert response.status_code == 204
    assert response.content == b""
    assert blob_store.objects == {}
    assert_empty_error(client.get(f"/file/{created['id']}"), 404)


def test_delete_twice_returns_not_found(client):
    created = upload(client).json()
    assert client.delete(f"/file/{created['id']}").status_code == 204

    response = client.delete(f"/file/{created['id']}")

    assert_empty_error(response, 404)


def test_delete_unknown_file_returns_not_found(client, blob_store):
    response = client.delete("/file/3f2504e0-4f89-41d3-9a0c-0305e82c3301")

    assert_empty_error(response, 404)
    assert blob_store.calls == []


def test_failed_blob_delete_keeps_record(client, blob_store):
    created = upload(client).json()
    blob_store.fail_on.add("delete")

    response = client.delete(f"/file/{created['id']}")

    assert_empty_error(response, 500)
    lookup = client.get(f"/file/{created['id']}")
    assert lookup.status_code == 200
    assert lookup.json() == created

    # 对象存储恢复后可以重试删除
    blob_store.fail_on.clear()
    assert client.delete(f"/file/{created['id']}").status_code == 204


def test_failed_record_delete_after_blob_delete(client, blob_store, record_store):
    created = upload(client).json()
    record_store.fail_on.add("delete")

    response = client.delete(f"/file/{created['id']}")

    assert_empty_error(response, 503)
    assert blob_store.objects == {}
    record_store.fail_on.clear()
    assert client.get(f"/file/{created['id']}").status_code == 200


def test_delete_when_lookup_fails(client, blob_store, record_store):
    created = upload(client).json()
    record_store.fail_on.add("find")

    response = client.delete(f"/file/{created['id']}")

    assert_empty_error(response, 503)
    assert len(blob_store.objects) == 1


def test_delete_with_body_is_rejected(client):
    created = upload(client).json()

    response = client.request("DELETE", f"/file/{created['id']}", content=b"{}")

    assert_empty_error(response, 400)
    assert client.get(f"/file/{created['id']}").status_code == 200


# 测试不支持的方法和路由
def test_unsupported_methods_on_file_routes(client):
    created = upload(client).json()

    for method in ("PUT", "PATCH"):
        assert_empty_error(client.request(method, "/file"), 405)
        assert_empty_error(client.request(method, f"/file/{created['id']}"), 405)
    assert_empty_error(client.get("/file"), 405)
    assert_empty_error(client.post(f"/file/{created['id']}"), 405)


def test_unknown_route_returns_not_found(client):
    assert_empty_error(client.get("/nonexistent"), 404)
