from unittest.mock import patch


def create_list(client, headers, **overrides):
    payload = {"name": "Customers", "emails": [{"email": "a@x.com", "name": "Ann"}, {"email": "b@x.com"}]}
    payload.update(overrides)
    response = client.post("/email-lists", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["emailList"]


def create_form(client, headers, payload):
    return client.post("/forms", json=payload, headers=headers).json()["form"]


def batch_ok(params):
    return {"data": [{"id": f"msg-{index}"} for index, _ in enumerate(params)]}


def test_email_list_crud(client, owner_headers):
    created = create_list(client, owner_headers)
    list_id = created["id"]
    assert [entry["email"] for entry in created["emails"]] == ["a@x.com", "b@x.com"]

    listed = client.get("/email-lists", headers=owner_headers).json()["emailLists"]
    assert [item["id"] for item in listed] == [list_id]

    updated = client.put(
        f"/email-lists/{list_id}",
        json={"name": "VIPs", "emails": [{"email": "c@x.com"}, {"email": "c@x.com"}]},
        headers=owner_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["emailList"]["name"] == "VIPs"
    assert [entry["email"] for entry in updated.json()["emailList"]["emails"]] == ["c@x.com", "c@x.com"]

    assert client.delete(f"/email-lists/{list_id}", headers=owner_headers).status_code == 200
    assert client.get(f"/email-lists/{list_id}", headers=owner_headers).status_code == 404


def test_email_list_validation(client, owner_headers):
    no_name = client.post("/email-lists", json={"name": " ", "emails": []}, headers=owner_headers)
    assert no_name.status_code == 400

    not_array = client.post("/email-lists", json={"name": "X", "emails": "a@x.com"}, headers=owner_headers)
    assert not_array.status_code == 400

    bad_address = client.post(
        "/email-lists", json={"name": "X", "emails": [{"email": "a@x.com"}, {"email": "oops"}]}, headers=owner_headers
    )
    assert bad_address.status_code == 400
    assert "oops" in bad_address.json()["details"][0]["message"]


def test_email_lists_are_owner_scoped(client, owner_headers, other_headers):
    list_id = create_list(client, owner_headers)["id"]

    assert client.get(f"/email-lists/{list_id}", headers=other_headers).status_code == 404
    assert client.delete(f"/email-lists/{list_id}", headers=other_headers).status_code == 404
    assert client.get("/email-lists", headers=other_headers).json()["emailLists"] == []


def test_import_appends_and_reports_skipped(client, owner_headers):
    list_id = create_list(client, owner_headers, emails=[])["id"]
    csv_content = b"email,name\na@x.com,Ann\nbad-email,Bob\nc@x.com,"

    response = client.post(
        f"/email-lists/{list_id}/import",
        files={"file": ("contacts.csv", csv_content, "text/csv")},
        headers=owner_headers,
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["imported"] == 2
    assert body["skipped"] == 1
    assert body["hasSkipped"] is True
    assert [(e["email"], e["name"]) for e in body["emailList"]["emails"]] == [("a@x.com", "Ann"), ("c@x.com", "")]


def test_import_preview_does_not_save(client, owner_headers):
    response = client.post(
        "/email-lists/import/preview",
        files={"file": ("contacts.csv", b"a@x.com\nnope\n", "text/csv")},
        headers=owner_headers,
    )

    assert response.status_code == 200
    assert response.json()["skipped"] == 1
    assert client.get("/email-lists", headers=owner_headers).json()["emailLists"] == []


def test_import_rejects_unsupported_file(client, owner_headers):
    list_id = create_list(client, owner_headers)["id"]
    response = client.post(
        f"/email-lists/{list_id}/import",
        files={"file": ("contacts.pdf", b"%PDF", "application/pdf")},
        headers=owner_headers,
    )
    assert response.status_code == 400


def test_send_form_to_addresses(client, owner_headers, survey_payload):
    form_id = create_form(client, owner_headers, survey_payload)["id"]

    with patch("services.email_service.resend.Batch.send", side_effect=batch_ok) as send:
        response = client.post(
            "/send-form",
            json={"formId": form_id, "emails": ["a@x.com", {"email": "b@x.com", "name": "Bea"}], "senderName": "Acme"},
            headers=owner_headers,
        )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True
    assert body["sent"] == 2
    sent_params = send.call_args.args[0]
    assert sent_params[0]["subject"] == "Acme: Survey"
    assert f"https://forms.example.com/form/{form_id}" in sent_params[1]["html"]


def test_send_form_validation_and_ownership(client, owner_headers, other_headers, survey_payload):
    form_id = create_form(client, owner_headers, survey_payload)["id"]

    empty = client.post("/send-form", json={"formId": form_id, "emails": []}, headers=owner_headers)
    assert empty.status_code == 400

    invalid = client.post("/send-form", json={"formId": form_id, "emails": ["nope"]}, headers=owner_headers)
    assert invalid.status_code == 400

    with patch("services.email_service.resend.Batch.send", side_effect=batch_ok) as send:
        foreign = client.post("/send-form", json={"formId": form_id, "emails": ["a@x.com"]}, headers=other_headers)
    assert foreign.status_code == 404
    send.assert_not_called()


def test_send_form_provider_failure(client, owner_headers, survey_payload):
    form_id = create_form(client, owner_headers, survey_payload)["id"]

    with patch("services.email_service.resend.Batch.send", side_effect=RuntimeError("rate limited")):
        response = client.post("/send-form", json={"formId": form_id, "emails": ["a@x.com"]}, headers=owner_headers)

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to send emails"


def test_send_form_to_list(client, owner_headers, survey_payload):
    form_id = create_form(client, owner_headers, survey_payload)["id"]
    list_id = create_list(client, owner_headers)["id"]

    with patch("services.email_service.resend.Batch.send", side_effect=batch_ok) as send:
        response = client.post(f"/email-lists/{list_id}/send", json={"formId": form_id}, headers=owner_headers)

    assert response.status_code == 200
    assert response.json()["sent"] == 2
    assert [p["to"] for p in send.call_args.args[0]] == [["a@x.com"], ["b@x.com"]]
