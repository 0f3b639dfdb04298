from tests.conftest import TENANT_ID, add_conversation, messages_url

IMAGES_URL = f"/api/v1/tenants/{TENANT_ID}/images"
FILES_URL = f"/api/v1/tenants/{TENANT_ID}/files"


def _attach(supabase, message_id, file_name, file_type):
    return supabase.add("attachments", {
        "tenant_id": TENANT_ID,
        "message_id": message_id,
        "url": f"https://cdn.test/{file_name}",
        "file_name": file_name,
        "file_type": file_type,
        "file_size": 1024,
    })


def _post(client, member, conversation_id, content, excluded=None):
    body = {"content": content}
    if excluded:
        body["excluded_membership_ids"] = excluded
    resp = client.post(messages_url(conversation_id), json=body, headers=member.headers)
    assert resp.status_code == 201
    return resp.json()


def test_images_and_files_are_split_by_mime_type(client, supabase, church):
    conv = church.conversation["id"]
    message = _post(client, church.alice, conv, "Photos from the retreat")
    _attach(supabase, message["id"], "retreat.jpg", "image/jpeg")
    _attach(supabase, message["id"], "beach.png", "image/png")
    _attach(supabase, message["id"], "schedule.pdf", "application/pdf")

    images = client.get(IMAGES_URL, headers=church.carol.headers).json()
    files = client.get(FILES_URL, headers=church.carol.headers).json()

    assert [a["file_name"] for a in images] == ["beach.png", "retreat.jpg"]
    assert [a["file_name"] for a in files] == ["schedule.pdf"]
    assert images[0]["conversation_id"] == conv


def test_gallery_hides_attachments_of_excluded_messages(client, supabase, church):
    conv = church.conversation["id"]
    secret = _post(client, church.alice, conv, "Gift ideas", excluded=[church.bob.membership_id])
    public = _post(client, church.alice, conv, "Group photo")
    _attach(supabase, secret["id"], "gift.jpg", "image/jpeg")
    _attach(supabase, public["id"], "group.jpg", "image/jpeg")

    for_bob = client.get(IMAGES_URL, headers=church.bob.headers).json()
    for_carol = client.get(IMAGES_URL, headers=church.carol.headers).json()
    for_alice = client.get(IMAGES_URL, headers=church.alice.headers).json()

    assert [a["file_name"] for a in for_bob] == ["group.jpg"]
    assert {a["file_name"] for a in for_carol} == {"gift.jpg", "group.jpg"}
    assert {a["file_name"] for a in for_alice} == {"gift.jpg", "group.jpg"}


def test_gallery_only_covers_accessible_conversations(client, supabase, church):
    private = add_conversation(supabase, [church.alice, church.dave], type="direct")
    message = _post(client, church.alice, private["id"], "Just for Dave")
    _attach(supabase, message["id"], "private.jpg", "image/jpeg")

    assert client.get(IMAGES_URL, headers=church.carol.headers).json() == []
    assert len(client.get(IMAGES_URL, headers=church.dave.headers).json()) == 1
    resp = client.get(IMAGES_URL, params={"conversation_id": private["id"]}, headers=church.carol.headers)
    assert resp.status_code == 403


def test_gallery_pagination(client, supabase, church):
    message = _post(client, church.alice, church.conversation["id"], "Album")
    for i in range(5):
        _attach(supabase, message["id"], f"p{i}.jpg", "image/jpeg")

    page = client.get(IMAGES_URL, params={"limit": 2, "offset": 2}, headers=church.alice.headers).json()
    assert [a["file_name"] for a in page] == ["p2.jpg", "p1.jpg"]


def test_gallery_hides_attachments_on_replies_to_excluded_messages(client, supabase, church):
    conv = church.conversation["id"]
    secret = _post(client, church.alice, conv, "Surprise for Bob", excluded=[church.bob.membership_id])
    reply = client.post(f"{messages_url(conv)}/{secret['id']}/replies", json={"content": "Cake design"},
                        headers=church.carol.headers).json()
    _attach(supabase, reply["id"], "cake.jpg", "image/jpeg")

    assert client.get(IMAGES_URL, headers=church.bob.headers).json() == []
    assert [a["file_name"] for a in client.get(IMAGES_URL, headers=church.dave.headers).json()] == ["cake.jpg"]


def test_gallery_skips_deleted_messages(client, supabase, church):
    message = _post(client, church.alice, church.conversation["id"], "Oops")
    _attach(supabase, message["id"], "oops.jpg", "image/jpeg")
    supabase.rows("messages", id=message["id"])[0]["deleted_at"] = "2026-01-02T00:00:00+00:00"

    assert client.get(IMAGES_URL, headers=church.carol.headers).json() == []


def test_gallery_query_does_not_list_every_message(client, supabase, church):
    conv = church.conversation["id"]
    secret = _post(client, church.alice, conv, "Gift ideas", excluded=[church.bob.membership_id])
    for i in range(40):
        message = supabase.add("messages", {"tenant_id": TENANT_ID, "conversation_id": conv,
                                            "sender_id": church.alice.membership_id, "content": f"m{i}",
                                            "content_type": "text", "is_event_chat": False})
        _attach(supabase, message["id"], f"m{i}.jpg", "image/jpeg")
    _attach(supabase, secret["id"], "gift.jpg", "image/jpeg")

    resp = client.get(IMAGES_URL, params={"limit": 100}, headers=church.bob.headers)

    assert resp.status_code == 200
    assert len(resp.json()) == 40
    assert all(a["conversation_id"] == conv for a in resp.json())
    message_id_filters = [size for table, _, column, size in supabase.filter_log
                          if table == "attachments" and column == "message_id"]
    assert message_id_filters == [1]
