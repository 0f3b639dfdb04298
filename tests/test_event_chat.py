from tests.conftest import TENANT_ID, add_member, messages_url


def _send(client, member, conversation_id, content="Surprise party for Dave on Friday", excluded=None, **extra):
    body = {"content": content, **extra}
    if excluded is not None:
        body["excluded_membership_ids"] = excluded
    return client.post(messages_url(conversation_id), json=body, headers=member.headers)


def _listed_ids(client, member, conversation_id):
    resp = client.get(messages_url(conversation_id), headers=member.headers)
    assert resp.status_code == 200
    return [m["id"] for m in resp.json()]


def test_restricted_message_visible_to_sender_and_others_but_not_excluded(client, church):
    conv = church.conversation["id"]
    resp = _send(client, church.alice, conv, excluded=[church.bob.membership_id])
    assert resp.status_code == 201
    message = resp.json()
    assert message["is_event_chat"] is True
    assert message["sender_id"] == church.alice.membership_id

    assert message["id"] in _listed_ids(client, church.alice, conv)
    assert message["id"] not in _listed_ids(client, church.bob, conv)
    assert message["id"] in _listed_ids(client, church.carol, conv)


def test_plain_message_is_not_event_chat(client, church, supabase):
    resp = _send(client, church.alice, church.conversation["id"], content="  Hello all  ")
    assert resp.status_code == 201
    assert resp.json()["is_event_chat"] is False
    assert resp.json()["content"] == "Hello all"
    assert supabase.rows("event_chat_exclusions") == []


def test_more_than_five_exclusions_rejected_without_writes(client, church, supabase):
    extra = add_member(supabase, "frank")
    excluded = [church.bob, church.carol, church.dave, church.erin, extra]
    sixth = add_member(supabase, "grace")
    ids = [m.membership_id for m in excluded + [sixth]]

    resp = _send(client, church.alice, church.conversation["id"], excluded=ids)

    assert resp.status_code == 400
    assert resp.json()["detail"] == "cannot exclude more than 5 users"
    assert supabase.rows("messages") == []
    assert supabase.rows("event_chat_exclusions") == []
    count = client.get(messages_url(church.conversation["id"]) + "/count", headers=church.alice.headers)
    assert count.json() == {"count": 0}


def test_exactly_five_exclusions_allowed(client, church, supabase):
    extra = add_member(supabase, "frank")
    ids = [m.membership_id for m in (church.bob, church.carol, church.dave, church.erin, extra)]
    resp = _send(client, church.alice, church.conversation["id"], excluded=ids)
    assert resp.status_code == 201
    assert len(supabase.rows("event_chat_exclusions", message_id=resp.json()["id"])) == 5


def test_duplicate_exclusions_collapse_before_cap(client, church, supabase):
    ids = [church.bob.membership_id] * 7
    resp = _send(client, church.alice, church.conversation["id"], excluded=ids)
    assert resp.status_code == 201
    assert len(supabase.rows("event_chat_exclusions")) == 1


def test_self_exclusion_rejected(client, church, supabase):
    resp = _send(client, church.alice, church.conversation["id"],
                 excluded=[church.bob.membership_id, church.alice.membership_id])
    assert resp.status_code == 400
    assert resp.json()["detail"] == "cannot exclude yourself"
    assert supabase.rows("messages") == []


def test_blank_content_rejected(client, church, supabase):
    resp = _send(client, church.alice, church.conversation["id"], content="   ")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "message content cannot be empty"
    assert supabase.rows("messages") == []


def test_excluding_member_of_other_church_rejected(client, church, supabase):
    outsider = add_member(supabase, "zed", tenant_id="22222222-2222-4222-8222-222222222222")
    resp = _send(client, church.alice, church.conversation["id"], excluded=[outsider.membership_id])
    assert resp.status_code == 400
    assert supabase.rows("messages") == []


def test_exclusion_insert_failure_removes_message(client, church, supabase):
    supabase.fail("event_chat_exclusions", "insert")
    resp = _send(client, church.alice, church.conversation["id"], excluded=[church.bob.membership_id])
    assert resp.status_code == 502
    assert supabase.rows("messages") == []


def test_excluded_member_does_not_see_message_in_count_or_search(client, church):
    conv = church.conversation["id"]
    _send(client, church.alice, conv, content="Planning the surprise cake", excluded=[church.bob.membership_id])
    _send(client, church.alice, conv, content="Sunday service at ten")

    def count(member):
        return client.get(messages_url(conv) + "/count", headers=member.headers).json()["count"]

    def search(member, q):
        resp = client.get(f"/api/v1/tenants/{TENANT_ID}/messages/search", params={"q": q}, headers=member.headers)
        assert resp.status_code == 200
        return [m["content"] for m in resp.json()]

    assert count(church.alice) == 2
    assert count(church.carol) == 2
    assert count(church.bob) == 1
    assert search(church.bob, "surprise") == []
    assert search(church.carol, "SURPRISE") == ["Planning the surprise cake"]
    assert search(church.bob, "service") == ["Sunday service at ten"]


def test_ordinary_message_ignores_stray_exclusion_rows(client, church, supabase):
    conv = church.conversation["id"]
    message = _send(client, church.alice, conv, content="Welcome!").json()
    supabase.add("event_chat_exclusions", {
        "message_id": message["id"],
        "excluded_membership_id": church.bob.membership_id,
        "tenant_id": TENANT_ID,
    })
    assert message["id"] in _listed_ids(client, church.bob, conv)


def test_exclusion_list_only_for_sender(client, church):
    conv = church.conversation["id"]
    message = _send(client, church.alice, conv, excluded=[church.bob.membership_id]).json()
    url = f"/api/v1/tenants/{TENANT_ID}/messages/{message['id']}/exclusions"

    as_sender = client.get(url, headers=church.alice.headers)
    assert as_sender.status_code == 200
    assert [e["excluded_membership_id"] for e in as_sender.json()] == [church.bob.membership_id]

    for member in (church.bob, church.carol):
        resp = client.get(url, headers=member.headers)
        assert resp.status_code == 200
        assert resp.json() == []


def test_exclusion_list_empty_for_non_member_and_unknown_message(client, church, supabase):
    outsider = add_member(supabase, "zed", tenant_id="22222222-2222-4222-8222-222222222222")
    message = _send(client, church.alice, church.conversation["id"], excluded=[church.bob.membership_id]).json()
    resp = client.get(f"/api/v1/tenants/{TENANT_ID}/messages/{message['id']}/exclusions", headers=outsider.headers)
    assert resp.status_code == 200
    assert resp.json() == []
    resp = client.get(f"/api/v1/tenants/{TENANT_ID}/messages/does-not-exist/exclusions", headers=church.alice.headers)
    assert resp.status_code == 200
    assert resp.json() == []


def test_send_bumps_conversation_activity(client, church, supabase):
    before = church.conversation["updated_at"]
    _send(client, church.alice, church.conversation["id"], content="Bump")
    after = supabase.rows("conversations", id=church.conversation["id"])[0]["updated_at"]
    assert after != before


def test_excluded_member_cannot_reply_or_quote(client, church):
    conv = church.conversation["id"]
    message = _send(client, church.alice, conv, excluded=[church.bob.membership_id]).json()

    reply = client.post(f"{messages_url(conv)}/{message['id']}/replies", json={"content": "me too"},
                        headers=church.bob.headers)
    assert reply.status_code == 404

    quote = _send(client, church.bob, conv, content="quoting", quoted_message_id=message["id"])
    assert quote.status_code == 400
    assert quote.json()["detail"] == "quoted message not found"


def test_event_chat_fan_out_skips_excluded_and_sender(client, church, gateway):
    _send(client, church.alice, church.conversation["id"], excluded=[church.bob.membership_id])
    assert len(gateway.requests) == 1
    notified = set(gateway.requests[0].recipients.user_ids)
    assert church.bob.user_id not in notified
    assert church.alice.user_id not in notified
    assert notified == {church.carol.user_id, church.dave.user_id, church.erin.user_id}


def test_replies_inherit_exclusions_of_their_parent(client, church, gateway):
    conv = church.conversation["id"]
    parent = _send(client, church.alice, conv, excluded=[church.bob.membership_id]).json()
    gateway.requests.clear()

    reply = client.post(f"{messages_url(conv)}/{parent['id']}/replies",
                        json={"content": "I'll bring the cake for Bob's surprise"}, headers=church.carol.headers)
    assert reply.status_code == 201
    assert reply.json()["is_event_chat"] is False

    notified = {u for r in gateway.requests for u in r.recipients.user_ids}
    assert church.bob.user_id not in notified
    assert notified == {church.alice.user_id, church.dave.user_id, church.erin.user_id}

    def count(member):
        return client.get(messages_url(conv) + "/count", headers=member.headers).json()["count"]

    assert count(church.bob) == 0
    assert count(church.dave) == 2
    search = client.get(f"/api/v1/tenants/{TENANT_ID}/messages/search", params={"q": "cake"},
                        headers=church.bob.headers)
    assert search.status_code == 200
    assert search.json() == []
    assert client.get(f"{messages_url(conv)}/{parent['id']}/replies", headers=church.bob.headers).status_code == 404

    visible_to_dave = client.get(f"{messages_url(conv)}/{parent['id']}/replies", headers=church.dave.headers)
    assert [m["id"] for m in visible_to_dave.json()] == [reply.json()["id"]]


def test_null_exclusions_send_a_plain_message(client, church, supabase):
    resp = client.post(messages_url(church.conversation["id"]),
                       json={"content": "Hello", "excluded_membership_ids": None}, headers=church.alice.headers)
    assert resp.status_code == 201
    assert resp.json()["is_event_chat"] is False
    assert supabase.rows("event_chat_exclusions") == []


def test_mentioned_member_gets_high_priority_push(client, supabase, church, gateway):
    conv = church.conversation["id"]
    resp = _send(client, church.alice, conv, content="Carol, can you lead worship?",
                 mentioned_membership_ids=[church.carol.membership_id])
    assert resp.status_code == 201
    assert [m["membership_id"] for m in supabase.rows("mentions", message_id=resp.json()["id"])] == \
        [church.carol.membership_id]

    mentions = [r for r in gateway.requests if r.notification_type == "mention"]
    regular = [r for r in gateway.requests if r.notification_type == "new_message"]
    assert len(mentions) == 1
    assert mentions[0].recipients.user_ids == [church.carol.user_id]
    assert mentions[0].payload.title == "Mentioned by alice"
    assert mentions[0].options.priority == "high"
    assert mentions[0].options.sound == "default"
    assert set(regular[0].recipients.user_ids) == {church.bob.user_id, church.dave.user_id, church.erin.user_id}


def test_mention_title_is_localized(client, supabase, church, gateway):
    hana = add_member(supabase, "hana", locale="ko")
    supabase.add("conversation_participants", {"conversation_id": church.conversation["id"],
                                               "membership_id": hana.membership_id})
    _send(client, church.alice, church.conversation["id"], content="Welcome Hana",
          mentioned_membership_ids=[hana.membership_id])
    mention = next(r for r in gateway.requests if r.notification_type == "mention")
    assert mention.payload.title == "alice님이 멘션함"


def test_cannot_mention_an_excluded_member(client, church, supabase, gateway):
    resp = _send(client, church.alice, church.conversation["id"], excluded=[church.bob.membership_id],
                 mentioned_membership_ids=[church.bob.membership_id])
    assert resp.status_code == 400
    assert resp.json()["detail"] == "cannot mention an excluded member"
    assert supabase.rows("messages") == []
    assert gateway.requests == []
