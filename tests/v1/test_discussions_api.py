# tests/v1/test_discussions_api.py
"""Tests for discussion and conversation endpoints."""

from fastapi import status

BASE = "/api/v1/discussions"


def test_list_discussions(client, discussion) -> None:
    response = client.get(f"{BASE}/")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert [d["id"] for d in body["discussions"]] == [discussion.id]
    assert body["meta"]["page"] == 1
    assert body["discussions"][0]["param"] == f"{discussion.id};Hello"


def test_list_includes_unread_for_members(client, discussion, member_auth) -> None:
    body = client.get(f"{BASE}/", headers=member_auth).json()
    assert body["discussions"][0]["unread"] == 1


def test_popular_out_of_range_redirects_with_default(client) -> None:
    response = client.get(f"{BASE}/popular", params={"days": 181}, follow_redirects=False)
    assert response.status_code == status.HTTP_303_SEE_OTHER
    assert response.headers["location"].endswith("days=7")
    assert "between 1 and 180" in response.headers["x-notice"]


def test_popular_zero_days_redirects(client) -> None:
    response = client.get(f"{BASE}/popular", params={"days": 0}, follow_redirects=False)
    assert response.status_code == status.HTTP_303_SEE_OTHER


def test_popular_within_range(client, discussion) -> None:
    response = client.get(f"{BASE}/popular", params={"days": 7})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["days"] == 7
    assert [d["id"] for d in response.json()["discussions"]] == [discussion.id]


def test_search_without_query_redirects(client) -> None:
    response = client.get(f"{BASE}/search", follow_redirects=False)
    assert response.status_code == status.HTTP_303_SEE_OTHER
    assert response.headers["location"] == f"{BASE}/"
    assert response.headers["x-notice"] == "No query specified!"


def test_search_titles(client, discussion) -> None:
    response = client.get(f"{BASE}/search", params={"q": "hell"})
    assert [d["id"] for d in response.json()["discussions"]] == [discussion.id]


def test_create_discussion(client, category, member_auth) -> None:
    response = client.post(
        f"{BASE}/",
        json={"title": "New thread", "body": "Opening post", "category_id": category.id},
        headers=member_auth,
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["posts_count"] == 1


def test_create_discussion_validation_failure(client, category, member_auth) -> None:
    response = client.post(
        f"{BASE}/",
        json={"title": "No body", "category_id": category.id},
        headers=member_auth,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    body = response.json()
    assert body["notice"].startswith("Could not save your discussion!")
    assert body["errors"] == {"body": ["can't be blank"]}
    assert body["values"]["title"] == "No body"
    assert client.get(f"{BASE}/").json()["discussions"] == []


def test_new_discussion_without_categories_redirects(client, member_auth) -> None:
    response = client.get(f"{BASE}/new", headers=member_auth, follow_redirects=False)
    assert response.status_code == status.HTTP_303_SEE_OTHER
    assert response.headers["location"] == "/api/v1/categories/"


def test_new_discussion_form(client, category, member_auth) -> None:
    response = client.get(f"{BASE}/new", params={"category_id": category.id}, headers=member_auth)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["category"]["id"] == category.id


def test_show_unknown_discussion(client) -> None:
    assert client.get(f"{BASE}/31337").status_code == status.HTTP_404_NOT_FOUND


def test_show_discussion_with_humanized_param(client, discussion, member_auth) -> None:
    response = client.get(f"{BASE}/{discussion.id};Hello", headers=member_auth)
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert [p["body"] for p in body["posts"]] == ["First!"]
    assert body["relationship"] is None


def test_show_trusted_discussion_forbidden(client, trusted_user, trusted_category, make_discussion, member_auth) -> None:
    secret = make_discussion(trusted_user, trusted_category)
    response = client.get(f"{BASE}/{secret.id}", headers=member_auth)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_show_last_page_with_context(client, discussion, member, add_posts, member_auth) -> None:
    add_posts(discussion, member, 54)  # 55 posts over two pages of 50
    response = client.get(f"{BASE}/{discussion.id}", params={"page": "last"}, headers=member_auth)
    body = response.json()
    assert body["meta"]["page"] == 2
    assert body["context"] == 3
    assert len(body["posts"]) == 8

    mobile = client.get(f"{BASE}/{discussion.id}", params={"page": "last", "mobile": True}, headers=member_auth)
    assert len(mobile.json()["posts"]) == 5


def test_edit_requires_owner(client, discussion, other_member, auth_headers) -> None:
    response = client.get(f"{BASE}/{discussion.id}/edit", headers=auth_headers(other_member))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_update_discussion(client, discussion, member_auth) -> None:
    response = client.put(f"{BASE}/{discussion.id}", json={"title": "Renamed"}, headers=member_auth)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["title"] == "Renamed"


def test_reply_and_blank_reply(client, discussion, member_auth) -> None:
    response = client.post(f"{BASE}/{discussion.id}/posts", json={"body": "Me too"}, headers=member_auth)
    assert response.status_code == status.HTTP_201_CREATED

    response = client.post(f"{BASE}/{discussion.id}/posts", json={"body": ""}, headers=member_auth)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_follow_and_favorite_are_independent(client, discussion, member_auth) -> None:
    client.post(f"{BASE}/{discussion.id}/favorite", headers=member_auth)
    client.post(f"{BASE}/{discussion.id}/follow", headers=member_auth)
    response = client.post(f"{BASE}/{discussion.id}/unfollow", headers=member_auth)

    assert response.json() == {"discussion_id": discussion.id, "following": False, "favorite": True}
    favorites = client.get(f"{BASE}/favorites", headers=member_auth).json()
    assert [d["id"] for d in favorites["discussions"]] == [discussion.id]
    following = client.get(f"{BASE}/following", headers=member_auth).json()
    assert following["discussions"] == []


def test_conversation_is_private(client, conversation, auth_headers, make_user) -> None:
    outsider = make_user("outsider")
    response = client.get(f"{BASE}/{conversation.id}", headers=auth_headers(outsider))
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert client.get(f"{BASE}/{conversation.id}").status_code == status.HTTP_403_FORBIDDEN


def test_conversations_listing(client, conversation, other_member, auth_headers) -> None:
    body = client.get(f"{BASE}/conversations", headers=auth_headers(other_member)).json()
    assert [d["id"] for d in body["discussions"]] == [conversation.id]
    assert [d["id"] for d in client.get(f"{BASE}/").json()["discussions"]] == []


def test_create_conversation_with_recipient(client, member_auth, other_member) -> None:
    response = client.post(
        f"{BASE}/",
        params={"type": "conversation", "recipient_id": other_member.id},
        json={"title": "Psst", "body": "Secret plans"},
        headers=member_auth,
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["kind"] == "conversation"


def test_invite_participants(client, conversation, make_user, member_auth) -> None:
    make_user("carol")
    response = client.post(
        f"{BASE}/{conversation.id}/invite_participant",
        json={"username": "carol, nobody"},
        headers=member_auth,
    )
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert [u["username"] for u in body["invited"]] == ["carol"]
    assert body["skipped"] == ["nobody"]
    assert [u["username"] for u in body["participants"]] == ["carol", "member", "other"]


def test_remove_participant(client, conversation, other_member, auth_headers) -> None:
    headers = auth_headers(other_member)
    response = client.post(f"{BASE}/{conversation.id}/remove_participant", headers=headers)
    assert response.json() == {"removed": True, "notice": "You have been removed from the conversation"}
    assert client.get(f"{BASE}/{conversation.id}", headers=headers).status_code == status.HTTP_403_FORBIDDEN


def test_mark_as_read(client, discussion, member_auth) -> None:
    response = client.post(f"{BASE}/{discussion.id}/mark_as_read", headers=member_auth)
    assert response.json() == {"status": "OK"}
    assert client.get(f"{BASE}/", headers=member_auth).json()["discussions"][0]["unread"] == 0


def test_search_posts_in_discussion(client, discussion, member, add_posts) -> None:
    add_posts(discussion, member, 3)
    response = client.get(f"{BASE}/{discussion.id}/search_posts", params={"query": "Reply 2"})
    assert [p["body"] for p in response.json()["posts"]] == ["Reply 2"]


def test_favorite_conversation_forbidden(client, conversation, member_auth) -> None:
    response = client.post(f"{BASE}/{conversation.id}/favorite", headers=member_auth)
    assert response.status_code == status.HTTP_403_FORBIDDEN
    favorites = client.get(f"{BASE}/favorites", headers=member_auth).json()
    assert favorites["discussions"] == []
