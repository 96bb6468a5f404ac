import pytest

from factories import API, PNG_BYTES, create_category, create_user, login


async def _setup_article(client):
    await create_user("author@example.com")
    await create_user("guest@example.com", name="Guest")
    category = await create_category()
    author = await login(client, "author@example.com")
    guest = await login(client, "guest@example.com")
    resp = await client.post(
        f"{API}/articles",
        data={"title": "Post", "slug": "post", "content": "body", "category_id": category.id},
        files={"thumbnail": ("cover.gif", PNG_BYTES, "image/gif")},
        headers=author,
    )
    assert resp.status_code == 201, resp.text
    return author, guest


@pytest.mark.anyio
async def test_comment_owner_can_edit_and_delete(client):
    author, guest = await _setup_article(client)

    resp = await client.post(f"{API}/articles/post/comments", json={"content": "Hi"}, headers=guest)
    assert resp.status_code == 201
    comment_id = resp.json()["id"]

    resp = await client.put(f"{API}/comments/{comment_id}", json={"content": "Edited"}, headers=guest)
    assert resp.status_code == 200
    assert resp.json()["content"] == "Edited"

    resp = await client.delete(f"{API}/comments/{comment_id}", headers=guest)
    assert resp.status_code == 200

    resp = await client.delete(f"{API}/comments/{comment_id}", headers=guest)
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_other_users_cannot_touch_comment(client):
    author, guest = await _setup_article(client)
    resp = await client.post(f"{API}/articles/post/comments", json={"content": "Mine"}, headers=guest)
    comment_id = resp.json()["id"]

    # 文章作者也不能修改他人的评论
    resp = await client.put(f"{API}/comments/{comment_id}", json={"content": "Not yours"}, headers=author)
    assert resp.status_code == 403
    resp = await client.delete(f"{API}/comments/{comment_id}", headers=author)
    assert resp.status_code == 403


@pytest.mark.anyio
async def test_comment_on_missing_article(client):
    await create_user("author@example.com")
    headers = await login(client, "author@example.com")

    resp = await client.post(f"{API}/articles/missing/comments", json={"content": "Hi"}, headers=headers)
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_empty_comment_is_rejected(client):
    author, guest = await _setup_article(client)
    resp = await client.post(f"{API}/articles/post/comments", json={"content": ""}, headers=guest)
    assert resp.status_code == 400
