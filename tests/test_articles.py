from pathlib import Path

import pytest
from sqlalchemy import func, select

from app.database import AsyncSessionLocal
from app.models import Comment, Tag
from app.services.article_service import ArticleService
from factories import API, PNG_BYTES, create_category, create_user, login


async def _post_article(client, headers, category_id, slug="first-post", tags=("go", "python"), **extra):
    data = {
        "title": "First post",
        "slug": slug,
        "content": "Hello world",
        "category_id": category_id,
        "tags": list(tags),
    }
    data.update(extra)
    return await client.post(
        f"{API}/articles",
        data=data,
        files={"thumbnail": ("cover.png", PNG_BYTES, "image/png")},
        headers=headers,
    )


async def _count(model) -> int:
    async with AsyncSessionLocal() as db:
        return await db.scalar(select(func.count()).select_from(model))


@pytest.mark.anyio
async def test_create_article_with_tags(client):
    await create_user("author@example.com")
    category = await create_category()
    headers = await login(client, "author@example.com")

    resp = await _post_article(client, headers, category.id, tags=("go", "python", "go", " "))
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["slug"] == "first-post"
    assert body["status"] == "draft"
    assert body["category"]["id"] == category.id
    assert body["author"]["name"] == "Reader"
    assert sorted(tag["name"] for tag in body["tags"]) == ["go", "python"]
    assert Path(body["thumbnail"]).exists()

    resp = await client.get(f"{API}/articles")
    assert resp.status_code == 200
    listing = resp.json()
    assert listing["total"] == 1
    assert listing["articles"][0]["slug"] == "first-post"


@pytest.mark.anyio
async def test_create_article_requires_auth(client):
    category = await create_category()
    resp = await _post_article(client, {}, category.id)
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_create_article_rejects_duplicate_slug(client):
    await create_user("author@example.com")
    category = await create_category()
    headers = await login(client, "author@example.com")

    assert (await _post_article(client, headers, category.id)).status_code == 201
    resp = await _post_article(client, headers, category.id, tags=("other",))
    assert resp.status_code == 409
    assert await _count(Tag) == 2


@pytest.mark.anyio
async def test_create_article_rejects_unknown_category(client):
    await create_user("author@example.com")
    headers = await login(client, "author@example.com")

    resp = await _post_article(client, headers, "missing-category")
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "category_id"


@pytest.mark.anyio
async def test_create_article_rejects_non_image_thumbnail(client):
    await create_user("author@example.com")
    category = await create_category()
    headers = await login(client, "author@example.com")

    resp = await client.post(
        f"{API}/articles",
        data={"title": "Bad file", "slug": "bad-file", "content": "x", "category_id": category.id},
        files={"thumbnail": ("notes.txt", b"plain text", "text/plain")},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "thumbnail"


@pytest.mark.anyio
async def test_create_article_missing_fields_is_validation_error(client):
    await create_user("author@example.com")
    headers = await login(client, "author@example.com")

    resp = await client.post(f"{API}/articles", data={"title": "Only title"}, headers=headers)
    assert resp.status_code == 400
    fields = {item["field"] for item in resp.json()["details"]}
    assert {"slug", "content", "category_id", "thumbnail"} <= fields


@pytest.mark.anyio
async def test_update_article_replaces_tags_and_thumbnail(client):
    await create_user("author@example.com")
    category = await create_category()
    headers = await login(client, "author@example.com")
    created = (await _post_article(client, headers, category.id)).json()

    resp = await client.put(
        f"{API}/articles/first-post",
        data={"title": "Renamed", "tags": ["rust"]},
        files={"thumbnail": ("new.jpg", PNG_BYTES, "image/jpeg")},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["title"] == "Renamed"
    assert [tag["name"] for tag in body["tags"]] == ["rust"]
    assert body["thumbnail"] != created["thumbnail"]
    assert Path(body["thumbnail"]).exists()
    assert not Path(created["thumbnail"]).exists()


@pytest.mark.anyio
async def test_update_without_tags_keeps_existing_tags(client):
    await create_user("author@example.com")
    category = await create_category()
    headers = await login(client, "author@example.com")
    await _post_article(client, headers, category.id)

    resp = await client.put(
        f"{API}/articles/first-post",
        data={"content": "Edited", "status": "published"},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["content"] == "Edited"
    assert body["status"] == "published"
    assert sorted(tag["name"] for tag in body["tags"]) == ["go", "python"]


@pytest.mark.anyio
async def test_only_author_can_modify_article(client):
    await create_user("author@example.com")
    await create_user("other@example.com", name="Other")
    category = await create_category()
    author_headers = await login(client, "author@example.com")
    other_headers = await login(client, "other@example.com")
    await _post_article(client, author_headers, category.id)

    resp = await client.put(f"{API}/articles/first-post", data={"title": "Hijacked"}, headers=other_headers)
    assert resp.status_code == 403
    assert resp.json()["error_code"] == "FORBIDDEN"

    resp = await client.delete(f"{API}/articles/first-post", headers=other_headers)
    assert resp.status_code == 403
    assert (await client.get(f"{API}/articles/first-post")).status_code == 200


@pytest.mark.anyio
async def test_delete_article_cascades_comments(client):
    await create_user("author@example.com")
    await create_user("reader2@example.com", name="Second Reader")
    category = await create_category()
    author_headers = await login(client, "author@example.com")
    reader_headers = await login(client, "reader2@example.com")
    created = (await _post_article(client, author_headers, category.id)).json()

    resp = await client.post(
        f"{API}/articles/first-post/comments",
        json={"content": "Nice article"},
        headers=reader_headers,
    )
    assert resp.status_code == 201, resp.text
    assert await _count(Comment) == 1

    resp = await client.delete(f"{API}/articles/first-post", headers=author_headers)
    assert resp.status_code == 200, resp.text

    assert (await client.get(f"{API}/articles/first-post")).status_code == 404
    assert await _count(Comment) == 0
    # 标签行保留
    assert await _count(Tag) == 2
    assert not Path(created["thumbnail"]).exists()


@pytest.mark.anyio
async def test_article_detail_includes_comments(client):
    await create_user("author@example.com")
    category = await create_category()
    headers = await login(client, "author@example.com")
    await _post_article(client, headers, category.id)
    await client.post(f"{API}/articles/first-post/comments", json={"content": "First!"}, headers=headers)

    resp = await client.get(f"{API}/articles/first-post")
    assert resp.status_code == 200
    comments = resp.json()["comments"]
    assert len(comments) == 1
    assert comments[0]["content"] == "First!"
    assert comments[0]["user"]["name"] == "Reader"


@pytest.mark.anyio
async def test_missing_article_returns_not_found(client):
    resp = await client.get(f"{API}/articles/nope")
    assert resp.status_code == 404
    assert resp.json() == {
        "status": "error",
        "message": "文章不存在",
        "error_code": "NOT_FOUND",
        "code": 404,
    }


@pytest.mark.anyio
async def test_overlong_tag_name_is_rejected_before_saving(client):
    await create_user("author@example.com")
    category = await create_category()
    headers = await login(client, "author@example.com")

    resp = await _post_article(client, headers, category.id, tags=("x" * 51,))
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "tags"
    assert (await client.get(f"{API}/articles/first-post")).status_code == 404
    assert await _count(Tag) == 0

    # 恰好 50 个字符（去除空白后）可以保存
    resp = await _post_article(client, headers, category.id, tags=(" " + "y" * 50 + " ",))
    assert resp.status_code == 201, resp.text

    resp = await client.put(
        f"{API}/articles/first-post", data={"tags": ["z" * 80]}, headers=headers
    )
    assert resp.status_code == 400
    assert (await client.get(f"{API}/articles")).status_code == 200


@pytest.mark.anyio
async def test_slug_taken_between_check_and_insert_is_conflict(client, monkeypatch):
    await create_user("author@example.com")
    category = await create_category()
    headers = await login(client, "author@example.com")
    assert (await _post_article(client, headers, category.id)).status_code == 201
    assert (await _post_article(client, headers, category.id, slug="second-post")).status_code == 201

    # 模拟另一请求在检查之后才写入同一 slug
    async def slug_looks_free(self, slug, exclude_id=None):
        return None

    monkeypatch.setattr(ArticleService, "_ensure_slug_free", slug_looks_free)

    resp = await _post_article(client, headers, category.id, tags=("late",))
    assert resp.status_code == 409
    assert resp.json()["error_code"] == "CONFLICT"
    assert await _count(Tag) == 2

    resp = await client.put(
        f"{API}/articles/second-post", data={"slug": "first-post"}, headers=headers
    )
    assert resp.status_code == 409
    assert (await client.get(f"{API}/articles/second-post")).status_code == 200
