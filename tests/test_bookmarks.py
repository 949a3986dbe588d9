"""Tests for the bookmark service and endpoints."""

import pytest
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

import app.core.database as database_module
from app.core.database import ConnectionState, DatabaseConnection, session_scope
from app.core.errors import ValidationError
from app.schemas.bookmark import ArticleIn, BookmarkCreate
from app.services import bookmark as bookmark_service
from tests.conftest import TEST_EMAIL, TEST_USER_ID

BOOKMARKS_URL = "/api/v1/bookmarks"


class TestArticleId:
    def test_is_deterministic(self):
        url = "https://news.example.com/a?b=c"

        assert bookmark_service.encode_article_id(url) == bookmark_service.encode_article_id(url)

    def test_distinct_urls_get_distinct_ids(self):
        urls = [
            "https://news.example.com/a",
            "https://news.example.com/b",
            "https://news.example.com/a/",
            "https://news.example.com/ä",
        ]

        ids = {bookmark_service.encode_article_id(url) for url in urls}

        assert len(ids) == len(urls)

    def test_decodes_back_to_url(self):
        url = "https://news.example.com/2024/05/markets-rally"

        article_id = bookmark_service.encode_article_id(url)

        assert article_id == "aHR0cHM6Ly9uZXdzLmV4YW1wbGUuY29tLzIwMjQvMDUvbWFya2V0cy1yYWxseQ=="
        assert bookmark_service.decode_article_id(article_id) == url

    def test_decode_rejects_garbage(self):
        with pytest.raises(ValueError):
            bookmark_service.decode_article_id("not base64!")


class TestCreateBookmarkService:
    async def test_lost_insert_race_returns_existing(self, database, monkeypatch, article):
        data = BookmarkCreate(article=ArticleIn.model_validate(article))
        async with session_scope() as session:
            stored, created = await bookmark_service.create_bookmark(session, TEST_USER_ID, data)
        assert created

        # The pre-insert lookup misses, as if the other writer had not committed yet
        real_get_bookmark = bookmark_service.get_bookmark
        calls = []

        async def racing_get_bookmark(session, user_id, article_id):
            calls.append(article_id)
            if len(calls) == 1:
                return None
            return await real_get_bookmark(session, user_id, article_id)

        monkeypatch.setattr(bookmark_service, "get_bookmark", racing_get_bookmark)

        async with session_scope() as session:
            bookmark, created = await bookmark_service.create_bookmark(session, TEST_USER_ID, data)

        assert not created
        assert bookmark.id == stored.id
        assert len(calls) == 2

    async def test_missing_title_is_invalid(self, database, article):
        article.pop("title")
        data = BookmarkCreate(article=ArticleIn.model_validate(article))

        async with session_scope() as session:
            with pytest.raises(ValidationError):
                await bookmark_service.create_bookmark(session, TEST_USER_ID, data)


class TestBookmarkEndpoints:
    async def test_requires_session(self, client, article):
        response = await client.post(BOOKMARKS_URL, json={"article": article})

        assert response.status_code == 401
        assert response.json() == {"message": "Unauthorized"}

    async def test_invalid_token_is_unauthorized(self, client):
        response = await client.get(BOOKMARKS_URL, headers={"Cookie": "newsdesk_session=garbage"})

        assert response.status_code == 401

    async def test_create_bookmark(self, make_client, article):
        async with make_client() as ac:
            response = await ac.post(BOOKMARKS_URL, json={"article": article})

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Article bookmarked successfully"
        bookmark = body["bookmark"]
        assert bookmark["userId"] == TEST_USER_ID
        assert bookmark["articleId"] == bookmark_service.encode_article_id(article["url"])
        assert bookmark["category"] == "general"
        assert bookmark["source"] == {"name": "Example Wire"}
        assert bookmark["urlToImage"] == article["urlToImage"]
        assert "_id" in bookmark

    async def test_second_create_returns_existing(self, make_client, article):
        async with make_client() as ac:
            first = await ac.post(BOOKMARKS_URL, json={"article": article, "category": "business"})
            second = await ac.post(BOOKMARKS_URL, json={"article": article})
            listed = await ac.get(BOOKMARKS_URL)

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json()["message"] == "Article already bookmarked"
        assert second.json()["bookmark"]["_id"] == first.json()["bookmark"]["_id"]
        assert second.json()["bookmark"]["category"] == "business"
        assert len(listed.json()) == 1

    async def test_missing_article_url(self, make_client, article):
        article.pop("url")

        async with make_client() as ac:
            response = await ac.post(BOOKMARKS_URL, json={"article": article})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid article data"

    async def test_list_is_newest_first_and_scoped_to_user(self, make_client, article):
        other = dict(article, url="https://news.example.com/2024/05/second", title="Second")

        async with make_client() as ac:
            await ac.post(BOOKMARKS_URL, json={"article": article})
            await ac.post(BOOKMARKS_URL, json={"article": other})
            mine = await ac.get(BOOKMARKS_URL)

        async with make_client({"sub": "someone-else"}) as ac:
            theirs = await ac.get(BOOKMARKS_URL)

        assert mine.status_code == 200
        assert [b["title"] for b in mine.json()] == ["Second", article["title"]]
        assert theirs.json() == []

    async def test_delete_bookmark(self, make_client, article):
        article_id = bookmark_service.encode_article_id(article["url"])

        async with make_client() as ac:
            await ac.post(BOOKMARKS_URL, json={"article": article})
            deleted = await ac.delete(BOOKMARKS_URL, params={"articleId": article_id})
            again = await ac.delete(BOOKMARKS_URL, params={"articleId": article_id})
            listed = await ac.get(BOOKMARKS_URL)

        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Bookmark removed successfully"}
        assert again.status_code == 404
        assert again.json() == {"message": "Bookmark not found"}
        assert listed.json() == []

    async def test_delete_requires_article_id(self, make_client):
        async with make_client() as ac:
            response = await ac.delete(BOOKMARKS_URL)

        assert response.status_code == 400
        assert response.json() == {"message": "Article ID is required"}

    async def test_email_identifies_caller_when_token_has_no_id(self, make_client, article):
        async with make_client({"email": TEST_EMAIL}) as ac:
            response = await ac.post(BOOKMARKS_URL, json={"article": article})

        assert response.status_code == 201
        assert response.json()["bookmark"]["userId"] == TEST_EMAIL

    async def test_header_identifies_caller_when_token_has_no_id(self, make_client):
        async with make_client({"name": "Anonymous"}) as ac:
            response = await ac.get(BOOKMARKS_URL, headers={"X-User-ID": "header-user"})

        assert response.status_code == 200

    async def test_body_identifies_caller_when_token_has_no_id(self, make_client, article):
        async with make_client({"name": "Anonymous"}) as ac:
            response = await ac.post(
                BOOKMARKS_URL,
                json={"article": article, "userId": "body-user"},
            )

        assert response.status_code == 201
        assert response.json()["bookmark"]["userId"] == "body-user"

    async def test_no_identity_is_bad_request(self, make_client):
        async with make_client({"name": "Anonymous"}) as ac:
            response = await ac.get(BOOKMARKS_URL)

        assert response.status_code == 400
        assert response.json() == {"message": "User ID not found"}

    @pytest.mark.parametrize(
        "payload",
        [
            {"article": "not-an-object"},
            {"article": {"url": "https://news.example.com/a", "title": 5, "publishedAt": "2024-05-02"}},
            {"article": {"url": ["https://news.example.com/a"]}},
        ],
    )
    async def test_wrongly_typed_body_is_bad_request(self, make_client, payload):
        async with make_client() as ac:
            response = await ac.post(BOOKMARKS_URL, json=payload)

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid article data"}

    async def test_malformed_json_is_bad_request(self, make_client):
        async with make_client() as ac:
            response = await ac.post(
                BOOKMARKS_URL,
                content=b'{"article": ',
                headers={"Content-Type": "application/json"},
            )

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid article data"}


class TestBookmarkStoreFailures:
    async def test_list_failure(self, make_client, monkeypatch):
        async def broken(session, user_id):
            raise SQLAlchemyError("connection reset")

        monkeypatch.setattr(bookmark_service, "list_bookmarks", broken)

        async with make_client() as ac:
            response = await ac.get(BOOKMARKS_URL)

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to fetch bookmarks"}

    async def test_create_failure_hides_statement(self, make_client, monkeypatch, article):
        async def broken(session, user_id, data):
            raise IntegrityError(
                "INSERT INTO bookmarks (user_id, url) VALUES (?, ?)",
                ("secret-user", article["url"]),
                Exception("UNIQUE constraint failed"),
            )

        monkeypatch.setattr(bookmark_service, "create_bookmark", broken)

        async with make_client() as ac:
            response = await ac.post(BOOKMARKS_URL, json={"article": article})

        assert response.status_code == 500
        assert response.json() == {
            "message": "Failed to bookmark article",
            "error": "UNIQUE constraint failed",
        }
        assert "INSERT" not in response.text
        assert "secret-user" not in response.text

    async def test_delete_failure(self, make_client, monkeypatch):
        async def broken(session, user_id, article_id):
            raise SQLAlchemyError("connection reset")

        monkeypatch.setattr(bookmark_service, "delete_bookmark", broken)

        async with make_client() as ac:
            response = await ac.delete(BOOKMARKS_URL, params={"articleId": "YQ=="})

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to remove bookmark"}

    @pytest.mark.parametrize("method", ["GET", "POST", "DELETE"])
    async def test_unreachable_database(self, make_client, monkeypatch, tmp_path, article, method):
        unreachable = DatabaseConnection(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'newsdesk.db'}")
        monkeypatch.setattr(database_module, "_database", unreachable)

        async with make_client() as ac:
            if method == "GET":
                response = await ac.get(BOOKMARKS_URL)
            elif method == "POST":
                response = await ac.post(BOOKMARKS_URL, json={"article": article})
            else:
                response = await ac.delete(BOOKMARKS_URL, params={"articleId": "YQ=="})

        assert response.status_code == 500
        assert response.json()["message"] == "Database unavailable"
        assert "SELECT" not in response.text
        assert unreachable.state is ConnectionState.FAILED
