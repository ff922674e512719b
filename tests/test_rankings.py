from datetime import datetime, timedelta, timezone

import pytest

from toptens.models import RankingModel, ReactionModel, TargetType
from toptens.config import LIKE_EMOJI


def new_ranking(title="Greatest albums", **extra):
    body = {
        "title": title,
        "description": "Ten records everyone should hear",
        "items": [
            {"title": "Kind of Blue", "description": "Miles Davis"},
            {"title": "OK Computer", "imageUrl": "https://img.example.com/okc.jpg"},
            {"title": "Blue Lines"},
        ],
    }
    body.update(extra)
    return body


async def like_as(session_maker, ranking_id, user_ids):
    async with session_maker() as session:
        session.add_all([
            ReactionModel(user_id=user_id, target_type=TargetType.RANKING, target_id=ranking_id, emoji=LIKE_EMOJI)
            for user_id in user_ids
        ])
        await session.commit()


@pytest.mark.asyncio
async def test_publish_assigns_dense_positions_and_creates_category(client, users, auth):
    resp = await client.post("/rankings", json=new_ranking(category="Music"), headers=auth(users["alice"]))

    assert resp.status_code == 201
    body = resp.json()
    assert [item["position"] for item in body["items"]] == [1, 2, 3]
    assert [item["title"] for item in body["items"]] == ["Kind of Blue", "OK Computer", "Blue Lines"]
    assert body["items"][1]["imageUrl"] == "https://img.example.com/okc.jpg"
    assert body["category"]["slug"] == "music"
    assert body["category"]["name"] == "Music"
    assert body["category"]["description"] == "Rankings about Music"
    assert body["isPublic"] is True
    assert body["allowComments"] is True
    assert body["likeCount"] == 0
    assert body["user"]["username"] == "alice"

    again = await client.post("/rankings", json=new_ranking(category="music"), headers=auth(users["bob"]))
    assert again.json()["category"]["id"] == body["category"]["id"]


@pytest.mark.asyncio
async def test_publish_without_category_files_under_other(client, users, auth):
    resp = await client.post("/rankings", json=new_ranking(), headers=auth(users["alice"]))

    assert resp.json()["category"]["slug"] == "other"
    assert resp.json()["category"]["name"] == "Other"


@pytest.mark.asyncio
async def test_publish_validation(client, users, auth):
    no_items = await client.post("/rankings", json=new_ranking(items=[]), headers=auth(users["alice"]))
    no_title = await client.post("/rankings", json=new_ranking(title=""), headers=auth(users["alice"]))
    anonymous = await client.post("/rankings", json=new_ranking())

    assert no_items.status_code == 400
    assert no_title.status_code == 400
    assert anonymous.status_code == 401


@pytest.mark.asyncio
async def test_browse_paginates_filters_and_searches(client, users, make_ranking, auth):
    for title in ("Best pizza toppings", "Best burgers", "Pizza places in Rome"):
        await make_ranking(users["alice"], title)
    await make_ranking(users["alice"], "Secret pizza list", is_public=False)
    await client.post("/rankings", json=new_ranking(category="Music"), headers=auth(users["bob"]))

    first_page = await client.get("/rankings?limit=2")
    assert first_page.status_code == 200
    assert first_page.json()["pagination"] == {"page": 1, "limit": 2, "total": 4, "pages": 2}
    assert len(first_page.json()["rankings"]) == 2
    assert first_page.json()["rankings"][0]["title"] == "Greatest albums"

    second_page = await client.get("/rankings?limit=2&page=2")
    assert len(second_page.json()["rankings"]) == 2

    pizza = await client.get("/rankings?search=PIZZA")
    assert sorted(r["title"] for r in pizza.json()["rankings"]) == ["Best pizza toppings", "Pizza places in Rome"]

    music = await client.get("/rankings?category=music")
    assert [r["title"] for r in music.json()["rankings"]] == ["Greatest albums"]


@pytest.mark.asyncio
async def test_browse_reads_cached_counters(client, users, make_ranking):
    await make_ranking(users["alice"], like_count=42, comment_count=7)

    ranking = (await client.get("/rankings")).json()["rankings"][0]

    assert ranking["likeCount"] == 42
    assert ranking["commentCount"] == 7


@pytest.mark.asyncio
async def test_detail_uses_true_counts_and_hides_private_lists(client, users, make_ranking, session_maker, auth):
    public_id = await make_ranking(users["alice"], like_count=42)
    private_id = await make_ranking(users["alice"], "Diary", is_public=False)
    await like_as(session_maker, public_id, [users["bob"].id])

    detail = await client.get(f"/rankings/{public_id}")
    assert detail.status_code == 200
    assert detail.json()["likeCount"] == 1
    assert len(detail.json()["items"]) == 3

    assert (await client.get(f"/rankings/{private_id}")).status_code == 404
    assert (await client.get(f"/rankings/{private_id}", headers=auth(users["bob"]))).status_code == 404
    assert (await client.get(f"/rankings/{private_id}", headers=auth(users["alice"]))).status_code == 200


@pytest.mark.asyncio
async def test_view_event_increments_view_count(client, users, make_ranking, fetch):
    ranking_id = await make_ranking(users["alice"], view_count=9)

    resp = await client.post(f"/rankings/{ranking_id}/view")

    assert resp.json() == {"viewCount": 10}
    assert (await fetch(RankingModel, ranking_id)).view_count == 10
    assert (await client.post("/rankings/999/view")).status_code == 404


@pytest.mark.asyncio
async def test_featured_orders_by_true_likes_within_thirty_days(client, users, make_ranking, session_maker):
    now = datetime.now(timezone.utc)
    stale_cache = await make_ranking(users["alice"], "Stale cache", like_count=500, created_at=now - timedelta(days=1))
    liked = await make_ranking(users["alice"], "Liked", created_at=now - timedelta(days=2))
    ancient = await make_ranking(users["alice"], "Ancient", created_at=now - timedelta(days=45), items=5)
    hidden = await make_ranking(users["alice"], "Hidden", is_public=False)
    everyone = [u.id for u in users.values()]
    await like_as(session_maker, liked, everyone[:2])
    await like_as(session_maker, ancient, everyone)
    await like_as(session_maker, hidden, everyone)

    resp = await client.get("/rankings/featured")

    assert resp.status_code == 200
    rankings = resp.json()["rankings"]
    assert [r["id"] for r in rankings] == [liked, stale_cache]
    assert rankings[0]["likeCount"] == 2
    assert rankings[1]["likeCount"] == 0
    assert all(len(r["items"]) <= 3 for r in rankings)
    assert "trendingScore" not in rankings[0]


@pytest.mark.asyncio
async def test_trending_prefers_old_popular_over_young_quiet(client, users, make_ranking):
    now = datetime.now(timezone.utc)
    old_popular = await make_ranking(users["alice"], "Old", view_count=1700, created_at=now - timedelta(hours=200))
    young = await make_ranking(users["alice"], "Young", view_count=60, created_at=now - timedelta(hours=2))
    cached_only = await make_ranking(users["alice"], "Cached only", like_count=900, created_at=now - timedelta(hours=1))

    resp = await client.get("/rankings/trending?timeFilter=all")

    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()["rankings"]] == [old_popular, young, cached_only]

    week = await client.get("/rankings/trending")
    assert [r["id"] for r in week.json()["rankings"]] == [young, cached_only]


@pytest.mark.asyncio
async def test_trending_today_and_limit(client, users, make_ranking):
    now = datetime.now(timezone.utc)
    fresh = await make_ranking(users["alice"], "Fresh", view_count=10, created_at=now)
    await make_ranking(users["alice"], "Three days", view_count=5000, created_at=now - timedelta(days=3))

    today = await client.get("/rankings/trending?timeFilter=today")
    assert [r["id"] for r in today.json()["rankings"]] == [fresh]

    limited = await client.get("/rankings/trending?timeFilter=week&limit=1")
    assert len(limited.json()["rankings"]) == 1


@pytest.mark.asyncio
async def test_trending_rejects_unknown_time_filter(client):
    resp = await client.get("/rankings/trending?timeFilter=decade")

    assert resp.status_code == 400
