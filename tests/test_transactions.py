from datetime import datetime, timedelta, timezone

import pytest

URL = "/api/transactions"


def _payload(**overrides):
    body = {
        "type": "expense",
        "amount": 42.5,
        "category": "Food",
        "description": "  Groceries  ",
        "tags": ["weekly", "supermarket"],
    }
    body.update(overrides)
    return body


async def _create(client, headers, **overrides):
    res = await client.post(URL, json=_payload(**overrides), headers=headers)
    assert res.status_code == 201, res.text
    return res.json()["transaction"]


@pytest.mark.asyncio
async def test_requires_token(client):
    res = await client.get(URL)
    assert res.status_code == 401
    assert res.json()["message"] == "No token provided"


@pytest.mark.asyncio
async def test_create_and_get(client, auth_headers):
    created = await _create(client, auth_headers)
    assert created["description"] == "Groceries"
    assert created["amount"] == 42.5
    assert created["tags"] == ["weekly", "supermarket"]
    assert "createdAt" in created

    res = await client.get(f"{URL}/{created['id']}", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["transaction"]["id"] == created["id"]


@pytest.mark.asyncio
async def test_create_splits_comma_separated_tags(client, auth_headers):
    created = await _create(client, auth_headers, tags="rent, , utilities ")
    assert created["tags"] == ["rent", "utilities"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"amount": -1},
        {"category": "Gambling"},
        {"type": "transfer"},
        {"description": "x" * 501},
    ],
)
async def test_create_validation_errors(client, auth_headers, overrides):
    res = await client.post(URL, json=_payload(**overrides), headers=auth_headers)
    assert res.status_code == 422
    assert res.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_list_paginates_newest_first(client, auth_headers):
    base = datetime(2024, 3, 1, tzinfo=timezone.utc)
    for day in range(5):
        await _create(client, auth_headers, description=f"day {day}", date=(base + timedelta(days=day)).isoformat())

    res = await client.get(URL, params={"page": 1, "limit": 2}, headers=auth_headers)
    body = res.json()
    assert res.status_code == 200
    assert [t["description"] for t in body["transactions"]] == ["day 4", "day 3"]
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 5, "pages": 3}

    res = await client.get(URL, params={"page": 3, "limit": 2}, headers=auth_headers)
    assert [t["description"] for t in res.json()["transactions"]] == ["day 0"]


@pytest.mark.asyncio
async def test_list_filters(client, auth_headers):
    await _create(client, auth_headers, date="2024-01-10")
    await _create(client, auth_headers, category="Bills", date="2024-02-10")
    await _create(client, auth_headers, type="income", category="Salary", amount=1000, date="2024-02-15")

    res = await client.get(URL, params={"type": "income"}, headers=auth_headers)
    assert [t["category"] for t in res.json()["transactions"]] == ["Salary"]

    res = await client.get(URL, params={"category": "Bills"}, headers=auth_headers)
    assert res.json()["pagination"]["total"] == 1

    res = await client.get(URL, params={"startDate": "2024-02-01", "endDate": "2024-02-12"}, headers=auth_headers)
    assert [t["category"] for t in res.json()["transactions"]] == ["Bills"]


@pytest.mark.asyncio
async def test_update_is_partial(client, auth_headers):
    created = await _create(client, auth_headers)
    res = await client.put(f"{URL}/{created['id']}", json={"amount": 10}, headers=auth_headers)
    assert res.status_code == 200
    updated = res.json()["transaction"]
    assert updated["amount"] == 10
    assert updated["category"] == "Food"
    assert updated["description"] == "Groceries"


@pytest.mark.asyncio
async def test_update_rejects_null_for_required_field(client, auth_headers):
    created = await _create(client, auth_headers)
    res = await client.put(f"{URL}/{created['id']}", json={"amount": None}, headers=auth_headers)
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_delete(client, auth_headers):
    created = await _create(client, auth_headers)
    res = await client.delete(f"{URL}/{created['id']}", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["message"] == "Transaction deleted successfully"

    res = await client.get(f"{URL}/{created['id']}", headers=auth_headers)
    assert res.status_code == 404
    assert res.json() == {"message": "Transaction not found", "code": "TRANSACTION_NOT_FOUND"}


@pytest.mark.asyncio
async def test_other_users_cannot_touch_transaction(client, auth_headers, other_auth_headers):
    created = await _create(client, auth_headers)
    path = f"{URL}/{created['id']}"

    assert (await client.get(path, headers=other_auth_headers)).status_code == 404
    assert (await client.put(path, json={"amount": 1}, headers=other_auth_headers)).status_code == 404
    assert (await client.delete(path, headers=other_auth_headers)).status_code == 404

    res = await client.get(URL, headers=other_auth_headers)
    assert res.json()["transactions"] == []

    res = await client.get(path, headers=auth_headers)
    assert res.json()["transaction"]["amount"] == 42.5


@pytest.mark.asyncio
async def test_summary(client, auth_headers):
    await _create(client, auth_headers, type="income", category="Salary", amount=3000)
    await _create(client, auth_headers, amount=120)
    await _create(client, auth_headers, amount=80, category="Bills")
    # Outside every window
    await _create(client, auth_headers, amount=999, date="2000-01-01")

    res = await client.get(f"{URL}/stats/summary", headers=auth_headers)
    assert res.status_code == 200
    assert res.json() == {
        "period": "month",
        "totalIncome": 3000.0,
        "totalExpenses": 200.0,
        "netIncome": 2800.0,
        "transactionCount": 3,
    }


@pytest.mark.asyncio
async def test_summary_unknown_period_falls_back_to_month(client, auth_headers):
    res = await client.get(f"{URL}/stats/summary", params={"period": "decade"}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["period"] == "month"
    assert res.json()["transactionCount"] == 0


@pytest.mark.asyncio
async def test_category_breakdown(client, auth_headers):
    await _create(client, auth_headers, amount=75, category="Food")
    await _create(client, auth_headers, amount=25, category="Bills")
    await _create(client, auth_headers, type="income", category="Salary", amount=500)

    res = await client.get(f"{URL}/stats/categories", params={"period": "year"}, headers=auth_headers)
    body = res.json()
    assert body["period"] == "year"
    assert body["categories"] == [
        {"category": "Food", "total": 75.0, "percentage": 75.0},
        {"category": "Bills", "total": 25.0, "percentage": 25.0},
    ]


@pytest.mark.asyncio
async def test_trends_week_has_daily_buckets(client, auth_headers):
    await _create(client, auth_headers, amount=30)
    await _create(client, auth_headers, type="income", category="Freelance", amount=100)

    res = await client.get(f"{URL}/trends", params={"range": "week"}, headers=auth_headers)
    body = res.json()
    assert body["range"] == "week"
    assert len(body["trends"]) == 8
    today = body["trends"][-1]
    assert today["period"] == datetime.now(timezone.utc).strftime("%Y-%m-%d")
    assert today == {"period": today["period"], "month": today["period"], "income": 100.0, "expenses": 30.0, "net": 70.0}
    assert all(point["net"] == 0 for point in body["trends"][:-1])


@pytest.mark.asyncio
async def test_trends_year_has_monthly_buckets(client, auth_headers):
    res = await client.get(f"{URL}/trends", params={"range": "year"}, headers=auth_headers)
    trends = res.json()["trends"]
    now = datetime.now(timezone.utc)
    assert len(trends) == now.month
    assert trends[0]["period"] == f"{now.year}-01"


@pytest.mark.asyncio
async def test_rejects_non_finite_amount(client, auth_headers):
    raw = '{"type": "expense", "amount": Infinity, "category": "Food"}'
    res = await client.post(URL, content=raw, headers={**auth_headers, "Content-Type": "application/json"})
    assert res.status_code == 422
    assert res.json()["code"] == "VALIDATION_ERROR"

    listing = await client.get(URL, headers=auth_headers)
    assert listing.json()["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_records_carry_legacy_id_key(client, auth_headers):
    created = await _create(client, auth_headers)
    assert created["_id"] == created["id"]

    listed = (await client.get(URL, headers=auth_headers)).json()["transactions"][0]
    assert listed["_id"] == created["id"]


@pytest.mark.asyncio
async def test_dates_are_utc_on_create_and_read(client, auth_headers):
    created = await _create(client, auth_headers, date="2024-01-10T08:30:00")
    assert created["date"] == "2024-01-10T08:30:00Z"

    fetched = (await client.get(f"{URL}/{created['id']}", headers=auth_headers)).json()["transaction"]
    assert fetched["date"] == created["date"]
    assert fetched["createdAt"].endswith("Z")
