"""Tests for the dashboard statistics."""
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import TransactionType
from app.models.user import User
from app.services.stats_service import StatsService


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_register_then_summary(client: AsyncClient):
    """A fresh account with one expense and one income."""
    registered = await client.post(
        "/api/auth/register",
        json={"name": "Dana", "email": "dana@example.com", "password": "secret123"},
    )
    headers = {"Authorization": f"Bearer {registered.json()['data']['token']}"}

    categories = (await client.get("/api/categories", headers=headers)).json()["data"]
    by_name = {c["name"]: c["id"] for c in categories}

    await client.post(
        "/api/transactions",
        json={"amount": 100, "type": "EXPENSE", "categoryId": by_name["Food"]},
        headers=headers,
    )
    await client.post(
        "/api/transactions",
        json={"amount": 300, "type": "INCOME", "categoryId": by_name["Salary"]},
        headers=headers,
    )

    response = await client.get("/api/stats/summary", headers=headers)

    assert response.status_code == 200
    assert response.json()["data"] == {
        "totalExpenses": 100,
        "totalIncomes": 300,
        "balance": 200,
        "transactionCount": {"expenses": 1, "incomes": 1, "total": 2},
    }


@pytest.mark.asyncio
async def test_summary_empty_period_is_all_zeros(
    client: AsyncClient, test_user: User, auth_headers: dict, category_of, add_transaction
):
    await add_transaction(test_user, await category_of(test_user, "Food"), 40, date=utc(2024, 1, 10))

    response = await client.get("/api/stats/summary?month=2023-06", headers=auth_headers)

    assert response.json()["data"] == {
        "totalExpenses": 0,
        "totalIncomes": 0,
        "balance": 0,
        "transactionCount": {"expenses": 0, "incomes": 0, "total": 0},
    }


@pytest.mark.asyncio
async def test_summary_rounds_and_respects_date_filters(
    client: AsyncClient, test_user: User, auth_headers: dict, category_of, add_transaction
):
    food = await category_of(test_user, "Food")
    salary = await category_of(test_user, "Salary")
    await add_transaction(test_user, food, 10.004, date=utc(2024, 3, 10, 0, 0))
    await add_transaction(test_user, food, 0.1, date=utc(2024, 3, 20, 23, 59, 59))
    await add_transaction(test_user, salary, 1000, type=TransactionType.INCOME, date=utc(2024, 3, 15))
    # Outside the window on both sides
    await add_transaction(test_user, food, 500, date=utc(2024, 3, 9, 23, 59, 59))
    await add_transaction(test_user, food, 500, date=utc(2024, 3, 21, 0, 0))

    response = await client.get(
        "/api/stats/summary?startDate=2024-03-10&endDate=2024-03-20", headers=auth_headers
    )

    data = response.json()["data"]
    assert data["totalExpenses"] == 10.1
    assert data["totalIncomes"] == 1000
    assert data["balance"] == 989.9
    assert data["transactionCount"] == {"expenses": 2, "incomes": 1, "total": 3}


@pytest.mark.asyncio
async def test_summary_excludes_other_users(
    client: AsyncClient,
    test_user: User,
    other_user: User,
    auth_headers: dict,
    category_of,
    add_transaction,
):
    await add_transaction(other_user, await category_of(other_user, "Food"), 75)

    response = await client.get("/api/stats/summary", headers=auth_headers)

    assert response.json()["data"]["transactionCount"]["total"] == 0


@pytest.mark.asyncio
async def test_summary_invalid_year(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/stats/summary?year=abcd", headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_by_category_percentages(
    client: AsyncClient, test_user: User, auth_headers: dict, category_of, add_transaction
):
    food = await category_of(test_user, "Food")
    transport = await category_of(test_user, "Transport")
    leisure = await category_of(test_user, "Leisure")
    await add_transaction(test_user, food, 50)
    await add_transaction(test_user, food, 10)
    await add_transaction(test_user, transport, 30)
    await add_transaction(test_user, leisure, 10)
    await add_transaction(
        test_user, await category_of(test_user, "Salary"), 5000, type=TransactionType.INCOME
    )

    response = await client.get("/api/stats/by-category", headers=auth_headers)

    data = response.json()["data"]
    assert data["grandTotal"] == 100
    assert [s["category"]["name"] for s in data["stats"]] == ["Food", "Transport", "Leisure"]
    food_stat = data["stats"][0]
    assert food_stat["total"] == 60
    assert food_stat["count"] == 2
    assert food_stat["percentage"] == 60
    assert food_stat["category"] == {
        "id": food.id,
        "name": "Food",
        "icon": food.icon,
        "color": food.color,
    }
    assert sum(s["percentage"] for s in data["stats"]) == pytest.approx(100, abs=0.05)


@pytest.mark.asyncio
async def test_by_category_uneven_split_sums_to_100(
    client: AsyncClient, test_user: User, auth_headers: dict, category_of, add_transaction
):
    for name in ("Food", "Transport", "Leisure"):
        await add_transaction(test_user, await category_of(test_user, name), 1)

    response = await client.get("/api/stats/by-category", headers=auth_headers)

    percentages = [s["percentage"] for s in response.json()["data"]["stats"]]
    assert percentages == [33.33, 33.33, 33.33]
    assert sum(percentages) == pytest.approx(100, abs=0.05)


@pytest.mark.asyncio
async def test_by_category_income(
    client: AsyncClient, test_user: User, auth_headers: dict, category_of, add_transaction
):
    await add_transaction(test_user, await category_of(test_user, "Food"), 20)
    await add_transaction(
        test_user, await category_of(test_user, "Salary"), 2000, type=TransactionType.INCOME
    )

    response = await client.get("/api/stats/by-category?type=INCOME", headers=auth_headers)

    stats = response.json()["data"]["stats"]
    assert [(s["category"]["name"], s["percentage"]) for s in stats] == [("Salary", 100)]


@pytest.mark.asyncio
async def test_by_category_empty(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/stats/by-category?month=2024-01", headers=auth_headers)

    assert response.json()["data"] == {"stats": [], "grandTotal": 0}


@pytest.mark.asyncio
async def test_by_category_invalid_type(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/stats/by-category?type=TRANSFER", headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Invalid type 'TRANSFER', expected EXPENSE or INCOME",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("value,expected", [("expense", "Food"), ("income", "Salary"), ("Income", "Salary")])
async def test_by_category_type_is_case_insensitive(
    client: AsyncClient,
    test_user: User,
    auth_headers: dict,
    category_of,
    add_transaction,
    value,
    expected,
):
    await add_transaction(test_user, await category_of(test_user, "Food"), 20)
    await add_transaction(
        test_user, await category_of(test_user, "Salary"), 2000, type=TransactionType.INCOME
    )

    response = await client.get(f"/api/stats/by-category?type={value}", headers=auth_headers)

    assert response.status_code == 200
    stats = response.json()["data"]["stats"]
    assert [s["category"]["name"] for s in stats] == [expected]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path", ["summary?year=99999999999999999999", "monthly?year=99999999999999999999"]
)
async def test_out_of_range_year_is_rejected(client: AsyncClient, auth_headers: dict, path):
    response = await client.get(f"/api/stats/{path}", headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_monthly_evolution_for_year(
    client: AsyncClient, test_user: User, auth_headers: dict, category_of, add_transaction
):
    food = await category_of(test_user, "Food")
    salary = await category_of(test_user, "Salary")
    await add_transaction(test_user, food, 50, date=utc(2024, 3, 15))
    await add_transaction(test_user, food, 20.5, date=utc(2024, 1, 31, 23, 59))
    await add_transaction(test_user, salary, 1000, type=TransactionType.INCOME, date=utc(2024, 1, 1))
    # Previous year is outside the window
    await add_transaction(test_user, food, 999, date=utc(2023, 12, 31, 23, 59))

    response = await client.get("/api/stats/monthly?year=2024", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"] == [
        {"month": "2024-01", "expenses": 20.5, "incomes": 1000, "balance": 979.5},
        {"month": "2024-03", "expenses": 50, "incomes": 0, "balance": -50},
    ]


@pytest.mark.asyncio
async def test_monthly_evolution_months_validation(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/stats/monthly?months=0", headers=auth_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_monthly_trailing_window(
    test_session: AsyncSession, test_user: User, category_of, add_transaction
):
    food = await category_of(test_user, "Food")
    await add_transaction(test_user, food, 10, date=utc(2023, 11, 30, 12))
    await add_transaction(test_user, food, 20, date=utc(2023, 12, 1, 0))
    await add_transaction(test_user, food, 30, date=utc(2024, 2, 29, 23, 59))

    evolution = await StatsService(test_session, tz=timezone.utc).get_monthly_evolution(
        test_user.id, months=3, today=date(2024, 2, 10)
    )

    assert [(b.month, b.expenses) for b in evolution] == [("2023-12", 20), ("2024-02", 30)]


@pytest.mark.asyncio
async def test_monthly_buckets_follow_calendar_timezone(
    test_session: AsyncSession, test_user: User, category_of, add_transaction
):
    food = await category_of(test_user, "Food")
    # 23:30 UTC on March 31st is already April in Brussels
    await add_transaction(test_user, food, 10, date=utc(2024, 3, 31, 23, 30))

    service = StatsService(test_session, tz=ZoneInfo("Europe/Brussels"))
    evolution = await service.get_monthly_evolution(test_user.id, year=2024)

    assert [b.month for b in evolution] == ["2024-04"]


@pytest.mark.asyncio
async def test_recent_transactions(
    client: AsyncClient, test_user: User, auth_headers: dict, category_of, add_transaction
):
    food = await category_of(test_user, "Food")
    for day in range(1, 8):
        await add_transaction(test_user, food, day + 0.001, date=utc(2024, 4, day))

    default = await client.get("/api/stats/recent", headers=auth_headers)
    limited = await client.get("/api/stats/recent?limit=2", headers=auth_headers)

    amounts = [t["amount"] for t in default.json()["data"]]
    # Recent activity is not rounded
    assert amounts == [7.001, 6.001, 5.001, 4.001, 3.001]
    assert default.json()["data"][0]["category"]["name"] == "Food"
    assert len(limited.json()["data"]) == 2


@pytest.mark.asyncio
async def test_stats_require_auth(client: AsyncClient):
    for path in ("summary", "by-category", "monthly", "recent"):
        response = await client.get(f"/api/stats/{path}")
        assert response.status_code == 401
