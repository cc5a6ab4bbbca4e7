import pytest

from app.db_handlers import ConcallSummaryDBHandler
from app.schemas import ConcallSummaryCreate
from app.services.query_service import (
    MissingQuery,
    QueryService,
    normalize_pagination,
    normalize_search_text,
    total_pages,
)


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        (None, None, (1, 12)),
        ("3", "5", (3, 5)),
        ("abc", "-1", (1, 12)),
        ("0", "0", (1, 12)),
        (2, 50, (2, 50)),
    ],
)
def test_normalize_pagination(page, limit, expected):
    assert normalize_pagination(page, limit) == expected


def test_total_pages():
    assert total_pages(25, 12) == 3
    assert total_pages(24, 12) == 2
    assert total_pages(0, 12) == 0


def test_search_text_decoding():
    assert normalize_search_text("  acme+industries ") == "acme industries"
    for blank in (None, "", "   ", "+"):
        with pytest.raises(MissingQuery):
            normalize_search_text(blank)


@pytest.fixture
async def seeded(clean_db):
    handler = ConcallSummaryDBHandler()
    rows = [
        ConcallSummaryCreate(
            name=f"Company {i:02d}", date=f"2025-01-{i:02d}", guidance=f"- item {i}"
        )
        for i in range(1, 26)
    ]
    rows.append(ConcallSummaryCreate(name="Hollow Ltd", date="2025-02-01", guidance="NA"))
    rows.append(
        ConcallSummaryCreate(name="Acme Industries", date="2024-12-31", guidance="- capex")
    )
    await handler.insert_many(rows)
    return handler


async def test_list_excludes_na_and_paginates(seeded):
    service = QueryService(seeded)

    first = await service.list_summaries("1", "12")
    last = await service.list_summaries("3", "12")

    assert first.meta.total == 26
    assert first.meta.total_pages == 3
    assert first.data[0].name == "Company 25"
    assert all(item.guidance != "NA" for item in first.data)
    assert len(last.data) == 2
    assert last.data[-1].name == "Acme Industries"


async def test_list_response_shape(seeded):
    body = (await QueryService(seeded).list_summaries("2", "10")).to_response()

    assert body["meta"] == {"page": 2, "limit": 10, "total": 26, "totalPages": 3}
    assert set(body["data"][0]) == {"name", "date", "guidance"}


async def test_find_is_case_insensitive_and_echoes_query(seeded):
    body = (await QueryService(seeded).find_summaries("ACME+industries")).to_response()

    assert body["meta"]["query"] == "ACME industries"
    assert body["meta"]["total"] == 1
    assert body["data"] == [
        {"name": "Acme Industries", "date": "2024-12-31", "guidance": "- capex"}
    ]


async def test_find_includes_na_records(seeded):
    page = await QueryService(seeded).find_summaries("hollow")
    assert [item.guidance for item in page.data] == ["NA"]


async def test_find_requires_name(seeded):
    with pytest.raises(MissingQuery):
        await QueryService(seeded).find_summaries("  ")
