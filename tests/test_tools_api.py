import json

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_list_tools(client: AsyncClient):
    response = await client.get("/tools")

    assert response.status_code == 200
    tools = {tool["name"]: tool for tool in response.json()}
    assert set(tools) == {"query", "uploadCsv"}
    assert tools["uploadCsv"]["inputSchema"]["required"] == ["fileName", "fileData"]


@pytest.mark.asyncio
async def test_upload_csv_returns_summary(client: AsyncClient, encode_csv):
    payload = {
        "fileName": "My Report.csv",
        "fileData": encode_csv("id,region,total\n1,north,10\n2,south,20\n"),
    }
    response = await client.post("/tools/uploadCsv", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["isError"] is False
    summary = json.loads(data["content"][0]["text"])
    assert summary == {"my_report": {"created": 2, "updated": 0, "skipped": 0}}


@pytest.mark.asyncio
async def test_upload_csv_with_explicit_table_name(client: AsyncClient, encode_csv):
    payload = {
        "fileName": "whatever.csv",
        "fileData": encode_csv("sku\nA-1\n"),
        "tableName": "Inventory",
    }
    response = await client.post("/tools/uploadCsv", json=payload)

    summary = json.loads(response.json()["content"][0]["text"])
    assert list(summary) == ["Inventory"]


@pytest.mark.asyncio
async def test_upload_csv_bad_base64_is_error_result(client: AsyncClient):
    payload = {"fileName": "x.csv", "fileData": "%%%not base64%%%"}
    response = await client.post("/tools/uploadCsv", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["isError"] is True
    assert data["content"][0]["text"].startswith("Error processing CSV:")


@pytest.mark.asyncio
async def test_upload_csv_missing_arguments_is_error_result(client: AsyncClient):
    response = await client.post("/tools/uploadCsv", json={"fileName": "x.csv"})

    assert response.status_code == 200
    assert response.json()["isError"] is True


@pytest.mark.asyncio
async def test_query_after_upload(client: AsyncClient, encode_csv):
    await client.post(
        "/tools/uploadCsv",
        json={"fileName": "people.csv", "fileData": encode_csv("id,name\n1,Alice\n")},
    )

    response = await client.post("/tools/query", json={"sql": "SELECT name FROM people"})

    data = response.json()
    assert data["isError"] is False
    assert json.loads(data["content"][0]["text"]) == [{"name": "Alice"}]


@pytest.mark.asyncio
async def test_query_write_is_error_and_rolled_back(client: AsyncClient, encode_csv):
    await client.post(
        "/tools/uploadCsv",
        json={"fileName": "people.csv", "fileData": encode_csv("id,name\n1,Alice\n")},
    )

    response = await client.post("/tools/query", json={"sql": "DELETE FROM people"})
    data = response.json()
    assert data["isError"] is True
    assert data["content"][0]["text"].startswith("Error executing SQL query:")

    count = await client.post("/tools/query", json={"sql": "SELECT COUNT(*) AS n FROM people"})
    assert json.loads(count.json()["content"][0]["text"]) == [{"n": 1}]


@pytest.mark.asyncio
async def test_unknown_tool_is_404(client: AsyncClient):
    response = await client.post("/tools/dropEverything", json={})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_resources_list_and_schema(client: AsyncClient, encode_csv):
    await client.post(
        "/tools/uploadCsv",
        json={"fileName": "My Report.csv", "fileData": encode_csv("id,total\n1,5\n")},
    )

    listing = await client.get("/resources")
    assert listing.status_code == 200
    resources = listing.json()
    assert len(resources) == 1
    assert resources[0]["uri"].endswith("/my_report/schema")
    assert resources[0]["mimeType"] == "application/json"

    schema = await client.get("/resources/my_report/schema")
    assert schema.status_code == 200
    assert schema.json() == [
        {"column_name": "id", "data_type": "text"},
        {"column_name": "total", "data_type": "text"},
    ]


@pytest.mark.asyncio
async def test_schema_of_missing_table_is_404(client: AsyncClient):
    response = await client.get("/resources/ghost/schema")
    assert response.status_code == 404
