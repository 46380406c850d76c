"""
Brand Strategy API Tests
Every kind (mission, vision, value, target, background) exposes the same
generate + CRUD surface; each test runs once per kind.
"""
import pytest

from models.brand import BRAND_KINDS, get_brand_kind

pytestmark = pytest.mark.anyio

kinds = pytest.mark.parametrize("kind", BRAND_KINDS, ids=[k.key for k in BRAND_KINDS])


async def save_statement(client, headers, kind, text="We roast locally and serve our neighbors.", source="coffee shop"):
    response = await client.post(
        f"/api{kind.collection_path}",
        json={kind.json_field: text, "originalInput": source},
        headers=headers
    )
    assert response.status_code == 201, f"Expected 201, got {response.status_code}: {response.text}"
    return response.json()


class TestGenerate:

    @kinds
    async def test_generate_returns_cleaned_statement(self, client, alice_headers, llm_stub, kind):
        llm_stub.reply('"**Brewing** community, one cup at a time."')

        response = await client.post(
            f"/api{kind.generate_path}",
            json={"input": "Neighborhood coffee shop in Austin"},
            headers=alice_headers
        )
        assert response.status_code == 200, response.text
        assert response.json() == {kind.json_field: "Brewing community, one cup at a time."}
        assert "Neighborhood coffee shop in Austin" in llm_stub.last_prompt

    @kinds
    async def test_generate_does_not_persist(self, client, alice_headers, llm_stub, kind):
        llm_stub.reply("A statement.")
        await client.post(f"/api{kind.generate_path}", json={"input": "x"}, headers=alice_headers)

        listed = await client.get(f"/api{kind.collection_path}", headers=alice_headers)
        assert listed.json() == []

    @kinds
    async def test_generate_requires_input(self, client, alice_headers, llm_stub, kind):
        response = await client.post(f"/api{kind.generate_path}", json={}, headers=alice_headers)
        assert response.status_code == 400
        assert response.json() == {"message": "input is required"}
        assert llm_stub.requests == []

    @pytest.mark.parametrize("bad_input", ["", "   ", 42, None])
    async def test_generate_rejects_non_string_input(self, client, alice_headers, llm_stub, bad_input):
        response = await client.post("/api/generate-mission", json={"input": bad_input}, headers=alice_headers)
        assert response.status_code == 400

    async def test_generate_upstream_failure_is_500(self, client, alice_headers, llm_stub):
        llm_stub.fail(500)
        response = await client.post("/api/generate-vision", json={"input": "x"}, headers=alice_headers)
        assert response.status_code == 500
        assert "message" in response.json()

    async def test_generate_empty_reply_is_500(self, client, alice_headers, llm_stub):
        llm_stub.reply('""')
        response = await client.post("/api/generate-background", json={"input": "x"}, headers=alice_headers)
        assert response.status_code == 500

    async def test_consecutive_generations_return_their_own_reply(self, client, alice_headers, llm_stub):
        llm_stub.reply_each("Coffee that knows your name.", "Bread baked before sunrise.")

        first = await client.post("/api/generate-mission", json={"input": "coffee shop"}, headers=alice_headers)
        second = await client.post("/api/generate-mission", json={"input": "bakery"}, headers=alice_headers)

        assert first.json() == {"mission": "Coffee that knows your name."}
        assert second.json() == {"mission": "Bread baked before sunrise."}
        assert "coffee shop" in llm_stub.requests[0]["messages"][-1]["content"]
        assert "bakery" in llm_stub.requests[1]["messages"][-1]["content"]

    async def test_value_uses_camel_case_field(self, client, alice_headers, llm_stub):
        llm_stub.reply("Fresh bread before your commute.")
        response = await client.post("/api/generate-value", json={"input": "bakery"}, headers=alice_headers)
        assert response.json() == {"valueProposition": "Fresh bread before your commute."}


class TestCreateAndList:

    @kinds
    async def test_create_returns_row(self, client, alice_headers, kind):
        item = await save_statement(client, alice_headers, kind)

        assert isinstance(item["id"], int)
        assert item["userId"] == "user-alice"
        assert item[kind.json_field] == "We roast locally and serve our neighbors."
        assert item["originalInput"] == "coffee shop"
        assert item["createdAt"]

    @kinds
    async def test_create_requires_both_fields(self, client, alice_headers, kind):
        response = await client.post(
            f"/api{kind.collection_path}",
            json={kind.json_field: "Only the statement"},
            headers=alice_headers
        )
        assert response.status_code == 400
        assert response.json() == {"message": "originalInput is required"}

        response = await client.post(
            f"/api{kind.collection_path}",
            json={kind.json_field: "", "originalInput": "x"},
            headers=alice_headers
        )
        assert response.status_code == 400

    @kinds
    async def test_list_newest_first_and_scoped(self, client, alice_headers, bob_headers, kind):
        first = await save_statement(client, alice_headers, kind, text="First")
        second = await save_statement(client, alice_headers, kind, text="Second")
        await save_statement(client, bob_headers, kind, text="Bob's")

        response = await client.get(f"/api{kind.collection_path}", headers=alice_headers)
        assert response.status_code == 200
        assert [i["id"] for i in response.json()] == [second["id"], first["id"]]

    async def test_kinds_are_separate_collections(self, client, alice_headers):
        await save_statement(client, alice_headers, get_brand_kind("mission"))

        response = await client.get("/api/visions", headers=alice_headers)
        assert response.json() == []


class TestUpdate:

    @kinds
    async def test_update_own_item(self, client, alice_headers, kind):
        item = await save_statement(client, alice_headers, kind)

        response = await client.patch(
            f"/api{kind.collection_path}/{item['id']}",
            json={kind.json_field: "Edited"},
            headers=alice_headers
        )
        assert response.status_code == 200
        assert response.json()[kind.json_field] == "Edited"
        assert response.json()["originalInput"] == item["originalInput"]

    @kinds
    async def test_update_other_users_item_is_404(self, client, alice_headers, bob_headers, kind):
        item = await save_statement(client, alice_headers, kind)

        response = await client.patch(
            f"/api{kind.collection_path}/{item['id']}",
            json={kind.json_field: "Hijacked"},
            headers=bob_headers
        )
        assert response.status_code == 404

        listed = await client.get(f"/api{kind.collection_path}", headers=alice_headers)
        assert listed.json()[0][kind.json_field] == item[kind.json_field]

    async def test_update_empty_value_is_400(self, client, alice_headers):
        kind = get_brand_kind("target")
        item = await save_statement(client, alice_headers, kind)

        response = await client.patch(
            f"/api/target-markets/{item['id']}",
            json={"targetMarket": ""},
            headers=alice_headers
        )
        assert response.status_code == 400

    async def test_update_bad_id_is_400(self, client, alice_headers):
        response = await client.patch("/api/missions/abc", json={"mission": "x"}, headers=alice_headers)
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid ID"}


class TestDelete:

    @kinds
    async def test_delete_is_idempotent(self, client, alice_headers, kind):
        item = await save_statement(client, alice_headers, kind)

        first = await client.delete(f"/api{kind.collection_path}/{item['id']}", headers=alice_headers)
        second = await client.delete(f"/api{kind.collection_path}/{item['id']}", headers=alice_headers)
        assert first.status_code == 204
        assert second.status_code == 204

        listed = await client.get(f"/api{kind.collection_path}", headers=alice_headers)
        assert listed.json() == []

    @kinds
    async def test_delete_other_users_item_is_silent_noop(self, client, alice_headers, bob_headers, kind):
        item = await save_statement(client, alice_headers, kind)

        response = await client.delete(f"/api{kind.collection_path}/{item['id']}", headers=bob_headers)
        assert response.status_code == 204

        listed = await client.get(f"/api{kind.collection_path}", headers=alice_headers)
        assert [i["id"] for i in listed.json()] == [item["id"]]

    async def test_delete_bad_id_is_400(self, client, alice_headers):
        response = await client.delete("/api/backgrounds/0", headers=alice_headers)
        assert response.status_code == 400

    async def test_out_of_range_id_is_400(self, client, alice_headers):
        deleted = await client.delete("/api/missions/99999999999999999999", headers=alice_headers)
        updated = await client.patch(
            "/api/visions/2147483648",
            json={"vision": "x"},
            headers=alice_headers
        )
        assert deleted.status_code == 400
        assert updated.status_code == 400
        assert updated.json() == {"message": "Invalid ID"}
