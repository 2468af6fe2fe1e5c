"""Tests for party endpoints."""
import uuid
from decimal import Decimal

from httpx import AsyncClient


async def _me(client: AsyncClient, headers: dict[str, str]) -> dict:
    response = await client.get("/users/me", headers=headers)
    assert response.status_code == 200
    return response.json()


async def _create_party(
    client: AsyncClient, headers: dict[str, str], **body: object,
) -> dict:
    response = await client.post("/parties", json={"name": "Ski week", **body}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateParty:
    async def test__create_party__owner_is_caller(
        self, client: AsyncClient, auth_headers: dict[str, str],
    ) -> None:
        party = await _create_party(client, auth_headers)
        me = await _me(client, auth_headers)

        assert party["name"] == "Ski week"
        assert party["ownerId"] == me["userId"]
        assert uuid.UUID(party["partyId"])

    async def test__create_party__requires_authentication(self, client: AsyncClient) -> None:
        response = await client.post("/parties", json={"name": "Ski week"})
        assert response.status_code == 401

    async def test__create_party__owner_id_must_match_caller(
        self, client: AsyncClient, auth_headers: dict[str, str],
    ) -> None:
        response = await client.post(
            "/parties",
            json={"name": "Ski week", "ownerId": str(uuid.uuid4())},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "ownerId must match the authenticated user"

    async def test__create_party__matching_owner_id_is_accepted(
        self, client: AsyncClient, auth_headers: dict[str, str],
    ) -> None:
        me = await _me(client, auth_headers)
        party = await _create_party(client, auth_headers, ownerId=me["userId"])
        assert party["ownerId"] == me["userId"]

    async def test__create_party__unknown_contributor_returns_400(
        self, client: AsyncClient, auth_headers: dict[str, str],
    ) -> None:
        ghost = str(uuid.uuid4())

        response = await client.post(
            "/parties",
            json={"name": "Ski week", "contributorIds": [ghost]},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert ghost in response.json()["detail"]

    async def test__create_party__blank_name_returns_400(
        self, client: AsyncClient, auth_headers: dict[str, str],
    ) -> None:
        response = await client.post("/parties", json={"name": ""}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing required fields: name"


class TestGetParty:
    async def test__get_party__new_party_has_empty_collections(
        self, client: AsyncClient, auth_headers: dict[str, str],
    ) -> None:
        party = await _create_party(client, auth_headers)
        me = await _me(client, auth_headers)

        response = await client.get(f"/parties/{party['partyId']}")

        assert response.status_code == 200
        body = response.json()
        assert body["partyId"] == party["partyId"]
        assert body["owner"]["userId"] == me["userId"]
        assert body["owner"]["email"] == "ada@example.com"
        assert body["expenses"] == []
        assert body["contributors"] == []
        assert body["billImages"] == []

    async def test__get_party__includes_expenses_and_contributors(
        self,
        client: AsyncClient,
        auth_headers: dict[str, str],
        other_auth_headers: dict[str, str],
    ) -> None:
        me = await _me(client, auth_headers)
        ben = await _me(client, other_auth_headers)
        party = await _create_party(client, auth_headers, contributorIds=[ben["userId"]])
        created = await client.post(
            "/expenses",
            json={
                "partyId": party["partyId"],
                "payerId": me["userId"],
                "expenses": [{
                    "description": "Chalet",
                    "amount": "900.00",
                    "participants": [{"userId": ben["userId"], "share": "450.00"}],
                }],
            },
            headers=auth_headers,
        )
        assert created.status_code == 201

        body = (await client.get(f"/parties/{party['partyId']}")).json()

        [contributor] = body["contributors"]
        assert contributor["user"]["name"] == "Ben Bitdiddle"
        [expense] = body["expenses"]
        assert expense["description"] == "Chalet"
        assert Decimal(expense["amount"]) == Decimal("900")
        [participant] = expense["participants"]
        assert participant["userId"] == ben["userId"]
        assert Decimal(participant["share"]) == Decimal("450")

    async def test__get_party__unknown_id_returns_404(self, client: AsyncClient) -> None:
        response = await client.get(f"/parties/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["detail"] == "Party not found"


class TestListParties:
    async def test__list_parties__only_callers_parties(
        self,
        client: AsyncClient,
        auth_headers: dict[str, str],
        other_auth_headers: dict[str, str],
    ) -> None:
        await _create_party(client, auth_headers, name="Mine")
        await _create_party(client, other_auth_headers, name="Theirs")

        response = await client.get("/parties", headers=auth_headers)

        assert response.status_code == 200
        assert [p["name"] for p in response.json()["parties"]] == ["Mine"]


class TestUpdateAndDeleteParty:
    async def test__update_party__renames(
        self, client: AsyncClient, auth_headers: dict[str, str],
    ) -> None:
        party = await _create_party(client, auth_headers)

        response = await client.put(
            f"/parties/{party['partyId']}", json={"name": "Beach week"}, headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Beach week"

    async def test__update_party__other_users_party_returns_404(
        self,
        client: AsyncClient,
        auth_headers: dict[str, str],
        other_auth_headers: dict[str, str],
    ) -> None:
        party = await _create_party(client, auth_headers)

        response = await client.put(
            f"/parties/{party['partyId']}", json={"name": "Mine now"}, headers=other_auth_headers,
        )

        assert response.status_code == 404

    async def test__delete_party__removes_it(
        self, client: AsyncClient, auth_headers: dict[str, str],
    ) -> None:
        party = await _create_party(client, auth_headers)

        response = await client.delete(f"/parties/{party['partyId']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Party deleted successfully"
        assert (await client.get(f"/parties/{party['partyId']}")).status_code == 404

    async def test__delete_party__other_users_party_returns_404(
        self,
        client: AsyncClient,
        auth_headers: dict[str, str],
        other_auth_headers: dict[str, str],
    ) -> None:
        party = await _create_party(client, auth_headers)

        response = await client.delete(f"/parties/{party['partyId']}", headers=other_auth_headers)

        assert response.status_code == 404
        assert (await client.get(f"/parties/{party['partyId']}")).status_code == 200
