"""Tests for the claim code endpoints."""

FUTURE = "2099-01-01T00:00:00Z"
PAST = "2020-01-01T00:00:00Z"


async def _create(
    client, code: str = "helloworld", template_id: str = "ice-rare", expires: str = FUTURE
):
    return await client.post(
        "/codes", json={"code": code, "template_id": template_id, "expires_at": expires}
    )


class TestCreateCode:
    async def test_create_and_repeat(self, client) -> None:
        first = await _create(client)
        second = await _create(client, template_id="fire-epic")

        assert first.status_code == 200
        assert first.json()["code"] == "HELLOWORLD"
        assert first.json()["created"] is True
        assert second.json()["created"] is False
        assert second.json()["template_id"] == "ice-rare"

    async def test_unknown_template(self, client) -> None:
        response = await _create(client, template_id="dragon-legendary")

        assert response.status_code == 404
        assert response.json()["failure"]["kind"] == "not_found"


class TestRedeemCode:
    async def test_redeem_then_repeat(self, client) -> None:
        await client.post("/players", json={"player_id": "P1", "name": "p1"})
        await _create(client)

        first = await client.post("/players/P1/codes/HelloWorld/redeem")
        second = await client.post("/players/P1/codes/HELLOWORLD/redeem")

        assert first.status_code == 200
        assert first.json()["code"] == "HELLOWORLD"
        assert first.json()["monster"]["template_id"] == "ice-rare"
        assert first.json()["monster"]["reason"] == "code"
        assert second.status_code == 409
        assert second.json()["failure"]["kind"] == "already_claimed"

    async def test_expired(self, client) -> None:
        await client.post("/players", json={"player_id": "P1", "name": "p1"})
        await _create(client, code="OLDCODE", expires=PAST)

        response = await client.post("/players/P1/codes/OLDCODE/redeem")

        assert response.status_code == 410
        assert response.json()["failure"]["kind"] == "expired"

    async def test_unknown_code(self, client) -> None:
        await client.post("/players", json={"player_id": "P1", "name": "p1"})

        response = await client.post("/players/P1/codes/NOPE/redeem")

        assert response.status_code == 404
