"""
ParkShare Backend — HTTP Route Tests
======================================

What:  End-to-end request → response tests through the FastAPI app.
How:   httpx AsyncClient over ASGITransport bound to
       create_app(database=FakeDatabase); services hit the mock session.

What we test:
    ✅ Error mapping: 400 field lists, 401, 403, 404 (record and route), 500
    ✅ /owner/my-spaces is never captured by /{space_id}
    ✅ Status codes of writes (201 create, 200 update/delete)
    ✅ camelCase wire format
    ✅ Health and index endpoints, lifespan ownership of the Database handle
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from conftest import make_result
from parkshare.config import settings
from parkshare.main import lifespan
from parkshare.security import create_access_token
from parkshare.services.parking_space_service import parking_space_service


def error_fields(response):
    return {error["field"] for error in response.json()["errors"]}


class TestFrontDoor:

    @pytest.mark.asyncio
    async def test_index_lists_endpoints(self, test_client):
        response = await test_client.get("/")
        assert response.status_code == 200
        body = response.json()
        assert body["endpoints"]["parkingSpaces"] == "/api/parking-spaces"

    @pytest.mark.asyncio
    async def test_health_ok(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    @pytest.mark.asyncio
    async def test_health_database_down(self, test_client, fake_database):
        fake_database.healthy = False
        response = await test_client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_request_id_header(self, test_client):
        response = await test_client.get("/", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_unknown_route(self, test_client):
        response = await test_client.get("/api/nowhere")
        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "route_not_found"
        assert body["path"] == "/api/nowhere"
        assert body["method"] == "GET"

    @pytest.mark.asyncio
    async def test_wrong_method_keeps_status(self, test_client):
        response = await test_client.patch("/api/parking-spaces")
        assert response.status_code == 405

    @pytest.mark.asyncio
    async def test_lifespan_uses_and_disposes_injected_database(self, app, fake_database):
        async with lifespan(app):
            assert app.state.database is fake_database
        assert fake_database.disposed is True


class TestParkingSpaceListing:

    @pytest.mark.asyncio
    async def test_filtered_listing(self, test_client, mock_db_session, owner_user, make_space):
        space = make_space(owner_user)
        mock_db_session.execute.return_value = make_result(rows=[space], scalar=1)

        response = await test_client.get(
            "/api/parking-spaces", params={"city": "aus", "features": "covered,jetpack"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["pagination"] == {"current": 1, "pages": 1, "total": 1, "limit": 10}
        record = body["data"][0]
        assert record["ownerId"] == str(owner_user.id)
        assert record["location"]["zipCode"] == "78701"
        assert record["vehicleTypes"] == ["car", "motorcycle"]
        assert record["owner"]["name"] == owner_user.name

    @pytest.mark.asyncio
    async def test_bad_parameters_listed_together(self, test_client):
        response = await test_client.get(
            "/api/parking-spaces", params={"vehicleType": "plane", "limit": "99"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "validation_error"
        assert error_fields(response) == {"vehicleType", "limit"}

    @pytest.mark.asyncio
    async def test_unexpected_error_hides_detail(self, test_client):
        with patch.object(
            parking_space_service, "search", AsyncMock(side_effect=RuntimeError("boom"))
        ):
            response = await test_client.get("/api/parking-spaces")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal_server_error"
        assert "details" not in body

    @pytest.mark.asyncio
    async def test_unexpected_error_detail_in_debug(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "debug", True)
        with patch.object(
            parking_space_service, "search", AsyncMock(side_effect=RuntimeError("boom"))
        ):
            response = await test_client.get("/api/parking-spaces")

        assert response.status_code == 500
        assert response.json()["details"]["error"] == "boom"


class TestMySpacesRoute:
    """The literal segment must never reach the {space_id} handler."""

    @pytest.mark.asyncio
    async def test_requires_token(self, test_client):
        response = await test_client.get("/api/parking-spaces/owner/my-spaces")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_renter_forbidden(self, test_client, login_as, renter_user):
        login_as(renter_user)
        response = await test_client.get("/api/parking-spaces/owner/my-spaces")
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_owner_listing(self, test_client, login_as, owner_user, mock_db_session, make_space):
        login_as(owner_user)
        mock_db_session.execute.return_value = make_result(rows=[make_space(owner_user)], scalar=1)

        response = await test_client.get(
            "/api/parking-spaces/owner/my-spaces", params={"status": "whatever", "limit": "5"}
        )

        assert response.status_code == 200
        assert response.json()["pagination"]["limit"] == 5

    @pytest.mark.asyncio
    async def test_pagination_bounds(self, test_client, login_as, owner_user):
        login_as(owner_user)
        response = await test_client.get(
            "/api/parking-spaces/owner/my-spaces", params={"page": "0", "limit": "51"}
        )
        assert response.status_code == 400
        assert error_fields(response) == {"page", "limit"}


class TestParkingSpaceRecord:

    @pytest.mark.asyncio
    async def test_get_by_id(self, test_client, mock_db_session, owner_user, make_space):
        space = make_space(owner_user)
        mock_db_session.execute.return_value = make_result(one=space)

        response = await test_client.get(f"/api/parking-spaces/{space.id}")

        assert response.status_code == 200
        assert response.json()["data"]["id"] == str(space.id)

    @pytest.mark.asyncio
    async def test_get_missing(self, test_client, mock_db_session):
        mock_db_session.execute.return_value = make_result(one=None)

        response = await test_client.get(f"/api/parking-spaces/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_malformed_id(self, test_client):
        response = await test_client.get("/api/parking-spaces/not-a-uuid")
        assert response.status_code == 400
        assert error_fields(response) == {"space_id"}

    @pytest.mark.asyncio
    async def test_create_as_owner(self, test_client, login_as, owner_user, space_payload):
        login_as(owner_user)
        space_payload["pricing"] = {"hourly": 0}

        response = await test_client.post("/api/parking-spaces", json=space_payload)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Parking space created successfully"
        assert body["data"]["pricing"]["hourly"] == 0
        assert body["data"]["status"] == "active"

    @pytest.mark.asyncio
    async def test_create_negative_price(self, test_client, login_as, owner_user, space_payload):
        login_as(owner_user)
        space_payload["pricing"] = {"hourly": -1}

        response = await test_client.post("/api/parking-spaces", json=space_payload)

        assert response.status_code == 400
        assert "pricing.hourly" in error_fields(response)

    @pytest.mark.asyncio
    async def test_create_reports_every_bad_field(self, test_client, login_as, owner_user):
        login_as(owner_user)

        response = await test_client.post("/api/parking-spaces", json={"title": "x"})

        assert response.status_code == 400
        assert {"title", "location", "pricing", "vehicleTypes", "availability"} <= error_fields(response)

    @pytest.mark.asyncio
    async def test_create_as_renter_forbidden(self, test_client, login_as, renter_user, space_payload):
        login_as(renter_user)
        response = await test_client.post("/api/parking-spaces", json=space_payload)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_by_stranger_forbidden(
        self, test_client, login_as, other_owner, owner_user, mock_db_session, make_space
    ):
        space = make_space(owner_user)
        mock_db_session.execute.return_value = make_result(one=space)
        login_as(other_owner)

        response = await test_client.put(f"/api/parking-spaces/{space.id}", json={"title": "Mine now"})

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_update_by_owner(self, test_client, login_as, owner_user, mock_db_session, make_space):
        space = make_space(owner_user)
        mock_db_session.execute.return_value = make_result(one=space)
        login_as(owner_user)

        response = await test_client.put(
            f"/api/parking-spaces/{space.id}", json={"title": "Renamed spot", "status": "inactive"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Renamed spot"
        assert data["status"] == "inactive"

    @pytest.mark.asyncio
    async def test_delete_by_admin(self, test_client, login_as, admin_user, owner_user, mock_db_session, make_space):
        space = make_space(owner_user)
        mock_db_session.execute.return_value = make_result(one=space)
        login_as(admin_user)

        response = await test_client.delete(f"/api/parking-spaces/{space.id}")

        assert response.status_code == 200
        assert response.json()["success"] is True

    @pytest.mark.asyncio
    async def test_delete_missing(self, test_client, login_as, owner_user, mock_db_session):
        mock_db_session.execute.return_value = make_result(one=None)
        login_as(owner_user)

        response = await test_client.delete(f"/api/parking-spaces/{uuid4()}")

        assert response.status_code == 404


class TestAuthRoutes:

    @pytest.mark.asyncio
    async def test_register(self, test_client, mock_db_session):
        mock_db_session.execute.return_value = make_result(one=None)

        response = await test_client.post(
            "/api/auth/register",
            json={"name": "Sam", "email": "sam@example.com", "password": "secret1", "role": "owner"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["token"]
        assert body["user"]["role"] == "owner"
        assert "passwordHash" not in body["user"]

    @pytest.mark.asyncio
    async def test_register_rejects_admin_role(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={"name": "Sam", "email": "sam@example.com", "password": "secret1", "role": "admin"},
        )
        assert response.status_code == 400
        assert error_fields(response) == {"role"}

    @pytest.mark.asyncio
    async def test_me_with_real_token(self, test_client, mock_db_session, renter_user):
        mock_db_session.execute.return_value = make_result(one=renter_user)
        token = create_access_token(renter_user.id, renter_user.role)

        response = await test_client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["email"] == renter_user.email

    @pytest.mark.asyncio
    async def test_me_with_bad_token(self, test_client):
        response = await test_client.get(
            "/api/auth/me", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_me_for_deleted_user(self, test_client, mock_db_session):
        mock_db_session.execute.return_value = make_result(one=None)
        token = create_access_token(uuid4(), "user")

        response = await test_client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401


class TestBookingRoutes:

    @pytest.mark.asyncio
    async def test_requires_token(self, test_client):
        response = await test_client.get("/api/bookings")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create(self, test_client, login_as, renter_user, owner_user, mock_db_session, make_space):
        space = make_space(owner_user, hourly_price=2.0)
        mock_db_session.get.return_value = space
        mock_db_session.execute.return_value = make_result(scalar=0)
        login_as(renter_user)

        response = await test_client.post(
            "/api/bookings",
            json={
                "parkingSpaceId": str(space.id),
                "startTime": "2025-03-01T09:00:00Z",
                "endTime": "2025-03-01T11:30:00Z",
                "vehicleType": "car",
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["totalPrice"] == 5.0
        assert data["status"] == "pending"

    @pytest.mark.asyncio
    async def test_create_with_reversed_times(self, test_client, login_as, renter_user):
        login_as(renter_user)

        response = await test_client.post(
            "/api/bookings",
            json={
                "parkingSpaceId": str(uuid4()),
                "startTime": "2025-03-01T11:00:00Z",
                "endTime": "2025-03-01T09:00:00Z",
                "vehicleType": "car",
            },
        )

        assert response.status_code == 400
