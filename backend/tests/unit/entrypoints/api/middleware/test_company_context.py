"""Tests for company context middleware."""

from typing import Annotated
from uuid import UUID, uuid4

import pytest
from erpscope.adapters.access.memory import InMemoryAccessRepository
from erpscope.core.access import CompanyRole, Permission
from erpscope.core.auth import create_access_token
from erpscope.entrypoints.api.deps import get_access_repository
from erpscope.entrypoints.api.middleware.company_context import (
    CompanyContext,
    CompanyContextDep,
    require_permission,
)
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from tests.fixtures.access import World

approver = require_permission(Permission.APPROVE_TRANSACTIONS)


@pytest.fixture
def client(repo: InMemoryAccessRepository) -> TestClient:
    """Create app with company-scoped routes over the in-memory repository."""
    app = FastAPI()

    @app.get("/context")
    async def context(ctx: CompanyContextDep) -> dict[str, str]:
        return {
            "company_id": str(ctx.company_id),
            "tenant_id": str(ctx.tenant_id),
            "role": ctx.role.value,
            "tier": ctx.tier.value,
        }

    @app.post("/approve")
    async def approve(ctx: Annotated[CompanyContext, Depends(approver)]) -> dict[str, str]:
        return {"approved_by": str(ctx.user_id)}

    app.dependency_overrides[get_access_repository] = lambda: repo
    return TestClient(app)


def _headers(user_id: UUID, company_id: UUID | str | None = None) -> dict[str, str]:
    headers = {"Authorization": f"Bearer {create_access_token(str(user_id))}"}
    if company_id is not None:
        headers["X-Company-ID"] = str(company_id)
    return headers


class TestRequireCompanyContext:
    """Tests for require_company_context."""

    async def test_tenant_owner(self, client: TestClient, world: World) -> None:
        """Owner resolves at tenant tier."""
        response = client.get("/context", headers=_headers(world.owner.id, world.acme_cv.id))

        assert response.status_code == 200
        assert response.json() == {
            "company_id": str(world.acme_cv.id),
            "tenant_id": str(world.acme.id),
            "role": "OWNER",
            "tier": "tenant",
        }

    async def test_company_id_from_query(self, client: TestClient, world: World) -> None:
        """The company ID may be passed as a query parameter."""
        response = client.get(
            "/context",
            params={"company_id": str(world.acme_cv.id)},
            headers=_headers(world.finance.id),
        )

        assert response.status_code == 200
        assert response.json()["role"] == "FINANCE"
        assert response.json()["tier"] == "company"

    async def test_missing_company_id(self, client: TestClient, world: World) -> None:
        """Missing company ID is 400."""
        response = client.get("/context", headers=_headers(world.owner.id))

        assert response.status_code == 400

    async def test_malformed_company_id(self, client: TestClient, world: World) -> None:
        """Malformed company ID is 400."""
        response = client.get("/context", headers=_headers(world.owner.id, "acme"))

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid company ID"

    async def test_unknown_company(self, client: TestClient, world: World) -> None:
        """Unknown company is 404, not 403."""
        response = client.get("/context", headers=_headers(world.owner.id, uuid4()))

        assert response.status_code == 404

    async def test_no_grant(self, client: TestClient, world: World) -> None:
        """Company outside the caller's grants is 403."""
        response = client.get("/context", headers=_headers(world.owner.id, world.globex_pt.id))

        assert response.status_code == 403

    async def test_inactive_user(
        self, repo: InMemoryAccessRepository, client: TestClient, world: World
    ) -> None:
        """Deactivated user is 401."""
        await repo.set_user_active(world.owner.id, False)

        response = client.get("/context", headers=_headers(world.owner.id, world.acme_pt.id))

        assert response.status_code == 401

    async def test_unauthenticated(self, client: TestClient, world: World) -> None:
        """Requests without a token are 401."""
        response = client.get("/context", headers={"X-Company-ID": str(world.acme_pt.id)})

        assert response.status_code == 401


class TestRequirePermission:
    """Tests for require_permission."""

    async def test_finance_can_approve(self, client: TestClient, world: World) -> None:
        """FINANCE holds APPROVE_TRANSACTIONS."""
        response = client.post("/approve", headers=_headers(world.finance.id, world.acme_cv.id))

        assert response.status_code == 200
        assert response.json() == {"approved_by": str(world.finance.id)}

    async def test_staff_cannot_approve(
        self, repo: InMemoryAccessRepository, client: TestClient, world: World
    ) -> None:
        """STAFF lacks APPROVE_TRANSACTIONS."""
        await repo.create_company_grant(world.outsider.id, world.acme_pt.id, CompanyRole.STAFF)

        response = client.post("/approve", headers=_headers(world.outsider.id, world.acme_pt.id))

        assert response.status_code == 403
        assert "APPROVE_TRANSACTIONS" in response.json()["detail"]
