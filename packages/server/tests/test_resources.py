"""Tests for folder/database provisioning and live folder gating."""

from __future__ import annotations

import pytest

from app.access.engine import can_access
from app.access.resources import build_folder, folder_visible, visible_folders
from app.core.errors import AccessDenied, EmptyDefinition, UnknownRole, UnknownTarget
from app.services import members as member_service
from app.services import organizations as org_service
from app.services import resources as resource_service
from app.services import roles as role_service
from nexusguard_shared.schemas.common import Privilege
from nexusguard_shared.schemas.organizations import (
    DatabaseCreateRequest,
    FolderCreateRequest,
    MemberAddRequest,
    Membership,
)

from conftest import CREATOR, SCENARIO_EID, T0, snapshot


def _with_folder(org, **kwargs):
    folder = build_folder(org, **kwargs)
    org.infrastructure.folders.append(folder)
    return folder


class TestFolderVisibility:
    def test_public_folder_visible_to_anyone(self):
        org = snapshot()
        folder = _with_folder(org, name="Docs", is_public=True)
        assert folder_visible(org, "stranger", folder)

    def test_admin_sees_everything(self):
        org = snapshot()
        folder = _with_folder(org, name="Vault", allowed_roles=["Auditor"])
        assert folder_visible(org, CREATOR, folder)

    def test_admin_privilege_holder_sees_everything(self):
        org = snapshot()
        org.members["m2"] = Membership(
            identity_id="m2",
            display_name="Two",
            role_name="Standard User",
            privileges=[Privilege.ADMIN],
            joined_at=T0,
        )
        folder = _with_folder(org, name="Vault", allowed_roles=["Auditor"])
        assert folder_visible(org, "m2", folder)
        assert not folder_visible(org, "m1", folder)

    def test_intersection_with_live_role_grants(self):
        org = snapshot()
        folder = _with_folder(org, name="Ledger", allowed_roles=["Auditor"])
        # m1 holds READ, Auditor grants BILLING: no overlap
        assert not folder_visible(org, "m1", folder)

        # Editing the allowed role changes visibility without touching the folder
        org.roles["Auditor"] = org.roles["Auditor"].model_copy(
            update={"privileges": [Privilege.READ, Privilege.BILLING]}
        )
        assert folder_visible(org, "m1", folder)

        org.roles["Auditor"] = org.roles["Auditor"].model_copy(
            update={"privileges": [Privilege.BILLING]}
        )
        assert not folder_visible(org, "m1", folder)

    def test_deleted_allowed_role_grants_nothing(self):
        org = snapshot()
        folder = _with_folder(org, name="Ledger", allowed_roles=["Auditor"])
        del org.roles["Auditor"]
        assert not folder_visible(org, "m1", folder)

    def test_visible_folders_preserves_order(self):
        org = snapshot()
        a = _with_folder(org, name="A", is_public=True)
        _with_folder(org, name="B", allowed_roles=["Auditor"])
        c = _with_folder(org, name="C", allowed_roles=["Standard User"])
        assert [f.id for f in visible_folders(org, "m1")] == [a.id, c.id]


class TestBuilders:
    def test_folder_ids_are_unique(self):
        org = snapshot()
        ids = {_with_folder(org, name=f"F{i}").id for i in range(25)}
        assert len(ids) == 25
        assert all(i.startswith("fol-") for i in ids)

    def test_unknown_allowed_role(self):
        with pytest.raises(UnknownRole):
            build_folder(snapshot(), name="Vault", allowed_roles=["Ghost"])

    def test_allowed_roles_deduped(self):
        folder = build_folder(snapshot(), name="Vault", allowed_roles=["Auditor", "Auditor"])
        assert folder.allowed_roles == ["Auditor"]

    def test_blank_folder_name(self):
        with pytest.raises(EmptyDefinition):
            build_folder(snapshot(), name="  ")


class TestBootstrapFolders:
    async def test_standard_user_sees_payroll_through_manager_read(self, store):
        await org_service.ensure_bootstrap_org(store)
        org = await org_service.get_org(store, "NX-8820-A")
        org.members["u9"] = Membership(
            identity_id="u9",
            display_name="Nine",
            role_name="Standard User",
            privileges=[Privilege.READ],
            joined_at=T0,
        )
        names = [f.name for f in visible_folders(org, "u9")]
        assert names == ["Global Payroll", "Open Documentation"]

    async def test_bootstrap_database_is_admin_only(self, store):
        org = await org_service.ensure_bootstrap_org(store)
        db = org.infrastructure.databases[0]
        assert can_access(org, "system", db) is True
        assert can_access(org, "stranger", db) is False


class TestResourceService:
    async def test_add_folder_and_list(self, store, org):
        folder = await resource_service.add_folder(
            store,
            SCENARIO_EID,
            CREATOR,
            FolderCreateRequest(name="Ledger", allowed_roles=["Manager"]),
        )
        await member_service.add_member(
            store,
            SCENARIO_EID,
            CREATOR,
            MemberAddRequest(identity_id="m2", display_name="Two", role_name="Standard User"),
        )
        # Standard User (READ) overlaps Manager's READ
        visible = await resource_service.list_visible_folders(store, SCENARIO_EID, "m2")
        assert [f.id for f in visible] == [folder.id]

        await role_service.set_role_privileges(
            store, SCENARIO_EID, CREATOR, "Manager", [Privilege.BILLING]
        )
        assert await resource_service.list_visible_folders(store, SCENARIO_EID, "m2") == []
        assert await resource_service.check_access(store, SCENARIO_EID, "m2", folder.id) is False

    async def test_add_folder_requires_admin(self, store, org):
        with pytest.raises(AccessDenied):
            await resource_service.add_folder(
                store, SCENARIO_EID, "m9", FolderCreateRequest(name="Ledger")
            )
        stored = await org_service.get_org(store, SCENARIO_EID)
        assert stored.infrastructure.folders == []

    async def test_add_folder_with_unknown_role_writes_nothing(self, store, org):
        with pytest.raises(UnknownRole):
            await resource_service.add_folder(
                store,
                SCENARIO_EID,
                CREATOR,
                FolderCreateRequest(name="Ledger", allowed_roles=["Ghost"]),
            )
        stored = await org_service.get_org(store, SCENARIO_EID)
        assert stored.infrastructure.folders == []

    async def test_add_database(self, store, org):
        database = await resource_service.add_database(
            store, SCENARIO_EID, CREATOR, DatabaseCreateRequest(name="Orders")
        )
        assert database.id.startswith("db-")
        assert database.engine_type == "PostgreSQL"
        assert await resource_service.check_access(store, SCENARIO_EID, CREATOR, database.id)
        assert not await resource_service.check_access(store, SCENARIO_EID, "m9", database.id)

    async def test_unknown_resource(self, store, org):
        with pytest.raises(UnknownTarget):
            await resource_service.check_access(store, SCENARIO_EID, CREATOR, "fol-missing")
