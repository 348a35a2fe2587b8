from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockscope.authz.permissions import Role
from stockscope.db.base import Base
from stockscope.db.session import SessionLocal, engine
from stockscope.models.enums import OperationType, PurchaseOrderStatus, RequisitionStatus, TransferStatus
from stockscope.models.inventory import PurchaseOrder, Requisition, Stock, Transfer, TransferItem
from stockscope.models.org import Material, Sector, Tenant, Unit, Warehouse
from stockscope.models.security import RoleAssignmentRecord, User

logger = logging.getLogger(__name__)


def init_db(seed: bool = True) -> None:
    """
    Create tables and, unless disabled, seed a small deterministic demo tenant.
    """

    Base.metadata.create_all(bind=engine)

    if not seed:
        return
    with SessionLocal() as db:
        if has_seed_data(db):
            return
        seed_demo_data(db)
        logger.info("Seeded demo data")


def has_seed_data(db: Session) -> bool:
    return db.execute(select(Tenant.id).limit(1)).first() is not None


def seed_demo_data(db: Session) -> None:
    """
    Two tenants. In t1 a central warehouse (wh1, unit w1) supplies a site
    warehouse (wh2, unit w2, sector sec1).

    Users (bearer token = id):
      u1 OWNER       tenant t1
      u2 WH_CENTRAL  t1 / unit w1 / warehouse wh1
      u3 WH_SITE     t1 / unit w2 / warehouse wh2
      u4 ALMOX_SETOR t1 / warehouse wh2  (receives, cannot report divergence)
      u5 COORDINATOR t1 / work w2        (legacy work_id-only assignment)
      u6 WH_CENTRAL  tenant t1           (fulfills requisitions of any unit)
      u9 OWNER       tenant t2
    """

    t1 = Tenant(id="t1", name="Master Construction", operation_type=OperationType.CONSTRUCTION)
    t2 = Tenant(id="t2", name="Corner Store", operation_type=OperationType.STORE)
    db.add_all([t1, t2])
    db.flush()

    w1 = Unit(id="w1", tenant_id="t1", name="Central Yard")
    w2 = Unit(id="w2", tenant_id="t1", name="Horizon Building")
    s1 = Unit(id="s1", tenant_id="t2", name="Main Street Store")
    db.add_all([w1, w2, s1])
    db.flush()

    wh1 = Warehouse(id="wh1", unit_id="w1", work_id="w1", name="Central Warehouse", is_central=True)
    db.add(Sector(id="sec1", unit_id="w2", name="Structure"))
    db.flush()

    wh2 = Warehouse(id="wh2", unit_id="w2", work_id="w2", sector_id="sec1", name="Site Warehouse")
    wh9 = Warehouse(id="wh9", unit_id="s1", work_id="s1", name="Store Backroom")
    db.add_all([wh1, wh2, wh9])

    m1 = Material(id="m1", sku="CIM-001", name="Cement CP-II 50kg", unit="BAG", category="Basic", min_stock=100)
    m2 = Material(id="m2", sku="FER-012", name="Rebar 10mm", unit="BAR", category="Structure", min_stock=50)
    db.add_all([m1, m2])
    db.flush()

    db.add_all(
        [
            Stock(warehouse_id="wh1", material_id="m1", quantity=500, reserved=0),
            Stock(warehouse_id="wh1", material_id="m2", quantity=200, reserved=0),
        ]
    )

    users = [
        User(id="u1", name="Olivia Owner", email="owner@example.com"),
        User(id="u2", name="Carl Central", email="central@example.com"),
        User(id="u3", name="Sam Site", email="site@example.com"),
        User(id="u4", name="Alex Almox", email="almox@example.com"),
        User(id="u5", name="Cora Coordinator", email="coordinator@example.com"),
        User(id="u6", name="Wes Wholesale", email="logistics@example.com"),
        User(id="u9", name="Stan Store", email="store@example.com"),
    ]
    db.add_all(users)
    db.flush()

    db.add_all(
        [
            RoleAssignmentRecord(user_id="u1", role=Role.OWNER, tenant_id="t1"),
            RoleAssignmentRecord(
                user_id="u2", role=Role.WH_CENTRAL, tenant_id="t1", unit_id="w1", work_id="w1", warehouse_id="wh1"
            ),
            RoleAssignmentRecord(
                user_id="u3", role=Role.WH_SITE, tenant_id="t1", unit_id="w2", work_id="w2", warehouse_id="wh2"
            ),
            RoleAssignmentRecord(user_id="u4", role=Role.ALMOX_SETOR, tenant_id="t1", warehouse_id="wh2"),
            RoleAssignmentRecord(user_id="u5", role=Role.COORDINATOR, tenant_id="t1", work_id="w2"),
            RoleAssignmentRecord(user_id="u6", role=Role.WH_CENTRAL, tenant_id="t1"),
            RoleAssignmentRecord(user_id="u9", role=Role.OWNER, tenant_id="t2"),
        ]
    )

    db.add(
        Requisition(
            id="RM-1",
            tenant_id="t1",
            unit_id="w2",
            work_id="w2",
            warehouse_id="wh2",
            requester_id="u5",
            status=RequisitionStatus.WAITING_L1,
            observations="Slab pour, 3rd floor",
        )
    )
    db.add(
        PurchaseOrder(
            id="PO-1",
            tenant_id="t1",
            unit_id="w1",
            work_id="w1",
            supplier_id="sup-1",
            status=PurchaseOrderStatus.OPEN,
            total_amount=4590.0,
        )
    )
    db.flush()

    db.add_all(
        [
            Transfer(
                id="TR-1",
                tenant_id="t1",
                origin_warehouse_id="wh1",
                destination_warehouse_id="wh2",
                requisition_id="RM-1",
                status=TransferStatus.CREATED,
                items=[
                    TransferItem(id="TRI-1", material_id="m1", quantity_requested=10, quantity_sent=10),
                    TransferItem(id="TRI-2", material_id="m2", quantity_requested=5, quantity_sent=5),
                ],
            ),
            Transfer(
                id="TR-2",
                tenant_id="t1",
                origin_warehouse_id="wh1",
                destination_warehouse_id="wh2",
                status=TransferStatus.IN_TRANSIT,
                items=[
                    TransferItem(id="TRI-3", material_id="m1", quantity_requested=10, quantity_sent=10),
                    TransferItem(id="TRI-4", material_id="m2", quantity_requested=5, quantity_sent=5),
                ],
            ),
            Transfer(
                id="TR-9",
                tenant_id="t2",
                origin_warehouse_id="wh9",
                destination_warehouse_id="wh9",
                status=TransferStatus.CREATED,
                items=[TransferItem(id="TRI-9", material_id="m1", quantity_requested=1, quantity_sent=1)],
            ),
        ]
    )

    db.commit()
