"""Tests for the receipt creation workflow, through the service and the API."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from procurement.exceptions import PurchaseOrderNotFound, SupplierNotFound
from procurement.integrations import FinanceClient, InventoryClient
from procurement.integrations.finance import INVOICES_ENDPOINT, PAYMENT_SCHEDULES_ENDPOINT
from procurement.integrations.inventory import ADJUST_ENDPOINT
from procurement.models.purchase_order import PurchaseOrder
from procurement.models.receipt import Receipt, ReceiptItem
from procurement.schemas.purchase_order import PurchaseOrderCreate, PurchaseOrderItemCreate
from procurement.schemas.receipt import ReceiptCreate, ReceiptItemCreate
from procurement.schemas.supplier import SupplierCreate
from procurement.services import PurchaseOrderService, ReceiptService, SupplierService
from procurement.services.receipts import external_ref


async def create_supplier(client, name="Acme"):
    response = await client.post("/v1/suppliers", json={"name": name})
    assert response.status_code == 201
    return response.json()


async def create_order(client, supplier_id, items=None):
    response = await client.post(
        "/v1/purchase-orders",
        json={
            "supplierId": supplier_id,
            "warehouseId": 1,
            "items": items or [{"externalProductId": 7, "quantity": 10, "unitCost": 5.00}],
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_receipt_scenario_adjusts_stock_invoices_and_audits(
    client, audit, inventory_service, finance_service
):
    supplier = await create_supplier(client)
    order = await create_order(client, supplier["id"])
    assert Decimal(order["total"]) == Decimal("50.00")
    assert Decimal(order["items"][0]["lineTotal"]) == Decimal("50.00")

    response = await client.post(
        "/v1/receipts",
        json={
            "supplierId": supplier["id"],
            "purchaseOrderId": order["id"],
            "warehouseId": 1,
            "items": [{"externalProductId": 7, "quantityReceived": 10}],
        },
    )

    assert response.status_code == 201
    receipt = response.json()
    assert receipt["purchaseOrderId"] == order["id"]
    assert [(i["externalProductId"], i["quantityReceived"]) for i in receipt["items"]] == [(7, 10)]
    assert all(isinstance(i["id"], int) for i in receipt["items"])

    adjustments = inventory_service.calls_to(ADJUST_ENDPOINT)
    assert len(adjustments) == 1
    assert adjustments[0]["json"] == {
        "warehouseId": 1,
        "externalProductId": 7,
        "deltaOnHand": 10,
        "reason": f"receipt:{receipt['id']}",
    }

    invoices = finance_service.calls_to(INVOICES_ENDPOINT)
    assert len(invoices) == 1
    assert invoices[0]["json"]["amount"] == 50.0
    assert invoices[0]["json"]["currency"] == "MXN"
    assert invoices[0]["json"]["externalRef"] == external_ref(receipt["id"])
    assert invoices[0]["json"]["procurementReceiptId"] == receipt["id"]

    receipt_creates = [e for e in audit.actions("create") if e.entity_type == "receipts"]
    assert len(receipt_creates) == 1
    assert receipt_creates[0].entity_id == receipt["id"]
    assert audit.actions("integration_failed") == []


@pytest.mark.asyncio
async def test_receipt_without_order_keeps_null_reference_and_skips_invoice(
    client, finance_service, inventory_service
):
    supplier = await create_supplier(client)

    response = await client.post(
        "/v1/receipts",
        json={
            "supplierId": supplier["id"],
            "warehouseId": 2,
            "reference": "DN-881",
            "items": [
                {"externalProductId": 7, "quantityReceived": 4, "skuSnapshot": "SKU-7"},
                {"externalProductId": 9, "quantityReceived": 1, "nameSnapshot": "Bolt"},
            ],
        },
    )

    assert response.status_code == 201
    receipt = response.json()
    assert receipt["purchaseOrderId"] is None
    assert receipt["reference"] == "DN-881"
    assert [
        (i["externalProductId"], i["quantityReceived"], i["skuSnapshot"], i["nameSnapshot"])
        for i in receipt["items"]
    ] == [(7, 4, "SKU-7", None), (9, 1, None, "Bolt")]
    assert len(inventory_service.calls_to(ADJUST_ENDPOINT)) == 2
    assert finance_service.calls_to(INVOICES_ENDPOINT) == []


@pytest.mark.asyncio
async def test_explicit_invoice_supersedes_order_total_and_schedules_payment(
    client, finance_service
):
    finance_service.responses[INVOICES_ENDPOINT] = [(201, {"id": 77})]
    supplier = await create_supplier(client)
    order = await create_order(client, supplier["id"])

    response = await client.post(
        "/v1/receipts",
        json={
            "supplierId": supplier["id"],
            "purchaseOrderId": order["id"],
            "warehouseId": 1,
            "apInvoice": {
                "invoiceNumber": "F-100",
                "amount": 48.5,
                "currency": "USD",
                "dueDate": "2026-12-01",
            },
            "items": [{"externalProductId": 7, "quantityReceived": 10}],
        },
    )

    assert response.status_code == 201
    invoices = finance_service.calls_to(INVOICES_ENDPOINT)
    assert len(invoices) == 1
    assert invoices[0]["json"]["amount"] == 48.5
    assert invoices[0]["json"]["invoiceNumber"] == "F-100"
    assert invoices[0]["json"]["externalRef"] == external_ref(response.json()["id"])

    schedules = finance_service.calls_to(PAYMENT_SCHEDULES_ENDPOINT)
    assert len(schedules) == 1
    assert schedules[0]["json"] == {"invoiceId": 77, "dueDate": "2026-12-01", "amount": 48.5}


@pytest.mark.asyncio
async def test_explicit_invoice_without_due_date_schedules_nothing(client, finance_service):
    finance_service.responses[INVOICES_ENDPOINT] = [(201, {"id": 77})]
    supplier = await create_supplier(client)

    response = await client.post(
        "/v1/receipts",
        json={
            "supplierId": supplier["id"],
            "warehouseId": 1,
            "apInvoice": {"amount": 10},
            "items": [{"externalProductId": 7, "quantityReceived": 1}],
        },
    )

    assert response.status_code == 201
    assert len(finance_service.calls_to(INVOICES_ENDPOINT)) == 1
    assert finance_service.calls_to(PAYMENT_SCHEDULES_ENDPOINT) == []


@pytest.mark.asyncio
async def test_failed_integrations_do_not_fail_receipt(
    client, audit, inventory_service, finance_service
):
    inventory_service.responses[ADJUST_ENDPOINT] = [(500, {"message": "db locked"})]
    finance_service.responses[INVOICES_ENDPOINT] = [(503, {"message": "maintenance"})]
    supplier = await create_supplier(client)
    order = await create_order(client, supplier["id"])

    response = await client.post(
        "/v1/receipts",
        json={
            "supplierId": supplier["id"],
            "purchaseOrderId": order["id"],
            "warehouseId": 1,
            "items": [{"externalProductId": 7, "quantityReceived": 10}],
        },
    )

    assert response.status_code == 201
    assert len(inventory_service.calls_to(ADJUST_ENDPOINT)) == 2
    assert len(finance_service.calls_to(INVOICES_ENDPOINT)) == 2

    failures = audit.actions("integration_failed")
    assert sorted(f.after["target"] for f in failures) == ["finance-backend", "inventory-backend"]
    by_target = {f.after["target"]: f for f in failures}
    assert by_target["inventory-backend"].metadata["error"] == {
        "status": 500,
        "body": {"message": "db locked"},
    }
    assert by_target["finance-backend"].after["externalRef"] == external_ref(response.json()["id"])
    assert len([e for e in audit.actions("create") if e.entity_type == "receipts"]) == 1

    fetched = await client.get(f"/v1/receipts/{response.json()['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["items"][0]["quantityReceived"] == 10


@pytest.mark.asyncio
async def test_one_item_failure_does_not_block_others(client, audit, inventory_service):
    inventory_service.reject = lambda body: body["externalProductId"] == 9
    supplier = await create_supplier(client)

    response = await client.post(
        "/v1/receipts",
        json={
            "supplierId": supplier["id"],
            "warehouseId": 1,
            "items": [
                {"externalProductId": 7, "quantityReceived": 1},
                {"externalProductId": 9, "quantityReceived": 2},
                {"externalProductId": 11, "quantityReceived": 3},
            ],
        },
    )

    assert response.status_code == 201
    products = [c["json"]["externalProductId"] for c in inventory_service.calls]
    assert sorted(products) == [7, 9, 9, 11]
    failures = audit.actions("integration_failed")
    assert [f.after["externalProductId"] for f in failures] == [9]
    assert len(response.json()["items"]) == 3


@pytest.mark.asyncio
async def test_unknown_supplier_is_rejected_before_any_write(db, audit, integrations, inventory_service):
    service = ReceiptService(db, audit, integrations.inventory, integrations.finance)

    with pytest.raises(SupplierNotFound):
        await service.create(
            ReceiptCreate(
                supplier_id=999,
                warehouse_id=1,
                items=[ReceiptItemCreate(external_product_id=7, quantity_received=1)],
            )
        )

    assert (await db.execute(select(func.count()).select_from(Receipt))).scalar() == 0
    assert inventory_service.calls == []
    assert audit.entries == []


@pytest.mark.asyncio
async def test_unknown_purchase_order_is_rejected(db, audit, integrations):
    supplier = await SupplierService(db, audit).create(SupplierCreate(name="Acme"))
    service = ReceiptService(db, audit, integrations.inventory, integrations.finance)

    with pytest.raises(PurchaseOrderNotFound):
        await service.create(
            ReceiptCreate(
                supplier_id=supplier.id,
                purchase_order_id=12345,
                warehouse_id=1,
                items=[ReceiptItemCreate(external_product_id=7, quantity_received=1)],
            )
        )

    assert (await db.execute(select(func.count()).select_from(ReceiptItem))).scalar() == 0


@pytest.mark.asyncio
async def test_missing_credentials_still_create_receipt(db, audit):
    supplier = await SupplierService(db, audit).create(SupplierCreate(name="Acme"))
    service = ReceiptService(
        db, audit, InventoryClient(None, audit), FinanceClient(None, audit)
    )

    receipt = await service.create(
        ReceiptCreate(
            supplier_id=supplier.id,
            warehouse_id=1,
            items=[ReceiptItemCreate(external_product_id=7, quantity_received=5)],
        )
    )

    assert receipt.items[0].quantity_received == 5
    assert audit.actions("integration_failed") == []


@pytest.mark.asyncio
async def test_api_returns_404_for_unknown_references(client):
    response = await client.post(
        "/v1/receipts",
        json={
            "supplierId": 999,
            "warehouseId": 1,
            "items": [{"externalProductId": 7, "quantityReceived": 1}],
        },
    )
    assert response.status_code == 404

    missing = await client.get("/v1/receipts/555")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_deleting_order_clears_receipt_reference(client):
    supplier = await create_supplier(client)
    order = await create_order(client, supplier["id"])
    created = await client.post(
        "/v1/receipts",
        json={
            "supplierId": supplier["id"],
            "purchaseOrderId": order["id"],
            "warehouseId": 1,
            "items": [{"externalProductId": 7, "quantityReceived": 10}],
        },
    )

    deleted = await client.delete(f"/v1/purchase-orders/{order['id']}")
    assert deleted.status_code == 204

    receipt = (await client.get(f"/v1/receipts/{created.json()['id']}")).json()
    assert receipt["purchaseOrderId"] is None

    listed = await client.get("/v1/receipts", params={"supplierId": supplier["id"]})
    assert [r["id"] for r in listed.json()] == [receipt["id"]]


@pytest.mark.asyncio
async def test_deleting_referenced_supplier_returns_conflict(client):
    supplier = await create_supplier(client)
    await create_order(client, supplier["id"])

    response = await client.delete(f"/v1/suppliers/{supplier['id']}")

    assert response.status_code == 409
    assert (await client.get(f"/v1/suppliers/{supplier['id']}")).status_code == 200


async def supplier_with_order(db, audit):
    supplier = await SupplierService(db, audit).create(SupplierCreate(name="Acme"))
    order = await PurchaseOrderService(db, audit).create(
        PurchaseOrderCreate(
            supplier_id=supplier.id,
            warehouse_id=1,
            items=[PurchaseOrderItemCreate(external_product_id=7, quantity=10, unit_cost=5)],
        )
    )
    return supplier, order


@pytest.mark.asyncio
async def test_order_invoice_uses_order_loaded_during_validation(
    db, audit, integrations, finance_service, monkeypatch
):
    supplier, order = await supplier_with_order(db, audit)
    real_get = db.get
    order_lookups = []

    async def get_order_once(entity, ident, **kwargs):
        if entity is PurchaseOrder:
            order_lookups.append(ident)
            if len(order_lookups) > 1:
                raise RuntimeError("db connection dropped")
        return await real_get(entity, ident, **kwargs)

    monkeypatch.setattr(db, "get", get_order_once)
    service = ReceiptService(db, audit, integrations.inventory, integrations.finance)

    receipt = await service.create(
        ReceiptCreate(
            supplier_id=supplier.id,
            purchase_order_id=order.id,
            warehouse_id=1,
            items=[ReceiptItemCreate(external_product_id=7, quantity_received=10)],
        )
    )

    assert order_lookups == [order.id]
    invoices = finance_service.calls_to(INVOICES_ENDPOINT)
    assert len(invoices) == 1
    assert invoices[0]["json"]["amount"] == 50.0
    assert [e.entity_id for e in audit.actions("create") if e.entity_type == "receipts"] == [
        receipt.id
    ]


@pytest.mark.asyncio
async def test_side_effect_error_still_returns_receipt_and_audits(db, audit, integrations):
    supplier, order = await supplier_with_order(db, audit)
    integrations.finance.create_ap_invoice = AsyncMock(
        side_effect=RuntimeError("finance client bug")
    )
    service = ReceiptService(db, audit, integrations.inventory, integrations.finance)

    receipt = await service.create(
        ReceiptCreate(
            supplier_id=supplier.id,
            purchase_order_id=order.id,
            warehouse_id=1,
            items=[ReceiptItemCreate(external_product_id=7, quantity_received=10)],
        )
    )

    integrations.finance.create_ap_invoice.assert_awaited_once()
    assert receipt.items[0].quantity_received == 10
    receipt_creates = [e for e in audit.actions("create") if e.entity_type == "receipts"]
    assert len(receipt_creates) == 1
    assert receipt_creates[0].entity_id == receipt.id


@pytest.mark.asyncio
async def test_failed_item_insert_leaves_no_receipt(db, audit, integrations, inventory_service):
    supplier = await SupplierService(db, audit).create(SupplierCreate(name="Acme"))
    service = ReceiptService(db, audit, integrations.inventory, integrations.finance)
    # bypasses validation so the NOT NULL column rejects the second row
    broken = ReceiptItemCreate.model_construct(
        external_product_id=None,
        quantity_received=3,
        sku_snapshot=None,
        name_snapshot=None,
    )

    with pytest.raises(IntegrityError):
        await service.create(
            ReceiptCreate(
                supplier_id=supplier.id,
                warehouse_id=1,
                items=[
                    ReceiptItemCreate(external_product_id=7, quantity_received=1),
                    broken,
                ],
            )
        )

    assert (await db.execute(select(func.count()).select_from(Receipt))).scalar() == 0
    assert (await db.execute(select(func.count()).select_from(ReceiptItem))).scalar() == 0
    assert inventory_service.calls == []
    assert [e for e in audit.entries if e.entity_type == "receipts"] == []
