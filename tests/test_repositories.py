import pytest

from hcp.core.errors import BadRequest, Conflict, NotFound, StorageError
from hcp.core.security import verify_password
from hcp.schemas.enums import AuditAction, CampaignStatus, EntityType, InvoiceStatus
from hcp.schemas.invoice import Invoice


def invoice_data(**overrides) -> dict:
    data = {
        "id": "i1",
        "invoiceNumber": "INV-2024-001",
        "partnerCode": "P1",
        "billingPeriod": "2024-10",
        "totalAmount": 100,
        "status": "Draft",
    }
    data.update(overrides)
    return data


async def test_create_then_get_by_id_returns_equal_invoice(repos):
    created = await repos.invoices.create(invoice_data(), actor_id="admin-hq")

    fetched = await repos.invoices.get_by_id("i1")
    assert fetched == created
    assert fetched.total_amount == 100
    assert fetched.status == InvoiceStatus.DRAFT


async def test_get_all_filters_by_partner_code(repos):
    await repos.invoices.create(invoice_data())
    await repos.invoices.create(invoice_data(id="i2", partnerCode="P2"))

    assert [i.id for i in await repos.invoices.get_all("P1")] == ["i1"]
    assert [i.id for i in await repos.invoices.get_all("P2")] == ["i2"]
    assert await repos.invoices.get_all("P3") == []
    assert {i.id for i in await repos.invoices.get_all()} == {"i1", "i2"}


async def test_create_rejects_duplicate_id(repos):
    await repos.invoices.create(invoice_data())
    with pytest.raises(Conflict):
        await repos.invoices.create(invoice_data(totalAmount=5))
    assert (await repos.invoices.get_by_id("i1")).total_amount == 100


async def test_create_audits_with_partner_code(repos):
    await repos.invoices.create(invoice_data(), actor_id="admin-hq")

    [entry] = await repos.audit.query()
    assert entry.action == AuditAction.INVOICE_CREATED
    assert entry.entity_type == EntityType.INVOICE
    assert entry.entity_id == "i1"
    assert entry.user_id == "admin-hq"
    assert entry.partner_code == "P1"


async def test_invoices_are_stored_newest_first(repos):
    await repos.invoices.create(invoice_data())
    await repos.invoices.create(invoice_data(id="i2"))
    assert [i.id for i in await repos.invoices.get_all()] == ["i2", "i1"]


async def test_invoice_totals_follow_line_items(repos):
    invoice = await repos.invoices.create(invoice_data(
        taxRate=10,
        items=[
            {"description": "Certifications", "quantity": 3, "unitPrice": 50},
            {"description": "Setup", "quantity": 1, "unitPrice": 25.5},
        ],
    ))
    assert [item.total for item in invoice.items] == [150, 25.5]
    assert invoice.subtotal == 175.5
    assert invoice.tax_amount == 17.55
    assert invoice.total_amount == 193.05


async def test_update_merges_fields(repos):
    await repos.invoices.create(invoice_data())

    updated = await repos.invoices.update("i1", {"status": "Paid", "notes": "Settled"}, actor_id="admin-hq")

    assert updated.status == InvoiceStatus.PAID
    assert updated.notes == "Settled"
    assert updated.partner_code == "P1"
    assert (await repos.invoices.get_by_id("i1")).status == InvoiceStatus.PAID
    assert (await repos.audit.query())[0].action == AuditAction.UPDATE


async def test_update_accepts_snake_case_fields(repos):
    await repos.invoices.create(invoice_data())
    updated = await repos.invoices.update("i1", {"public_memo": "Thanks"})
    assert updated.public_memo == "Thanks"


async def test_update_missing_id_raises_not_found(repos):
    with pytest.raises(NotFound):
        await repos.invoices.update("nope", {"status": "Paid"})
    assert await repos.invoices.get_all() == []


async def test_update_cannot_change_id(repos):
    await repos.invoices.create(invoice_data())
    with pytest.raises(BadRequest):
        await repos.invoices.update("i1", {"id": "i2"})


async def test_stale_expected_revision_conflicts(repos):
    await repos.invoices.create(invoice_data())
    stale = await repos.invoices.revision()
    await repos.invoices.update("i1", {"notes": "first"})

    with pytest.raises(Conflict):
        await repos.invoices.update("i1", {"notes": "second"}, expected_revision=stale)
    assert (await repos.invoices.get_by_id("i1")).notes == "first"


async def test_put_upserts(repos):
    await repos.invoices.put(invoice_data())
    await repos.invoices.put(invoice_data(totalAmount=300))
    invoices = await repos.invoices.get_all()
    assert len(invoices) == 1
    assert invoices[0].total_amount == 300


async def test_save_replaces_collection(repos):
    await repos.invoices.create(invoice_data())
    await repos.invoices.save([invoice_data(id="i7"), invoice_data(id="i8")])
    assert {i.id for i in await repos.invoices.get_all()} == {"i7", "i8"}


async def test_save_rejects_duplicate_ids(repos):
    with pytest.raises(BadRequest):
        await repos.invoices.save([invoice_data(), invoice_data()])


async def test_delete_only_where_allowed(repos):
    await repos.invoices.create(invoice_data())
    await repos.invoices.delete("i1", actor_id="admin-hq")
    assert await repos.invoices.get_by_id("i1") is None
    assert (await repos.audit.query())[0].action == AuditAction.DELETE

    await repos.events.create({"id": "e1", "title": "Meetup", "partnerCode": "P1"})
    with pytest.raises(BadRequest):
        await repos.events.delete("e1")


async def test_invalid_record_is_bad_request(repos):
    with pytest.raises(BadRequest):
        await repos.invoices.create(invoice_data(status="Lost"))


async def test_unknown_fields_are_kept(repos):
    await repos.events.create({"id": "e1", "title": "Meetup", "partnerCode": "P1", "venueCapacity": 40})
    stored = await repos.storage.load("hcp_events")
    assert stored[0]["venueCapacity"] == 40


async def test_unreadable_collection_degrades_to_empty(repos, storage):
    storage.put_raw("hcp_invoices", "not json")

    assert await repos.invoices.get_all() == []
    assert not (await repos.invoices.fetch_all()).ok
    with pytest.raises(StorageError):
        await repos.invoices.create(invoice_data())


async def test_invalid_items_are_skipped_on_read(repos, storage):
    await storage.save("hcp_invoices", [invoice_data(), {"id": "bad", "status": "Lost"}])
    assert [i.id for i in await repos.invoices.get_all()] == ["i1"]


async def test_writes_refuse_to_drop_unreadable_items(repos, storage):
    legacy = {"id": "legacy", "status": "Pending"}
    await storage.save("hcp_invoices", [legacy])

    with pytest.raises(StorageError):
        await repos.invoices.create(invoice_data(id="i2"))
    with pytest.raises(StorageError):
        await repos.invoices.delete("legacy")
    assert await storage.load("hcp_invoices") == [legacy]

    await repos.invoices.save([invoice_data(id="i2")])
    assert [i.id for i in await repos.invoices.get_all()] == ["i2"]


async def test_unregistered_partner_code_is_advisory(repos, caplog):
    await repos.registry.create({"code": "P1", "name": "Lagos"})

    await repos.invoices.create(invoice_data(id="i2", partnerCode="ZZ"))

    assert await repos.invoices.get_by_id("i2") is not None
    assert "not in the registry" in caplog.text


async def test_registry_lookups(repos):
    await repos.registry.create({"code": "P1", "name": "Lagos", "region": "West Africa"})

    assert await repos.registry.is_valid_code("P1")
    assert not await repos.registry.is_valid_code("P2")
    assert (await repos.registry.get_by_code("P1")).name == "Lagos"


async def test_active_agreement(repos):
    await repos.agreements.create({"id": "a1", "partnerCode": "P1", "isActive": False})
    assert await repos.agreements.get_active("P1") is None

    await repos.agreements.create({"id": "a2", "partnerCode": "P1", "isActive": True, "unitPrice": 20})
    assert (await repos.agreements.get_active("P1")).id == "a2"
    assert await repos.agreements.get_active("P2") is None


async def test_log_campaign_audits_email_sent(repos):
    campaign = await repos.campaigns.log_campaign(
        {"id": "c1", "name": "October nudge", "audienceSize": 120, "sentCount": 118},
        actor_id="admin-hq",
    )

    assert campaign.status == CampaignStatus.COMPLETED
    assert campaign.sent_at is not None
    [entry] = await repos.audit.query()
    assert entry.action == AuditAction.EMAIL_SENT
    assert "118 recipients" in entry.details


async def test_admin_password_is_hashed_and_private(repos):
    admin = await repos.admins.create({"id": "a9", "email": "New@Example.com", "password": "s3cret"})

    assert admin.email == "new@example.com"
    assert admin.password is None
    assert verify_password("s3cret", admin.password_hash)
    assert "passwordHash" not in repos.admins.public(admin)
    assert "password" not in repos.admins.public(admin)
    stored = await repos.storage.load("hcp_admins")
    assert "password" not in stored[0]
    assert stored[0]["passwordHash"] == admin.password_hash


async def test_admin_email_lookup_is_case_insensitive(repos):
    await repos.admins.create({"id": "a9", "email": "lead@example.com"})
    assert (await repos.admins.get_by_email("LEAD@example.com")).id == "a9"
    with pytest.raises(Conflict):
        await repos.admins.create({"id": "a10", "email": "Lead@Example.com"})


async def test_developer_duplicate_wallet_is_flagged(repos):
    await repos.developers.create({"id": "d1", "partnerCode": "P1", "walletAddress": "0.0.1234"})
    second = await repos.developers.create({"id": "d2", "partnerCode": "P1", "walletAddress": " 0.0.1234 "})
    third = await repos.developers.create({"id": "d3", "partnerCode": "P1", "walletAddress": "0.0.9999"})

    assert second.is_suspicious
    assert "1 other" in second.suspicion_reason
    assert not third.is_suspicious
    assert (await repos.developers.get_by_id("d1")).is_suspicious


async def test_developer_wallet_change_flags_both_holders(repos):
    await repos.developers.create({"id": "d1", "partnerCode": "P1", "walletAddress": "0xabc"})
    await repos.developers.create({"id": "d2", "partnerCode": "P1", "walletAddress": "0xdef"})

    updated = await repos.developers.update("d2", {"walletAddress": "0xABC"})

    assert updated.is_suspicious
    assert (await repos.developers.get_by_id("d1")).is_suspicious
    assert (await repos.developers.get_by_id("d2")).is_suspicious


async def test_developer_put_flags_shared_wallet(repos):
    await repos.developers.create({"id": "d1", "partnerCode": "P1", "walletAddress": "0.0.77"})
    stored = await repos.developers.put({"id": "d2", "partnerCode": "P1", "walletAddress": "0.0.77"})

    assert stored.is_suspicious
    assert "1 other" in stored.suspicion_reason
    assert (await repos.developers.get_by_id("d1")).is_suspicious


async def test_invoice_model_round_trips_through_storage(repos):
    invoice = Invoice(id="i5", partner_code="P1", items=[{"description": "x", "quantity": 2, "unitPrice": 5}])
    await repos.invoices.create(invoice)
    assert await repos.invoices.get_by_id("i5") == invoice
