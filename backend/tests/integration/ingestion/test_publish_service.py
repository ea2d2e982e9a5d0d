"""Integration tests for PublishService: atomic promotion into the live catalog"""

from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from menuflow.domain.ingestion.errors import (
    ForbiddenError,
    NotFoundError,
    PublishError,
    TenantMismatchError,
    ValidationError,
)
from menuflow.domain.ingestion.models import StagingRow
from menuflow.infrastructure.repositories.catalog_repository import CatalogRepository
from menuflow.infrastructure.repositories.ingestion_repository import IngestionRepository
from menuflow.ingestion.publish_service import PublishService
from menuflow.models import IngestionEvent, Menu, MenuCategory, MenuIngestion, MenuItem

from fixtures.pipeline import FakeReindex

STAGED = [
    StagingRow(name="Ale", category_name="Drinks", price_cents=450, currency="EUR", is_alcohol=True, confidence=0.8),
    StagingRow(name="Pizza", category_name="Mains", price_cents=1000, currency="EUR",
               description="Wood fired", allergens=["gluten"], tags=["vegetarian"], confidence=0.9),
    StagingRow(name="Bread", category_name=None, price_cents=None, currency="EUR", flags={"missing_price": True}),
]


@pytest.fixture
def reviewed_ingestion(db_session, make_ingestion):
    ingestion = make_ingestion(status="awaiting_review")
    IngestionRepository(db_session).replace_staged_items(ingestion.id, STAGED)
    db_session.commit()
    return ingestion


def _items(db_session, menu_id):
    query = select(MenuItem).where(MenuItem.menu_id == menu_id).order_by(MenuItem.name)
    return db_session.execute(query).scalars().all()


class TestPublish:

    def test_promotes_staged_items(self, db_session, staff_user_id, menu, reviewed_ingestion, fake_reindex):
        result = PublishService(db_session, reindex=fake_reindex).publish(
            staff_user_id, reviewed_ingestion.id, menu.id
        )

        assert result.items_upserted == 3
        assert result.categories_created == 3
        assert result.version == 2

        db_session.expire_all()
        items = _items(db_session, menu.id)
        assert [item.name for item in items] == ["Ale", "Bread", "Pizza"]
        pizza = items[2]
        assert pizza.price_cents == 1000
        assert pizza.description == "Wood fired"
        assert pizza.allergens == ["gluten"]
        assert pizza.category.name == "Mains"
        assert items[1].category.name == "Uncategorised"

        ingestion = db_session.get(MenuIngestion, reviewed_ingestion.id)
        assert ingestion.status == "published"
        assert ingestion.metadata_json["published_menu_id"] == str(menu.id)
        assert "published_at" in ingestion.metadata_json
        assert IngestionRepository(db_session).list_staged_items(ingestion.id) == []

        events = db_session.execute(
            select(IngestionEvent).where(IngestionEvent.event == "published")
        ).scalars().all()
        assert events[0].payload_json == {
            "ingestion_id": str(ingestion.id),
            "status": "published",
            "items_count": 3,
        }

        assert fake_reindex.calls == [(result.item_ids, True)]
        assert sorted(result.item_ids) == sorted(item.id for item in items)

    def test_existing_items_are_updated_in_place(self, db_session, staff_user_id, menu, reviewed_ingestion):
        category = MenuCategory(menu_id=menu.id, name="Mains", position=0)
        db_session.add(category)
        db_session.flush()
        existing = MenuItem(
            menu_id=menu.id, category_id=category.id, name="PIZZA", price_cents=1000, currency="EUR",
            description="Stone baked", allergens=[], tags=[],
        )
        db_session.add(existing)
        db_session.commit()
        existing_id = existing.id

        result = PublishService(db_session).publish(staff_user_id, reviewed_ingestion.id, menu.id)

        assert result.categories_created == 2
        db_session.expire_all()
        updated = db_session.get(MenuItem, existing_id)
        assert updated.name == "Pizza"
        assert updated.description == "Wood fired"
        assert len(_items(db_session, menu.id)) == 3

        positions = {
            row.name: row.position
            for row in db_session.execute(select(MenuCategory).where(MenuCategory.menu_id == menu.id)).scalars()
        }
        assert positions["Mains"] == 0
        assert sorted(positions.values()) == [0, 1, 2]

    def test_same_name_at_different_prices_stays_separate(self, db_session, staff_user_id, menu, make_ingestion):
        ingestion = make_ingestion(status="awaiting_review")
        IngestionRepository(db_session).replace_staged_items(ingestion.id, [
            StagingRow(name="House Red", category_name="Wine", price_cents=600, currency="EUR"),
            StagingRow(name="House Red", category_name="Wine", price_cents=2400, currency="EUR"),
        ])
        db_session.commit()

        result = PublishService(db_session).publish(staff_user_id, ingestion.id, menu.id)

        assert result.items_upserted == 2
        assert len(set(result.item_ids)) == 2
        db_session.expire_all()
        assert sorted(item.price_cents for item in _items(db_session, menu.id)) == [600, 2400]

    def test_price_change_inserts_new_item(self, db_session, staff_user_id, menu, reviewed_ingestion):
        category = MenuCategory(menu_id=menu.id, name="Mains", position=0)
        db_session.add(category)
        db_session.flush()
        db_session.add(MenuItem(
            menu_id=menu.id, category_id=category.id, name="Pizza", price_cents=800, currency="EUR",
            allergens=[], tags=[],
        ))
        db_session.commit()

        PublishService(db_session).publish(staff_user_id, reviewed_ingestion.id, menu.id)

        db_session.expire_all()
        pizzas = [item.price_cents for item in _items(db_session, menu.id) if item.name == "Pizza"]
        assert sorted(pizzas) == [800, 1000]

    def test_reindex_failure_does_not_fail_publish(self, db_session, staff_user_id, menu, reviewed_ingestion):
        reindex = FakeReindex(error=ConnectionError("broker down"))

        result = PublishService(db_session, reindex=reindex).publish(staff_user_id, reviewed_ingestion.id, menu.id)

        assert result.items_upserted == 3
        db_session.expire_all()
        assert db_session.get(MenuIngestion, reviewed_ingestion.id).status == "published"

    def test_publish_twice_is_rejected(self, db_session, staff_user_id, menu, reviewed_ingestion):
        service = PublishService(db_session)
        service.publish(staff_user_id, reviewed_ingestion.id, menu.id)

        with pytest.raises(ValidationError) as exc_info:
            service.publish(staff_user_id, reviewed_ingestion.id, menu.id)
        assert exc_info.value.code == "invalid_status"

        db_session.expire_all()
        assert db_session.get(Menu, menu.id).version == 2


class TestPublishPreconditions:

    def test_unknown_ingestion(self, db_session, staff_user_id, menu):
        with pytest.raises(NotFoundError) as exc_info:
            PublishService(db_session).publish(staff_user_id, uuid4(), menu.id)
        assert exc_info.value.code == "ingestion_not_found"

    def test_unknown_menu(self, db_session, staff_user_id, reviewed_ingestion):
        with pytest.raises(NotFoundError) as exc_info:
            PublishService(db_session).publish(staff_user_id, reviewed_ingestion.id, uuid4())
        assert exc_info.value.code == "menu_not_found"

    def test_non_staff(self, db_session, outsider_user_id, menu, reviewed_ingestion):
        with pytest.raises(ForbiddenError):
            PublishService(db_session).publish(outsider_user_id, reviewed_ingestion.id, menu.id)

    def test_menu_of_other_tenant(self, db_session, staff_user_id, location, reviewed_ingestion):
        foreign = Menu(tenant_id=uuid4(), location_id=location.id, name="Foreign", version=1)
        db_session.add(foreign)
        db_session.commit()

        with pytest.raises(TenantMismatchError):
            PublishService(db_session).publish(staff_user_id, reviewed_ingestion.id, foreign.id)

        db_session.expire_all()
        assert db_session.get(MenuIngestion, reviewed_ingestion.id).status == "awaiting_review"
        assert len(IngestionRepository(db_session).list_staged_items(reviewed_ingestion.id)) == 3

    @pytest.mark.parametrize("status", ["uploaded", "processing", "failed", "published"])
    def test_requires_awaiting_review(self, db_session, staff_user_id, menu, make_ingestion, status):
        ingestion = make_ingestion(status=status)

        with pytest.raises(ValidationError) as exc_info:
            PublishService(db_session).publish(staff_user_id, ingestion.id, menu.id)
        assert exc_info.value.code == "invalid_status"


class TestPublishFailure:

    def test_database_error_rolls_back_and_marks_failed(self, db_session, staff_user_id, menu, reviewed_ingestion, monkeypatch):
        def broken_publish(self, menu, staged_items):
            raise OperationalError("INSERT INTO menu_item", {}, Exception("disk I/O error"))

        monkeypatch.setattr(CatalogRepository, "publish_staged_items", broken_publish)
        reindex = FakeReindex()

        with pytest.raises(PublishError) as exc_info:
            PublishService(db_session, reindex=reindex).publish(staff_user_id, reviewed_ingestion.id, menu.id)

        assert exc_info.value.code == "publish_failed"
        assert reindex.calls == []
        db_session.expire_all()
        ingestion = db_session.get(MenuIngestion, reviewed_ingestion.id)
        assert ingestion.status == "failed"
        assert ingestion.errors_json[-1]["code"] == "publish_failed"
        assert db_session.get(Menu, menu.id).version == 1
        assert len(IngestionRepository(db_session).list_staged_items(ingestion.id)) == 3
