"""Tests for filtering, pagination and the dashboard summary."""

import pytest

from conftest import make_business, make_product
from app.core.realtime import INSERT, ChangeEvent
from app.services.catalog import (
    CATEGORIES,
    ELLIPSIS_END,
    ELLIPSIS_START,
    dashboard_summary,
    filter_products,
    page_numbers,
    paginate,
    with_business_names,
)
from app.services.mappers import business_to_row, product_to_row


@pytest.fixture
def products():
    return [
        make_product("1", name="Bicicleta de montaña", category="Deportes"),
        make_product("2", name="Sofá", category="Muebles", description="Tres plazas, color gris", status="sold"),
        make_product("3", name="Casco", category="Deportes", business_id="2", status="reserved"),
    ]


class TestFilterProducts:

    def test_search_is_case_insensitive_over_name_and_description(self, products):
        assert [p.id for p in filter_products(products, search="BICI")] == ["1"]
        assert [p.id for p in filter_products(products, search="gris")] == ["2"]

    def test_all_means_no_filter(self, products):
        assert len(filter_products(products, category="all", status="all", business_id="all")) == 3

    def test_filters_combine(self, products):
        result = filter_products(products, category="Deportes", business_id="1")

        assert [p.id for p in result] == ["1"]

    def test_status_filter(self, products):
        assert [p.id for p in filter_products(products, status="reserved")] == ["3"]


class TestPagination:

    def test_page_is_clamped(self):
        page = paginate(list(range(45)), page=9, per_page=20)

        assert page.page == 3
        assert page.total_pages == 3
        assert page.items == list(range(40, 45))

    def test_empty_list(self):
        page = paginate([], page=2)

        assert page.page == 1
        assert page.total_pages == 0
        assert page.items == []
        assert page.page_numbers == []

    def test_few_pages_are_all_listed(self):
        assert page_numbers(2, 4) == [1, 2, 3, 4]

    def test_ellipsis_markers(self):
        assert page_numbers(1, 10) == [1, 2, ELLIPSIS_END, 10]
        assert page_numbers(5, 10) == [1, ELLIPSIS_START, 4, 5, 6, ELLIPSIS_END, 10]
        assert page_numbers(10, 10) == [1, ELLIPSIS_START, 9, 10]


class TestHelpers:

    def test_categories_are_fixed(self):
        assert CATEGORIES[0] == "Electrónica"
        assert CATEGORIES[-1] == "Otros"
        assert len(CATEGORIES) == 10

    def test_business_names_tolerate_orphans(self, products):
        items = with_business_names(products, [make_business("1", "Tienda")])

        assert items[0].business_name == "Tienda"
        assert items[2].business_name is None

    def test_dashboard_summary(self, store, feed):
        store.start_sync()
        feed.publish(ChangeEvent("businesses", INSERT, new=business_to_row(make_business("1")).model_dump()))
        for product in [make_product(str(i), status="sold" if i % 2 else "available") for i in range(6)]:
            feed.publish(ChangeEvent("products", INSERT, new=product_to_row(product).model_dump()))
        store.set_active_business("1")

        summary = dashboard_summary(store)

        assert summary.total_businesses == 1
        assert summary.total_products == 6
        assert summary.available_products == 3
        assert len(summary.recent_products) == 4
        assert summary.active_business.id == "1"
        assert summary.live_updates is True
