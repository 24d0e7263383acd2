"""Base model and soft-delete behaviour (exercised through Product)."""

from __future__ import annotations

import pytest

from modules.products.models import Product

pytestmark = pytest.mark.unit


def test_uuid7_primary_key_and_timestamps(make_product):
    product = make_product()
    assert product.id.version == 7
    assert product.created_at is not None
    assert product.updated_at >= product.created_at


def test_soft_delete_hides_from_alive(make_product):
    product = make_product()
    product.delete()

    assert product.is_deleted
    assert not Product.objects.alive().filter(id=product.id).exists()
    assert Product.objects.filter(id=product.id).exists()


def test_restore(make_product):
    product = make_product()
    product.delete()
    product.restore()
    assert Product.objects.alive().filter(id=product.id).exists()


def test_queryset_delete_is_soft(make_product):
    make_product()
    make_product()

    count, _ = Product.objects.all().delete()

    assert count == 2
    assert Product.objects.count() == 2
    assert Product.objects.alive().count() == 0
