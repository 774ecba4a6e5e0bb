# Overview: Storefront (unauthenticated) catalog routes: categories and products.

"""
Public catalog.

Never exposes cost prices or soft-deleted products.
"""

from flask import Blueprint, request

from ..context import context_from_request
from ..responses import from_result
from ..services import categories_service, products_service
from ..validation import parse_bool_arg, parse_pagination
from .products import list_query_filters

public_catalog_bp = Blueprint("public_catalog", __name__, url_prefix="/api/public")


@public_catalog_bp.get("/categories")
def list_categories():
    """Root categories with their direct children (depth via ?depth=)."""
    page, limit = parse_pagination(request.args)
    return from_result(categories_service.list_categories(
        context_from_request(),
        page=page,
        limit=limit,
        roots_only=True,
        include_children=True,
        depth=request.args.get("depth", 1, type=int),
        public=True,
    ))


@public_catalog_bp.get("/categories/<int:category_id>")
def get_category(category_id: int):
    return from_result(categories_service.get_category(
        context_from_request(),
        category_id,
        include_children=True,
        include_parent=True,
        include_products=parse_bool_arg(request.args, "include_products"),
        public=True,
    ))


@public_catalog_bp.get("/products")
def list_products():
    page, limit = parse_pagination(request.args)
    return from_result(products_service.list_products(
        context_from_request(),
        page=page,
        limit=limit,
        public=True,
        **list_query_filters(request.args),
    ))


@public_catalog_bp.get("/products/<int:product_id>")
def get_product(product_id: int):
    return from_result(products_service.get_product(context_from_request(), product_id, public=True))
