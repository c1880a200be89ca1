from flask import request
from app.utils import ok, page_size, transactional, validate_schema, validate_query
from app.schemas.catalog import (
    ProductRequest,
    ProductUpdateRequest,
    AvailabilityRequest,
    ProductQuery,
    CategoryRequest,
    CategoryUpdateRequest,
    ReorderCategoriesRequest,
)
from app.services.catalog_service import CatalogService
from . import admin_bp


# --- Products ---

@admin_bp.route("/products", methods=["GET"])
@validate_query(ProductQuery)
def list_products():
    q = request.validated_query
    result = CatalogService().list_products(
        category_id=q.category_id,
        search=q.search,
        available=q.available,
        page=q.page,
        limit=page_size(q.limit),
    )
    return ok({
        "products": [p.to_dict() for p in result["products"]],
        "pagination": result["pagination"],
    })


@admin_bp.route("/products", methods=["POST"])
@validate_schema(ProductRequest)
def create_product():
    with transactional("Failed to create product"):
        product = CatalogService().create_product(request.validated_data.model_dump())
    return ok({"product": product.to_dict()}, message="Product created", status=201)


@admin_bp.route("/products/<int:product_id>", methods=["PUT"])
@validate_schema(ProductUpdateRequest)
def update_product(product_id):
    data = request.validated_data.model_dump(exclude_unset=True)
    with transactional("Failed to update product"):
        product = CatalogService().update_product(product_id, data)
    return ok({"product": product.to_dict()}, message="Product updated")


@admin_bp.route("/products/<int:product_id>/availability", methods=["PATCH"])
@validate_schema(AvailabilityRequest)
def set_product_availability(product_id):
    with transactional("Failed to update availability"):
        product = CatalogService().set_availability(product_id, request.validated_data.is_available)
    return ok({"product": product.to_dict()}, message="Availability updated")


@admin_bp.route("/products/<int:product_id>", methods=["DELETE"])
def delete_product(product_id):
    with transactional("Failed to delete product"):
        product = CatalogService().delete_product(product_id)
    return ok({"product": product.to_dict()}, message="Product disabled")


# --- Categories ---

def _category_rows(rows):
    return [dict(c.to_dict(), product_count=n) for c, n in rows]


@admin_bp.route("/categories", methods=["GET"])
def list_categories():
    return ok({"categories": _category_rows(CatalogService().list_categories(include_inactive=True))})


@admin_bp.route("/categories", methods=["POST"])
@validate_schema(CategoryRequest)
def create_category():
    with transactional("Failed to create category"):
        category = CatalogService().create_category(request.validated_data.model_dump())
    return ok({"category": category.to_dict()}, message="Category created", status=201)


@admin_bp.route("/categories/<int:category_id>", methods=["PUT"])
@validate_schema(CategoryUpdateRequest)
def update_category(category_id):
    data = request.validated_data.model_dump(exclude_unset=True)
    with transactional("Failed to update category"):
        category = CatalogService().update_category(category_id, data)
    return ok({"category": category.to_dict()}, message="Category updated")


@admin_bp.route("/categories/<int:category_id>", methods=["DELETE"])
def delete_category(category_id):
    with transactional("Failed to delete category"):
        category = CatalogService().delete_category(category_id)
    return ok({"category": category.to_dict()}, message="Category disabled")


@admin_bp.route("/categories/reorder", methods=["PUT"])
@validate_schema(ReorderCategoriesRequest)
def reorder_categories():
    with transactional("Failed to reorder categories"):
        rows = CatalogService().reorder_categories(request.validated_data.ids)
        payload = _category_rows(rows)
    return ok({"categories": payload}, message="Categories reordered")
