from flask import Blueprint, request
from app.version import API_PREFIX
from app.utils import ok, page_size, validate_query
from app.schemas.catalog import ProductQuery
from app.services.catalog_service import CatalogService

catalog_bp = Blueprint("catalog", __name__, url_prefix=API_PREFIX)


@catalog_bp.route("/products", methods=["GET"])
@validate_query(ProductQuery)
def list_products():
    """
    Browse the menu.
    ---
    tags:
      - Catalog
    parameters:
      - name: category_id
        in: query
        type: integer
      - name: search
        in: query
        type: string
    responses:
      200:
        description: Paginated products
    """
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


@catalog_bp.route("/products/<int:product_id>", methods=["GET"])
def get_product(product_id):
    product = CatalogService().get_product(product_id)
    return ok({"product": product.to_dict()})


@catalog_bp.route("/categories", methods=["GET"])
def list_categories():
    rows = CatalogService().list_categories()
    return ok({"categories": [dict(c.to_dict(), product_count=n) for c, n in rows]})


@catalog_bp.route("/categories/<int:category_id>", methods=["GET"])
def get_category(category_id):
    service = CatalogService()
    category = service.get_category(category_id)
    data = category.to_dict()
    data["products"] = [p.summary_dict() for p in service.available_products(category)]
    return ok({"category": data})
