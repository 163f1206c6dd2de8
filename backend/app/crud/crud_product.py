from backend.app.crud.base import CRUDOwned
from backend.app.models.product import Product

product_crud = CRUDOwned(Product, search_fields=["name", "description"], default_order=("name", "asc"))
