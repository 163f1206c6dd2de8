from backend.app.crud.base import CRUDOwned
from backend.app.models.client import Client

client_crud = CRUDOwned(Client, search_fields=["name", "email"], default_order=("created_at", "desc"))
