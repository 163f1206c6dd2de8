"""Owner-scoped CRUD operations shared by the catalogue collections."""

from typing import Generic, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.app.db.base_class import Base

ModelType = TypeVar("ModelType", bound=Base)


class CRUDOwned(Generic[ModelType]):
    """List/create/update/delete for a model carrying an ``owner_id`` column.

    ``search_fields`` are matched case-insensitively, every whitespace-separated
    token must hit at least one field. ``default_order`` is ``(field, "asc"|"desc")``.
    """

    def __init__(self, model: Type[ModelType], *, search_fields: Sequence[str], default_order: tuple[str, str]):
        self.model = model
        self.search_fields = list(search_fields)
        self.default_order = default_order

    def create(self, db: Session, *, obj_in: BaseModel, owner_id: int) -> ModelType:
        obj = self.model(owner_id=owner_id, **obj_in.model_dump())
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def get(self, db: Session, *, obj_id: int, owner_id: int) -> Optional[ModelType]:
        return db.query(self.model).filter(self.model.id == obj_id, self.model.owner_id == owner_id).first()

    def get_multi(
        self,
        db: Session,
        *,
        owner_id: int,
        search: str | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> List[ModelType]:
        query = db.query(self.model).filter(self.model.owner_id == owner_id)
        if search:
            for token in search.split():
                pattern = f"%{token}%"
                query = query.filter(or_(*(getattr(self.model, field).ilike(pattern) for field in self.search_fields)))

        sort_field = sort_by or self.default_order[0]
        if sort_field not in self.model.__table__.columns:
            raise ValueError("Invalid sort_by value")
        sort_order_normalized = (sort_order or self.default_order[1]).lower()
        if sort_order_normalized not in {"asc", "desc"}:
            raise ValueError("Invalid sort_order value")

        sort_column = getattr(self.model, sort_field)
        if sort_order_normalized == "asc":
            query = query.order_by(sort_column.asc(), self.model.id.asc())
        else:
            query = query.order_by(sort_column.desc(), self.model.id.desc())

        query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def update(self, db: Session, *, db_obj: ModelType, obj_in: BaseModel) -> ModelType:
        update_data = obj_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            # Required columns keep their value when a client sends an explicit null
            if value is None and not self.model.__table__.columns[field].nullable:
                continue
            setattr(db_obj, field, value)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, db_obj: ModelType) -> ModelType:
        db.delete(db_obj)
        db.commit()
        return db_obj
