"""
Composable query scopes.

A scope is a small immutable value describing one filter or one ordering
over a single mapped model. ``QueryBuilder`` collects scopes, ANDs the
filters together, applies orderings in the order given and, unless
``with_trashed()`` is called, excludes soft-deleted rows explicitly.
"""
from typing import Any, List, Optional, Sequence, Tuple, Type

from sqlalchemy.orm import Query, Session
from sqlalchemy.sql.elements import ColumnElement

from storefront.core.exceptions import ScopeConflict


def like_pattern(term: str) -> str:
    """Wrap ``term`` for a substring LIKE match, escaping wildcards with a backslash."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class Scope:
    model: Type[Any] = None


class Filter(Scope):

    def clause(self) -> Optional[ColumnElement]:
        """SQL criterion for this filter, or None when it restricts nothing."""
        raise NotImplementedError

    def clause_for(self, dialect_name: str) -> Optional[ColumnElement]:
        """Same as ``clause``; overridden by filters whose SQL differs per database."""
        return self.clause()


class Ordering(Scope):
    key: str = ""

    def columns(self) -> List[ColumnElement]:
        raise NotImplementedError

    def apply(self, query: Query) -> Query:
        return query.order_by(*self.columns())


class QueryBuilder:

    def __init__(
        self,
        model: Type[Any],
        filters: Sequence[Filter] = (),
        orderings: Sequence[Ordering] = (),
        include_trashed: bool = False,
    ):
        self.model = model
        self.filters: Tuple[Filter, ...] = tuple(filters)
        self.orderings: Tuple[Ordering, ...] = tuple(orderings)
        self.include_trashed = include_trashed

    def _copy(self, **changes) -> "QueryBuilder":
        params = {
            "filters": self.filters,
            "orderings": self.orderings,
            "include_trashed": self.include_trashed,
        }
        params.update(changes)
        return QueryBuilder(self.model, **params)

    def _check_model(self, scope: Scope) -> None:
        if scope.model is not self.model:
            raise ScopeConflict(
                f"{type(scope).__name__} applies to {getattr(scope.model, '__name__', scope.model)}, "
                f"not {self.model.__name__}"
            )

    def where(self, *filters: Filter) -> "QueryBuilder":
        for item in filters:
            if not isinstance(item, Filter):
                raise ScopeConflict(f"{type(item).__name__} is not a filter scope")
            self._check_model(item)
        return self._copy(filters=self.filters + tuple(filters))

    def order_by(self, *orderings: Ordering) -> "QueryBuilder":
        keys = {ordering.key for ordering in self.orderings}
        for item in orderings:
            if not isinstance(item, Ordering):
                raise ScopeConflict(f"{type(item).__name__} is not an ordering scope")
            self._check_model(item)
            if item.key in keys:
                raise ScopeConflict(f"Ordering on '{item.key}' is already applied")
            keys.add(item.key)
        return self._copy(orderings=self.orderings + tuple(orderings))

    def apply(self, *scopes: Scope) -> "QueryBuilder":
        """Route each scope to ``where`` or ``order_by`` by its kind."""
        builder = self
        for scope in scopes:
            if isinstance(scope, Ordering):
                builder = builder.order_by(scope)
            else:
                builder = builder.where(scope)
        return builder

    def with_trashed(self) -> "QueryBuilder":
        return self._copy(include_trashed=True)

    def criteria(self, dialect_name: Optional[str] = None) -> List[ColumnElement]:
        clauses = []
        if not self.include_trashed and hasattr(self.model, "deleted_at"):
            clauses.append(self.model.deleted_at.is_(None))
        for item in self.filters:
            clause = item.clause() if dialect_name is None else item.clause_for(dialect_name)
            if clause is not None:
                clauses.append(clause)
        return clauses

    def _filtered(self, db: Session) -> Query:
        return db.query(self.model).filter(*self.criteria(db.get_bind().dialect.name))

    def query(self, db: Session) -> Query:
        query = self._filtered(db)
        for ordering in self.orderings:
            query = ordering.apply(query)
        return query

    def all(self, db: Session) -> list:
        return self.query(db).all()

    def first(self, db: Session):
        return self.query(db).first()

    def count(self, db: Session) -> int:
        return self._filtered(db).count()

    def exists(self, db: Session) -> bool:
        return self._filtered(db).first() is not None

    def paginate(self, db: Session, page: int = 1, per_page: int = 20) -> Tuple[list, int]:
        if page < 1 or per_page < 1:
            raise ValueError("page and per_page must be positive")
        total = self.count(db)
        items = self.query(db).offset((page - 1) * per_page).limit(per_page).all()
        return items, total
