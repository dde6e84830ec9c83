"""Thin query helper over the Flask-SQLAlchemy session.

Handlers never touch ``db.session`` directly; they go through a ``Database``
instance created by the application factory. Writes commit immediately unless
they run inside :meth:`Database.transaction`.
"""
import logging
from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select
from sqlalchemy import update as sa_update

logger = logging.getLogger(__name__)


class Database:

    def __init__(self, db):
        self._db = db

    @property
    def session(self):
        return self._db.session

    @property
    def _depth(self):
        return self.session.info.get('transaction_depth', 0)

    @_depth.setter
    def _depth(self, value):
        self.session.info['transaction_depth'] = value

    def _finish(self):
        if self._depth:
            self.session.flush()
        else:
            self.session.commit()

    # -- reads -------------------------------------------------------------

    def get(self, model, ident):
        return self.session.get(model, ident)

    def fetch(self, model, *criteria, **filters):
        """First row matching the criteria, or None."""
        stmt = select(model).where(*criteria).filter_by(**filters).limit(1)
        return self.session.execute(stmt).scalars().first()

    def fetch_all(self, model, *criteria, order_by=None, **filters):
        stmt = select(model).where(*criteria).filter_by(**filters)
        if order_by is not None:
            stmt = stmt.order_by(*order_by) if isinstance(order_by, (list, tuple)) else stmt.order_by(order_by)
        return list(self.session.execute(stmt).scalars())

    def count(self, model, *criteria, **filters):
        stmt = select(func.count()).select_from(model).where(*criteria).filter_by(**filters)
        return self.session.execute(stmt).scalar_one()

    def scalars(self, stmt):
        return list(self.session.execute(stmt).scalars())

    def scalar(self, stmt):
        return self.session.execute(stmt).scalar()

    def paginate(self, stmt, page=1, per_page=20):
        """Run a select with LIMIT/OFFSET and a separate count query.

        Returns ``(rows, total)``.
        """
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = self.session.execute(count_stmt).scalar_one()
        offset = (page - 1) * per_page
        rows = self.scalars(stmt.limit(per_page).offset(offset))
        return rows, total

    # -- writes ------------------------------------------------------------

    def insert(self, model, data):
        """Create a row from a dict and return the persisted instance."""
        instance = model(**data)
        self.session.add(instance)
        self._finish()
        return instance

    def save(self, instance):
        self.session.add(instance)
        self._finish()
        return instance

    def update(self, model, data, *criteria, **filters):
        """Update matching rows; returns the number of rows affected."""
        stmt = sa_update(model).where(*criteria).filter_by(**filters).values(**data)
        result = self.session.execute(stmt, execution_options={'synchronize_session': 'fetch'})
        self._finish()
        return result.rowcount

    def delete(self, model, *criteria, **filters):
        """Delete matching rows; returns the number of rows removed (0 is fine)."""
        stmt = sa_delete(model).where(*criteria).filter_by(**filters)
        result = self.session.execute(stmt, execution_options={'synchronize_session': 'fetch'})
        self._finish()
        return result.rowcount

    def remove(self, instance):
        self.session.delete(instance)
        self._finish()

    def rollback(self):
        self.session.rollback()

    def transaction(self, callback):
        """Run ``callback(self)`` atomically; rolls back and re-raises on error."""
        self._depth += 1
        try:
            result = callback(self)
        except Exception:
            self._depth -= 1
            self.session.rollback()
            logger.exception("Transaction rolled back")
            raise
        self._depth -= 1
        if not self._depth:
            self.session.commit()
        return result
