"""SQLAlchemy declarative base with snake_case table naming.

Models are named in PascalCase and mapped to snake_case tables:
``OrderLine`` is stored in ``order_line``. Column attributes may be written
in camelCase; engines created by this package render them as snake_case
through the identifier hook.
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, declared_attr

from casekit.casing import decamelize
from casekit.infrastructure.constants import NAMING_CONVENTION


class Base(DeclarativeBase):
    """Declarative base with constraint naming conventions."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    @declared_attr.directive
    def __tablename__(cls) -> str:  # noqa: N805
        return decamelize(cls.__name__)
