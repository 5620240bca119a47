"""Unit tests for casekit/infrastructure/database/base.py module."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import CreateTable

from casekit.infrastructure.database.base import Base
from casekit.infrastructure.database.config import create_config
from casekit.infrastructure.database.session import apply_identifier_hook


class OrderLine(Base):
    id: Mapped[int] = mapped_column(primary_key=True)
    unitPrice: Mapped[int]  # noqa: N815


class HTTPRequestLog(Base):
    id: Mapped[int] = mapped_column(primary_key=True)


@pytest.mark.unit
class TestBase:
    """Test the declarative base."""

    def test_table_name_is_snake_case(self) -> None:
        """Test that PascalCase model names map to snake_case tables."""
        assert OrderLine.__tablename__ == "order_line"

    def test_table_name_keeps_acronyms_together(self) -> None:
        """Test that acronyms become a single snake_case word."""
        assert HTTPRequestLog.__tablename__ == "http_request_log"

    def test_naming_convention(self) -> None:
        """Test that constraints are named by convention."""
        ddl = str(CreateTable(OrderLine.__table__).compile(create_engine("sqlite://")))

        assert "CONSTRAINT pk_order_line PRIMARY KEY" in ddl

    def test_camel_case_columns_render_snake_case(self) -> None:
        """Test that camelCase attributes reach DDL as snake_case columns."""
        engine = create_engine("sqlite://")
        apply_identifier_hook(engine, create_config("sqlite://"))

        ddl = str(CreateTable(OrderLine.__table__).compile(engine))

        assert "unit_price INTEGER NOT NULL" in ddl
        assert "unitPrice" not in ddl
