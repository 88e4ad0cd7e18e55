from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """Declarative base shared by every cowork model and the Alembic metadata."""

    @declared_attr.directive
    def __tablename__(cls) -> str:  # noqa: N805
        return cls.__name__.lower()


# Register models on Base.metadata for Alembic autogenerate
try:  # pragma: no cover - import side effects only
    import cowork_api.models  # noqa: F401
except ImportError:  # pragma: no cover - partially initialised during model import
    pass
