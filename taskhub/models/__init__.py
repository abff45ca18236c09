"""
ORM model package. Import all models here so Alembic autogenerate
can discover every table through the shared Base metadata.
"""
from taskhub.models.user import User  # noqa: F401
from taskhub.models.task import Task  # noqa: F401
from taskhub.models.document import TaskDocument  # noqa: F401
