from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from alembic import context

from clinic_service.config import get_settings
from clinic_service.db import Base
from clinic_service import models  # noqa: F401


def get_url():
    return get_settings().database_url


config = context.config
config.set_main_option("sqlalchemy.url", get_url())
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

if context.is_offline_mode():
    context.configure(url=get_url(), target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()
else:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section), prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()
