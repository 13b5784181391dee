import pytest
from sqlalchemy import text

from rideops.core.exceptions import ConfigurationError
from rideops.core.init_db import inspect_schema


async def test_full_schema_passes(engine):
    async with engine.connect() as conn:
        capabilities = await conn.run_sync(inspect_schema, "database")
    assert capabilities.role_flags


async def test_missing_users_table_disables_role_flags(engine):
    async with engine.begin() as conn:
        await conn.execute(text("DROP TABLE users"))
        capabilities = await conn.run_sync(inspect_schema, "database")
    assert not capabilities.role_flags


async def test_missing_admin_notes_column_fails_fast(engine):
    async with engine.begin() as conn:
        await conn.execute(text("ALTER TABLE contact_requests DROP COLUMN admin_notes"))
        with pytest.raises(ConfigurationError, match="contact_requests.admin_notes"):
            await conn.run_sync(inspect_schema, "database")


async def test_identity_table_only_required_for_database_backend(engine):
    async with engine.begin() as conn:
        await conn.execute(text("DROP TABLE auth_identities"))
        capabilities = await conn.run_sync(inspect_schema, "supabase")
        assert capabilities.role_flags
        with pytest.raises(ConfigurationError, match="missing table 'auth_identities'"):
            await conn.run_sync(inspect_schema, "database")
