"""
Marketing Service Data Repository

Data access layer - PostgreSQL (Async)

Every entity is stored as a JSONB document keyed by id, using the camelCase
field names of the models. Campaign documents embed their plan list, so
plan edits are whole-document rewrites.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import asyncpg
from pydantic import ValidationError

from core.config_manager import ConfigManager
from core.postgres_client import PostgresClientWrapper

from .models import BaseContract, Branch, Campaign, Category, EventType, User
from .protocols import DataStoreError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseContract)

# Errors that mean the Data Store is unavailable or rejected the call
STORE_ERRORS = (OSError, asyncpg.PostgresError, asyncpg.InterfaceError, DataStoreError)

# Errors that mean a single stored document is unreadable
DOCUMENT_ERRORS = (ValidationError, json.JSONDecodeError)


class MarketingRepository:
    """Marketing service data repository - PostgreSQL (Async)"""

    def __init__(self, config: Optional[ConfigManager] = None, db: Optional[Any] = None):
        # Use config_manager for service discovery
        if config is None:
            config = ConfigManager("marketing_service")

        infra = config.settings.infrastructure
        self.db = db or PostgresClientWrapper(
            service_name="marketing_service",
            infra=infra,
        )
        self.schema = infra.postgres_schema

        # Table names
        self.campaigns_table = "campaigns"
        self.branches_table = "branches"
        self.categories_table = "categories"
        self.event_types_table = "event_types"
        self.users_table = "users"

    async def initialize(self):
        """Create schema and document tables if missing"""
        statements = [f"CREATE SCHEMA IF NOT EXISTS {self.schema}"]
        for table in (
            self.campaigns_table,
            self.branches_table,
            self.categories_table,
            self.event_types_table,
            self.users_table,
        ):
            statements.append(f'''
                CREATE TABLE IF NOT EXISTS {self.schema}.{table} (
                    id TEXT PRIMARY KEY,
                    document JSONB NOT NULL,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
                )
            ''')

        try:
            async with self.db:
                for statement in statements:
                    await self.db.execute(statement)
        except STORE_ERRORS as e:
            logger.error(f"Failed to initialize marketing schema: {e}")
            raise DataStoreError(f"Failed to initialize schema: {e}", operation="initialize") from e

        logger.info("Marketing repository initialized with PostgreSQL")

    async def close(self):
        """Close database connection"""
        await self.db.close()
        logger.info("Marketing repository database connection closed")

    async def health_check(self) -> bool:
        """Check repository health"""
        try:
            async with self.db:
                result = await self.db.query_row("SELECT 1 as healthy")
                return result is not None
        except STORE_ERRORS as e:
            logger.error(f"Health check failed: {e}")
            return False

    # ====================
    # Document helpers
    # ====================

    @staticmethod
    def _to_document(entity: BaseContract) -> str:
        return json.dumps(entity.model_dump(mode="json", by_alias=True))

    @staticmethod
    def _from_row(model: Type[ModelT], row: Dict[str, Any]) -> ModelT:
        document = row["document"]
        if isinstance(document, (str, bytes)):
            document = json.loads(document)
        return model.model_validate(document)

    def _read_row(self, table: str, model: Type[ModelT], row: Dict[str, Any]) -> Optional[ModelT]:
        """Parse one stored row; an unreadable document is logged and skipped"""
        try:
            return self._from_row(model, row)
        except DOCUMENT_ERRORS as e:
            logger.warning(f"Skipping malformed {table} document {row.get('id')}: {e}")
            return None

    async def _list(self, table: str, model: Type[ModelT]) -> List[ModelT]:
        query = f'''
            SELECT id, document FROM {self.schema}.{table}
            ORDER BY created_at, id
        '''
        try:
            async with self.db:
                rows = await self.db.query(query)
        except STORE_ERRORS as e:
            logger.error(f"Failed to list {table}: {e}")
            raise DataStoreError(f"Failed to list {table}: {e}", operation=f"list_{table}") from e
        entities = [self._read_row(table, model, row) for row in rows]
        return [entity for entity in entities if entity is not None]

    async def _get(self, table: str, model: Type[ModelT], entity_id: str) -> Optional[ModelT]:
        query = f"SELECT id, document FROM {self.schema}.{table} WHERE id = $1"
        try:
            async with self.db:
                row = await self.db.query_row(query, [entity_id])
        except STORE_ERRORS as e:
            logger.error(f"Failed to get {table} {entity_id}: {e}")
            raise DataStoreError(f"Failed to get {table}: {e}", operation=f"get_{table}") from e
        return self._read_row(table, model, row) if row else None

    async def _save(self, table: str, entity: ModelT, document: Optional[str] = None) -> ModelT:
        query = f'''
            INSERT INTO {self.schema}.{table} (id, document)
            VALUES ($1, $2::jsonb)
            ON CONFLICT (id) DO UPDATE SET
                document = EXCLUDED.document,
                updated_at = now()
        '''
        try:
            async with self.db:
                await self.db.execute(query, [entity.id, document or self._to_document(entity)])
        except STORE_ERRORS as e:
            logger.error(f"Failed to save {table} {entity.id}: {e}")
            raise DataStoreError(f"Failed to save {table}: {e}", operation=f"save_{table}") from e
        return entity

    async def _delete(self, table: str, entity_id: str) -> bool:
        query = f"DELETE FROM {self.schema}.{table} WHERE id = $1"
        try:
            async with self.db:
                result = await self.db.execute(query, [entity_id])
        except STORE_ERRORS as e:
            logger.error(f"Failed to delete {table} {entity_id}: {e}")
            raise DataStoreError(f"Failed to delete {table}: {e}", operation=f"delete_{table}") from e
        # asyncpg command status, e.g. "DELETE 1"
        return bool(result) and not str(result).endswith(" 0")

    # ====================
    # Campaigns
    # ====================

    async def list_campaigns(self) -> List[Campaign]:
        return await self._list(self.campaigns_table, Campaign)

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        return await self._get(self.campaigns_table, Campaign, campaign_id)

    async def save_campaign(self, campaign: Campaign) -> Campaign:
        """Full-document upsert, plans included"""
        return await self._save(self.campaigns_table, campaign)

    async def delete_campaign(self, campaign_id: str) -> bool:
        return await self._delete(self.campaigns_table, campaign_id)

    # ====================
    # Reference data
    # ====================

    async def list_branches(self) -> List[Branch]:
        return await self._list(self.branches_table, Branch)

    async def save_branch(self, branch: Branch) -> Branch:
        return await self._save(self.branches_table, branch)

    async def delete_branch(self, branch_id: str) -> bool:
        return await self._delete(self.branches_table, branch_id)

    async def list_categories(self) -> List[Category]:
        return await self._list(self.categories_table, Category)

    async def save_category(self, category: Category) -> Category:
        return await self._save(self.categories_table, category)

    async def delete_category(self, category_id: str) -> bool:
        return await self._delete(self.categories_table, category_id)

    async def list_event_types(self) -> List[EventType]:
        return await self._list(self.event_types_table, EventType)

    async def save_event_type(self, event_type: EventType) -> EventType:
        return await self._save(self.event_types_table, event_type)

    async def delete_event_type(self, event_type_id: str) -> bool:
        return await self._delete(self.event_types_table, event_type_id)

    # ====================
    # Users
    # ====================

    async def list_users(self) -> List[User]:
        return await self._list(self.users_table, User)

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self._get(self.users_table, User, user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        query = f'''
            SELECT id, document FROM {self.schema}.{self.users_table}
            WHERE document->>'username' = $1
            LIMIT 1
        '''
        try:
            async with self.db:
                row = await self.db.query_row(query, [username])
        except STORE_ERRORS as e:
            logger.error(f"Failed to get user by username: {e}")
            raise DataStoreError(f"Failed to get user: {e}", operation="get_user_by_username") from e
        return self._read_row(self.users_table, User, row) if row else None

    async def save_user(self, user: User) -> User:
        # password_hash is excluded from serialization; store it explicitly
        document = user.model_dump(mode="json", by_alias=True)
        document["passwordHash"] = user.password_hash
        return await self._save(self.users_table, user, json.dumps(document))

    async def delete_user(self, user_id: str) -> bool:
        return await self._delete(self.users_table, user_id)


__all__ = ["MarketingRepository"]
