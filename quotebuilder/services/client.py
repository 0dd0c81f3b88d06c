"""
Client service.
Handles client CRUD operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from quotebuilder.core.exceptions import NotFoundError
from quotebuilder.models.client import Client
from quotebuilder.schemas.client import ClientCreate, ClientUpdate


class ClientService:
    """Service for client operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: ClientCreate) -> Client:
        """
        Create a new client.

        Args:
            data: Client data

        Returns:
            Created client
        """
        client = Client(**data.model_dump())

        self.db.add(client)
        await self.db.flush()
        await self.db.refresh(client)

        return client

    async def get_by_id(self, client_id: int) -> Client | None:
        result = await self.db.execute(
            select(Client).where(Client.id == client_id)
        )
        return result.scalar_one_or_none()

    async def get_or_404(self, client_id: int) -> Client:
        """
        Get client by ID.

        Raises:
            NotFoundError: If client not found
        """
        client = await self.get_by_id(client_id)
        if not client:
            raise NotFoundError("Client", client_id)
        return client

    async def list(
        self,
        skip: int = 0,
        limit: int = 20,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[Client], int]:
        """
        List clients with pagination and search.

        Args:
            skip: Number of records to skip
            limit: Maximum records to return
            search: Search term for name/email/company
            is_active: Filter by active status

        Returns:
            Tuple of (clients list, total count)
        """
        query = select(Client)
        count_query = select(func.count(Client.id))

        if search:
            search_filter = f"%{search}%"
            condition = (
                Client.name.ilike(search_filter)
                | Client.email.ilike(search_filter)
                | Client.company.ilike(search_filter)
            )
            query = query.where(condition)
            count_query = count_query.where(condition)

        if is_active is not None:
            query = query.where(Client.is_active == is_active)
            count_query = count_query.where(Client.is_active == is_active)

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(Client.name).offset(skip).limit(limit)
        result = await self.db.execute(query)
        clients = list(result.scalars().all())

        return clients, total

    async def update(self, client: Client, data: ClientUpdate) -> Client:
        """Update client."""
        update_data = data.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(client, field, value)

        await self.db.flush()
        await self.db.refresh(client)

        return client

    async def delete(self, client: Client) -> None:
        """
        Delete client (soft delete by deactivating).

        Quotes addressed to the client keep pointing at it.
        """
        client.is_active = False
        await self.db.flush()
