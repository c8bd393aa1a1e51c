"""
FastAPI dependencies for services and remote clients.

Each request gets its own database session; the remote service clients share
the application's pooled ``httpx.AsyncClient`` created at startup. Tests
replace any of these through ``app.dependency_overrides``.
"""

from typing import Annotated

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from order_management.core.config import Settings, get_settings
from order_management.database.connection import get_db
from order_management.services.cart.service import CartService
from order_management.services.inventory.client import InventoryClient
from order_management.services.orders.service import OrderService
from order_management.services.orders.state_machine import OrderDecisionWorkflow
from order_management.services.users.client import UserDirectoryClient


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Return the HTTP client opened by the application lifespan."""
    return request.app.state.http_client


DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]
HttpClient = Annotated[httpx.AsyncClient, Depends(get_http_client)]


def get_inventory_client(settings: AppSettings, http_client: HttpClient) -> InventoryClient:
    return InventoryClient(settings.product_service_url, http_client)


def get_user_client(settings: AppSettings, http_client: HttpClient) -> UserDirectoryClient:
    return UserDirectoryClient(settings.user_service_url, http_client)


Inventory = Annotated[InventoryClient, Depends(get_inventory_client)]
UserDirectory = Annotated[UserDirectoryClient, Depends(get_user_client)]


def get_order_service(
    db: DatabaseSession,
    settings: AppSettings,
    inventory_client: Inventory,
    user_client: UserDirectory,
) -> OrderService:
    return OrderService(
        db,
        inventory_client=inventory_client,
        user_client=user_client,
        max_page_size=settings.max_page_size,
        default_page_size=settings.default_page_size,
    )


def get_decision_workflow(
    db: DatabaseSession, inventory_client: Inventory
) -> OrderDecisionWorkflow:
    return OrderDecisionWorkflow(db, inventory_client=inventory_client)


def get_cart_service(db: DatabaseSession) -> CartService:
    return CartService(db)


OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
DecisionWorkflowDep = Annotated[OrderDecisionWorkflow, Depends(get_decision_workflow)]
CartServiceDep = Annotated[CartService, Depends(get_cart_service)]
