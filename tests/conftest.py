"""
Pytest configuration and fixtures
Shared test setup for all test modules
"""
import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

import json
import uuid
import pytest
import httpx
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, List, Optional
from urllib.parse import parse_qs
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from shulgenius.main import app
from shulgenius.api.dependencies import get_gateway
from shulgenius.core.security import create_access_token
from shulgenius.db.base import Base
from shulgenius.db.database import get_db
from shulgenius.db.models import (
    Campaign,
    CampaignProcessor,
    Member,
    Organization,
    OrganizationSettings,
    PaymentMethod,
    PaymentProcessor,
    Subscription,
)
from shulgenius.services.cardknox_gateway import CardknoxGateway

TEST_DATABASE_URL = "sqlite+aiosqlite://"


class FakeGateway:
    """Scripted gateway responses served through httpx.MockTransport"""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._responses: list = []
        self.client = httpx.AsyncClient(transport=httpx.MockTransport(self._handle))

    def respond(self, body=None, status_code: int = 200, content: Optional[bytes] = None):
        self._responses.append((status_code, body, content))

    def fail(self, error: Exception):
        self._responses.append(error)

    def approve(self, ref: str = "ref-approved", **extra):
        self.respond({"xResult": "A", "xRefNum": ref, "xStatus": "Approved", **extra})

    def decline(self, reason: str = "Insufficient funds"):
        self.respond({"xResult": "D", "xRefNum": "ref-declined", "xStatus": "Declined", "xError": reason})

    def recurring_ok(self, **data):
        self.respond({"Result": "S", **data})

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Unexpected gateway call to {request.url}")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        status_code, body, content = item
        if content is not None:
            return httpx.Response(status_code, content=content)
        return httpx.Response(status_code, json=body)

    def form(self, index: int = 0) -> dict:
        parsed = parse_qs(self.requests[index].content.decode())
        return {k: v[0] for k, v in parsed.items()}

    def json_body(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create clean database for each test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with session_factory() as session:
        yield session
        await session.rollback()

    await engine.dispose()


@pytest.fixture
async def fake_gateway() -> AsyncGenerator[FakeGateway, None]:
    fake = FakeGateway()
    yield fake
    await fake.client.aclose()


@pytest.fixture
def gateway(fake_gateway: FakeGateway) -> CardknoxGateway:
    return CardknoxGateway(client=fake_gateway.client)


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession, gateway: CardknoxGateway) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database and gateway overrides"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
async def organization(db_session: AsyncSession) -> Organization:
    org = Organization(name="Beth Shalom", slug=f"beth-shalom-{uuid.uuid4().hex[:6]}", email="office@bethshalom.org")
    db_session.add(org)
    await db_session.commit()
    await db_session.refresh(org)
    return org


@pytest.fixture
async def default_processor(db_session: AsyncSession, organization: Organization) -> PaymentProcessor:
    processor = PaymentProcessor(
        organization_id=organization.id,
        processor_type="cardknox",
        name="General fund account",
        credentials={"transaction_key": "key-default", "ifields_key": "ifields-default"},
        is_default=True,
        is_active=True,
    )
    db_session.add(processor)
    await db_session.commit()
    await db_session.refresh(processor)
    return processor


@pytest.fixture
async def building_processor(db_session: AsyncSession, organization: Organization) -> PaymentProcessor:
    processor = PaymentProcessor(
        organization_id=organization.id,
        processor_type="sola",
        name="Building fund account",
        credentials={"transaction_key": "key-building"},
        is_default=False,
        is_active=True,
    )
    db_session.add(processor)
    await db_session.commit()
    await db_session.refresh(processor)
    return processor


@pytest.fixture
async def legacy_settings(db_session: AsyncSession, organization: Organization) -> OrganizationSettings:
    row = OrganizationSettings(
        organization_id=organization.id,
        active_processor="cardknox",
        cardknox_transaction_key="key-legacy",
    )
    db_session.add(row)
    await db_session.commit()
    await db_session.refresh(row)
    return row


@pytest.fixture
async def campaign(db_session: AsyncSession, organization: Organization) -> Campaign:
    row = Campaign(
        organization_id=organization.id,
        name="Building Fund",
        type="drive",
        goal_amount=Decimal("1000.00"),
        raised_amount=Decimal("400.00"),
        is_active=True,
    )
    db_session.add(row)
    await db_session.commit()
    await db_session.refresh(row)
    return row


async def bind_processor(
    session: AsyncSession,
    campaign: Campaign,
    processor: PaymentProcessor,
    is_primary: bool = True,
) -> CampaignProcessor:
    binding = CampaignProcessor(campaign_id=campaign.id, processor_id=processor.id, is_primary=is_primary)
    session.add(binding)
    await session.commit()
    return binding


@pytest.fixture
async def member(db_session: AsyncSession, organization: Organization) -> Member:
    row = Member(
        organization_id=organization.id,
        first_name="Sam",
        last_name="Cohen",
        email="sam@example.com",
    )
    db_session.add(row)
    await db_session.commit()
    await db_session.refresh(row)
    return row


async def add_card(
    session: AsyncSession,
    member: Member,
    processor: Optional[PaymentProcessor] = None,
    token: str = "tok-1111",
    is_default: bool = False,
    last_four: str = "1111",
) -> PaymentMethod:
    method = PaymentMethod(
        member_id=member.id,
        processor=processor.processor_type if processor else "cardknox",
        processor_id=processor.id if processor else None,
        processor_payment_method_id=token,
        processor_customer_id="cust-1",
        card_brand="Visa",
        card_last_four=last_four,
        exp_month=12,
        exp_year=2030,
        is_default=is_default,
    )
    session.add(method)
    await session.commit()
    await session.refresh(method)
    return method


@pytest.fixture
async def saved_card(db_session: AsyncSession, member: Member, default_processor: PaymentProcessor) -> PaymentMethod:
    return await add_card(db_session, member, default_processor, is_default=True)


async def add_subscription(
    session: AsyncSession,
    member: Member,
    payment_method: Optional[PaymentMethod] = None,
    campaign: Optional[Campaign] = None,
    payment_type: str = "recurring",
    installments_total: Optional[int] = None,
    installments_paid: Optional[int] = None,
    next_billing_date: date = date(2024, 1, 15),
    frequency: str = "monthly",
    is_active: bool = True,
) -> Subscription:
    subscription = Subscription(
        organization_id=member.organization_id,
        member_id=member.id,
        campaign_id=campaign.id if campaign else None,
        payment_method_id=payment_method.id if payment_method else None,
        total_amount=Decimal("50.00"),
        payment_type=payment_type,
        billing_method="auto_cc",
        frequency=frequency,
        installments_total=installments_total,
        installments_paid=installments_paid,
        start_date=next_billing_date,
        next_billing_date=next_billing_date,
        is_active=is_active,
    )
    session.add(subscription)
    await session.commit()
    await session.refresh(subscription)
    return subscription


def token_for(organization: Organization, role: str = "admin") -> dict:
    access_token = create_access_token(
        data={"sub": str(uuid.uuid4()), "organization_id": str(organization.id), "role": role}
    )
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def auth_headers(organization: Organization) -> dict:
    """Generate admin auth headers scoped to the test organization"""
    return token_for(organization)
