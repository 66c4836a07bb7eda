import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import Base, get_db
import app.models  # noqa: F401

# One shared in-memory database for the whole run
engine = create_engine(
    "sqlite:///:memory:",
    future=True,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False, future=True)


@pytest.fixture(scope='session')
def db_engine():
    # Create schema for tests
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session(db_engine):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        # every test starts from an empty store
        with db_engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(table.delete())


@pytest_asyncio.fixture
async def client(db_session):
    from app.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)

    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


# -------------------------------------------------
# Sample exports
# -------------------------------------------------
PERFORMANCE_CSV = """symbol,_priceFormat,_priceFormatType,_tickSize,buyFillId,sellFillId,qty,buyPrice,sellPrice,pnl,boughtTimestamp,soldTimestamp,duration
NQH6,-2,0,0.25,9001,9002,1,25266.00,25271.00,$100.00,02/11/2026 15:34:46,02/11/2026 15:36:10,1min 24sec
MESH6,-2,0,0.25,9003,9004,1,6950.00,6954.75,$23.75,02/11/2026 15:40:00,02/11/2026 15:45:30,5min 30sec
MESH6,-2,0,0.25,9005,9006,1,6952.25,6956.75,$22.50,02/11/2026 16:00:00,02/11/2026 16:10:00,10min
MESH6,-2,0,0.25,9007,9008,1,6955.00,6955.75,$3.75,02/11/2026 16:20:00,02/11/2026 16:21:00,1min
MESH6,-2,0,0.25,9009,9010,1,6960.00,6962.25,$11.25,02/12/2026 14:30:00,02/12/2026 14:35:00,5min
MESH6,-2,0,0.25,9011,9012,1,6961.50,6963.25,$8.75,02/12/2026 14:40:00,02/12/2026 14:42:00,2min
MESH6,-2,0,0.25,9013,9014,1,6963.00,6965.00,$10.00,02/12/2026 15:00:00,02/12/2026 15:30:00,30min
MESH6,-2,0,0.25,9015,9016,1,6966.00,6963.00,$(15.00),02/12/2026 15:45:00,02/12/2026 15:50:00,5min
MESH6,-2,0,0.25,9017,9018,1,6964.50,6962.00,$(12.50),02/12/2026 16:00:00,02/12/2026 16:03:00,3min
MESH6,-2,0,0.25,9019,9020,1,6962.75,6959.50,$(16.25),02/12/2026 16:10:00,02/12/2026 16:20:00,10min
"""

# One NQ round trip, sold first then bought back (a short)
FILLS_CSV = """Fill ID,Order ID,Timestamp,B/S,Quantity,Price,Contract,Product,Product Description,commission
1001,5001,02/11/2026 15:34:46,Sell,1,25271.00,NQH6,NQ,E-Mini NASDAQ 100,1.29
1002,5002,02/11/2026 15:36:10,Buy,1,25266.00,NQH6,NQ,E-Mini NASDAQ 100,1.29
"""


@pytest.fixture()
def performance_csv():
    return PERFORMANCE_CSV


@pytest.fixture()
def fills_csv():
    return FILLS_CSV
