# tests/conftest.py
import os

# Configuración aislada antes de importar la app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config.database import Base, get_db
from app.core.auth.schemas import Actor, UserRole
from app.core.auth.service import AuthService
from app.shared.database.models import Client, Product
from app.modules.orders.schemas import OrderCreate, OrderLineCreate
from app.modules.orders.service import OrdersService
from app.main import app

ADMIN_ID = 1
OWNER_ID = 2
VENDOR_ID = 10
OTHER_VENDOR_ID = 11
CLIENT_USER_ID = 20
PACKER_ID = 30


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ===== ACTORES =====

@pytest.fixture
def admin():
    return Actor(id=ADMIN_ID, role=UserRole.ADMIN)


@pytest.fixture
def owner():
    return Actor(id=OWNER_ID, role=UserRole.OWNER)


@pytest.fixture
def vendor():
    return Actor(id=VENDOR_ID, role=UserRole.VENDEDOR)


@pytest.fixture
def customer():
    return Actor(id=CLIENT_USER_ID, role=UserRole.CLIENTE)


@pytest.fixture
def packer():
    return Actor(id=PACKER_ID, role=UserRole.EMPACADOR)


def auth_headers(actor: Actor) -> dict:
    token = AuthService.create_access_token({"user_id": actor.id, "role": actor.role.value})
    return {"Authorization": f"Bearer {token}"}


# ===== DATOS =====

@pytest.fixture
def make_product(db):
    def _make(name="Producto", price="10.00", stock=100, active=True):
        product = Product(name=name, price=Decimal(price), stock=stock, active=active)
        db.add(product)
        db.commit()
        return product
    return _make


@pytest.fixture
def shop_client(db):
    """Cliente de la cartera de VENDOR_ID con usuario CLIENT_USER_ID"""
    client = Client(name="Ferretería Central", vendor_id=VENDOR_ID, user_id=CLIENT_USER_ID, active=True)
    db.add(client)
    db.commit()
    return client


@pytest.fixture
def other_client(db):
    client = Client(name="Bodega Norte", vendor_id=OTHER_VENDOR_ID, active=True)
    db.add(client)
    db.commit()
    return client


@pytest.fixture
def place_order(db, admin):
    """Crear pedido vía servicio y devolver la vista de respuesta"""
    def _place(client, lines, actor=None):
        request = OrderCreate(
            client_id=client.id,
            items=[OrderLineCreate(product_id=p.id, quantity=q) for p, q in lines]
        )
        return OrdersService(db).create_order(request, actor or admin).order
    return _place
