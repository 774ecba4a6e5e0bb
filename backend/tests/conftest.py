"""
Pytest fixtures for shopfront backend tests.

Provides an in-memory database, a test client, record factories and
ready-made bearer headers for staff with different roles and for a
storefront user.
"""

from decimal import Decimal

import pytest

from shopfront import create_app
from shopfront.context import ServiceContext, Token, ACTOR_STAFF, ACTOR_USER
from shopfront.extensions import db
from shopfront.logging_setup import ContextLogger
from shopfront.models import Category, Product, Role, Staff, User
from shopfront.permissions import Permission, PERMISSION_GROUPS
from shopfront.services import token_service
from shopfront.services.auth_service import hash_password
from shopfront.time_utils import utcnow

TEST_PASSWORD = "Password123"
TEST_BOT_TOKEN = "123456:TEST-BOT-TOKEN"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'APP_ENV': 'test',
        'JWT_SECRET': 'test-jwt-secret',
        'TELEGRAM_BOT_TOKEN': TEST_BOT_TOKEN,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Test client. Cookies are passed explicitly (see refresh_cookie_header)."""
    return app.test_client(use_cookies=False)


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        db.session.remove()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        db.session.remove()


# -- Factories --


@pytest.fixture
def make_role(db_session):
    def _make(name="role", permissions=()):
        role = Role(name=name, permissions=list(permissions))
        db_session.add(role)
        db_session.commit()
        return role
    return _make


@pytest.fixture
def make_staff(db_session):
    def _make(role, username="staff", fullname="Staff Member", password=TEST_PASSWORD):
        staff = Staff(
            fullname=fullname,
            username=username,
            password_hash=hash_password(password),
            role_id=role.id,
        )
        db_session.add(staff)
        db_session.commit()
        return staff
    return _make


@pytest.fixture
def make_user(db_session):
    def _make(fullname="Customer", telegram_id=None, phone=None, deleted=False):
        user = User(fullname=fullname, telegram_id=telegram_id, phone=phone, language="uz")
        if deleted:
            user.deleted_at = utcnow()
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture
def make_category(db_session):
    def _make(name="Category", parent=None):
        category = Category(name=name, parent_id=parent.id if parent else None)
        db_session.add(category)
        db_session.commit()
        return category
    return _make


@pytest.fixture
def make_product(db_session):
    def _make(category, name="Product", price="10.00", costprice="6.00", remaining=10):
        product = Product(
            name=name,
            price=Decimal(price),
            costprice=Decimal(costprice),
            category_id=category.id,
            remaining=remaining,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


# -- Principals and headers --


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def staff_headers(staff) -> dict:
    return bearer(token_service.issue_access_token(token_service.staff_claims(staff)))


def user_headers_for(user) -> dict:
    return bearer(token_service.issue_access_token(token_service.user_claims(user)))


def refresh_cookie_header(token: str) -> dict:
    return {"Cookie": f"auth={token}"}


def cookie_from_response(resp, name="auth"):
    """Value of a Set-Cookie header, or None ("" when the cookie is being cleared)."""
    for header in resp.headers.getlist("Set-Cookie"):
        key, _, rest = header.partition("=")
        if key == name:
            return rest.split(";", 1)[0]
    return None


@pytest.fixture
def root_role(make_role):
    return make_role("root", PERMISSION_GROUPS["ALL"])


@pytest.fixture
def cashier_role(make_role):
    return make_role(
        "cashier",
        PERMISSION_GROUPS["ORDERS_OWN"] + [Permission.PRODUCTS_LIST, Permission.PRODUCTS_READ, Permission.STAFF_READ_OWN, Permission.STAFF_UPDATE_OWN],
    )


@pytest.fixture
def admin(make_staff, root_role):
    return make_staff(root_role, username="admin", fullname="Admin")


@pytest.fixture
def cashier(make_staff, cashier_role):
    return make_staff(cashier_role, username="cashier", fullname="Cashier One")


@pytest.fixture
def other_cashier(make_staff, cashier_role):
    return make_staff(cashier_role, username="cashier2", fullname="Cashier Two")


@pytest.fixture
def admin_headers(admin):
    return staff_headers(admin)


@pytest.fixture
def cashier_headers(cashier):
    return staff_headers(cashier)


@pytest.fixture
def customer(make_user):
    return make_user(fullname="Alice Customer", telegram_id="1001")


@pytest.fixture
def user_headers(customer):
    return user_headers_for(customer)


# -- Service contexts --


def make_ctx(app, actor=None, permissions=()):
    return ServiceContext(
        session=db.session,
        logger=ContextLogger(app.logger),
        actor=actor,
        permissions=tuple(permissions),
    )


@pytest.fixture
def admin_ctx(app, admin):
    return make_ctx(app, Token(id=admin.id, type=ACTOR_STAFF, username=admin.username), PERMISSION_GROUPS["ALL"])


@pytest.fixture
def cashier_ctx(app, cashier, cashier_role):
    return make_ctx(app, Token(id=cashier.id, type=ACTOR_STAFF, username=cashier.username), cashier_role.permissions)


@pytest.fixture
def customer_ctx(app, customer):
    return make_ctx(app, Token(id=customer.id, type=ACTOR_USER))
