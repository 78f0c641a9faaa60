"""测试公共 Fixtures —— 内存 SQLite + 独立 TestClient"""

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from app.database import Base, get_db
from app.models.user import User
from app.models.genre import Genre
from app.models.book import Book
from app.models.order import Order, OrderItem  # noqa: F401
from app.utils.security import hash_password, create_access_token


# ──────────── 内存数据库引擎 ────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DB_URL, echo=False)
TestSessionLocal = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """每个测试前建表，测试后清表"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


async def _override_get_db():
    async with TestSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ──────────── FastAPI TestClient ────────────

@pytest_asyncio.fixture
async def client():
    from app.main import app

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ──────────── 测试用户 ────────────

async def _create_user(email: str, username: str) -> User:
    async with TestSessionLocal() as db:
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=hash_password("password123"),
            username=username,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user


@pytest_asyncio.fixture
async def test_user() -> User:
    return await _create_user("test@example.com", "测试用户")


@pytest_asyncio.fixture
async def other_user() -> User:
    return await _create_user("other@example.com", "另一个用户")


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    token = create_access_token(test_user.id, test_user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def other_headers(other_user: User) -> dict:
    token = create_access_token(other_user.id, other_user.email)
    return {"Authorization": f"Bearer {token}"}


# ──────────── 测试分类 + 图书 ────────────

@pytest_asyncio.fixture
async def test_genre() -> Genre:
    async with TestSessionLocal() as db:
        genre = Genre(id=str(uuid.uuid4()), name="科幻")
        db.add(genre)
        await db.commit()
        await db.refresh(genre)
        return genre


async def _create_book(genre: Genre, title: str, price: float, stock: int) -> Book:
    async with TestSessionLocal() as db:
        book = Book(
            id=str(uuid.uuid4()),
            title=title,
            writer="刘慈欣",
            publisher="重庆出版社",
            publication_year=2008,
            price=price,
            stock_quantity=stock,
            genre_id=genre.id,
        )
        db.add(book)
        await db.commit()
        await db.refresh(book)
        return book


@pytest_asyncio.fixture
async def test_book(test_genre: Genre) -> Book:
    """单价 10，库存 5"""
    return await _create_book(test_genre, "三体", 10, 5)


@pytest_asyncio.fixture
async def second_book(test_genre: Genre) -> Book:
    """单价 25.5，库存 3"""
    return await _create_book(test_genre, "球状闪电", 25.5, 3)
