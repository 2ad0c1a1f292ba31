import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.db import get_db, get_session_factory
from app.core.security import create_access_token, hash_password
from app.main import app
from app.models import Base
from app.repositories.exam_repository import add_question, create_exam
from app.repositories.user_repository import create_user
from app.services.session_registry import exam_sessions

DEFAULT_OPTIONS = {"a": "Alpha", "b": "Bravo", "c": "Charlie", "d": "Delta"}


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_exam(session_factory):
    """写入一场考试，markers 为每题的正确答案标记，返回 (exam_id, [question_id, ...])。"""

    async def _make(
        markers=("a", "b", "c", "d"),
        *,
        title="Sample Exam",
        duration=30,
        start_time=None,
        end_time=None,
        solutions=None,
        options=None,
    ):
        exam_id = str(uuid.uuid4())
        question_ids = []
        async with session_factory() as s:
            await create_exam(
                s,
                exam_id=exam_id,
                title=title,
                duration=duration,
                start_time=start_time,
                end_time=end_time,
            )
            for i, marker in enumerate(markers):
                qid = f"q{i + 1}-{exam_id[:8]}"
                await add_question(
                    s,
                    question_id=qid,
                    exam_id=exam_id,
                    question_text=f"Question {i + 1}",
                    options=DEFAULT_OPTIONS if options is None else options,
                    correct_answer=marker,
                    solution=(solutions[i] if solutions else f"Solution {i + 1}"),
                )
                question_ids.append(qid)
            await s.commit()
        return exam_id, question_ids

    return _make


@pytest.fixture
def make_user(session_factory):
    """创建学生账号，返回 (user, token)。"""

    async def _make(username="student"):
        async with session_factory() as s:
            user = await create_user(s, username=username, password_hash=hash_password("secret123"))
        return user, create_access_token(user.id)

    return _make


@pytest.fixture
async def client(session_factory):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
    exam_sessions.clear()
