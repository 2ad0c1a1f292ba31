"""建表，并可选写入一场演示考试。
使用方式（在项目根目录）：
  python scripts/init_db.py
  python scripts/init_db.py --demo        # 额外写入一场 4 题、30 分钟的演示考试
"""
import argparse
import asyncio
import os
import sys
import uuid

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _project_root)
os.chdir(_project_root)

# 加载 .env，与 uvicorn 启动时使用同一 DATABASE_URL
_env_file = os.path.join(_project_root, ".env")
if os.path.isfile(_env_file):
    with open(_env_file, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and "=" in line and not line.startswith("#"):
                k, _, v = line.partition("=")
                k, v = k.strip(), v.strip()
                if k and os.environ.get(k) is None:
                    os.environ[k] = v

from app.core.config import settings
from app.core.db import SessionLocal, engine
from app.models import Base
from app.repositories.exam_repository import add_question, create_exam

DEMO_QUESTIONS = [
    ("What is 2 + 2?", {"a": "4", "b": "3", "c": "5", "d": "22"}, "a", "2 + 2 = 4."),
    ("Which planet is known as the Red Planet?", {"a": "Venus", "b": "Mars", "c": "Jupiter", "d": "Mercury"}, "Mars", None),
    ("H2O is the chemical formula of?", {"a": "Salt", "b": "Oxygen", "c": "Water", "d": "Hydrogen"}, "c", "Two hydrogen atoms, one oxygen atom."),
    ("Capital of Bangladesh?", {"a": "Chittagong", "b": "Sylhet", "c": "Khulna", "d": "Dhaka"}, "d", None),
]


def _redact_url(url: str) -> str:
    """隐藏密码，便于日志核对连接的是哪个库。"""
    if "@" in url and "//" in url:
        pre, _, rest = url.partition("//")
        if "@" in rest:
            user_part, _, host_part = rest.rpartition("@")
            if ":" in user_part:
                user = user_part.split(":")[0]
                return f"{pre}//{user}:****@{host_part}"
    return url


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_demo_exam() -> str:
    exam_id = str(uuid.uuid4())
    async with SessionLocal() as db:
        await create_exam(db, exam_id=exam_id, title="Demo Exam", description="Four warm-up questions.", duration=30)
        for text, options, correct, solution in DEMO_QUESTIONS:
            await add_question(
                db,
                question_id=str(uuid.uuid4()),
                exam_id=exam_id,
                question_text=text,
                options=options,
                correct_answer=correct,
                solution=solution,
            )
        await db.commit()
    return exam_id


async def main(demo: bool) -> None:
    print(f"Using DB: {_redact_url(settings.database_url)}")
    await create_tables()
    print("Tables created (existing tables are left untouched).")
    if demo:
        exam_id = await seed_demo_exam()
        print(f"Demo exam created: {exam_id}")
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create tables and optionally seed a demo exam.")
    parser.add_argument("--demo", action="store_true", help="写入一场演示考试")
    args = parser.parse_args()
    asyncio.run(main(args.demo))
