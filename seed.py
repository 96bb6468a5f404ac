import argparse
import asyncio
import os
import sys

# 添加项目根目录到 python path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from app.database import AsyncSessionLocal, init_db
from app.seed import SEED_PASSWORD, seed_database


async def run_seed(skip_init: bool):
    if not skip_init:
        print("正在初始化数据库...")
        await init_db()

    async with AsyncSessionLocal() as session:
        seeded = await seed_database(session)

    if seeded:
        print(f"初始数据填充完成，演示用户密码: {SEED_PASSWORD}")
    else:
        print("数据库中已有数据，跳过填充。")


def main():
    parser = argparse.ArgumentParser(description="Seed the database with initial data")
    parser.add_argument(
        "--skip-init",
        action="store_true",
        help="不执行建表与迁移，直接填充",
    )
    args = parser.parse_args()

    try:
        asyncio.run(run_seed(args.skip_init))
    except KeyboardInterrupt:
        print("\n操作已取消")


if __name__ == "__main__":
    main()
