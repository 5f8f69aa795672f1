"""
Async script to seed the store from JSON files.
Creates every table, then loads users and products through the repositories
so the documents go through the same hooks and validation as live writes.

Usage:
    DATABASE_DSN=sqlite+aiosqlite:///./storefront.db python scripts/seed_catalogue.py data/
"""
import asyncio
import json
import sys
from pathlib import Path

from storefront.core import AsyncDBPool, RepositoryError, setup_logging
from storefront.main_config import database_config, settings
from storefront.models import Base, Product, User
from storefront.repository import InsertOne, ProductRepository, RepositoryFactory, UserRepository


def load_json_data(file_path: Path) -> list[dict]:
    """Load data from JSON file."""
    with open(file_path) as f:
        return json.load(f)


async def seed_users(json_file: Path) -> int:
    """Create users that do not exist yet (matched by e-mail)."""
    print(f"Loading users from {json_file}...")
    users = UserRepository(RepositoryFactory.for_model(User))

    seeded = 0
    for user_data in load_json_data(json_file):
        if await users.find_by_email(user_data["email"]):
            print(f"  Skipping {user_data['email']} (already exists)")
            continue
        await users.create(user_data)
        seeded += 1

    print(f"✓ Seeded {seeded} users")
    return seeded


async def seed_products(json_file: Path) -> int:
    """Insert every product in one bulk write."""
    print(f"Loading products from {json_file}...")
    products = ProductRepository(RepositoryFactory.for_model(Product))

    result = await products.bulk_write([InsertOne(product) for product in load_json_data(json_file)])

    print(f"✓ Seeded {result.inserted_count} products")
    return result.inserted_count


async def main(data_dir: Path) -> None:
    print("=" * 60)
    print(f"{settings.app_name} {settings.app_version} - Seed Data ({settings.env.value})")
    print("=" * 60)

    users_file = data_dir / "users.json"
    products_file = data_dir / "products.json"

    if settings.is_production:
        raise SystemExit("Refusing to seed a production store")

    setup_logging()
    await AsyncDBPool.init(database_config)
    await AsyncDBPool.create_all(Base.metadata)

    try:
        if users_file.exists():
            await seed_users(users_file)
        if products_file.exists():
            await seed_products(products_file)

        catalogue = RepositoryFactory.create_read_only(RepositoryFactory.for_model(Product))
        print("\nDatabase summary:")
        print(f"  Products: {await catalogue.count()}")
        print(f"  Active:   {await catalogue.count({'status': 'active'})}")

    except RepositoryError as e:
        print(f"\n✗ Error during seeding: {e}")
        raise

    finally:
        await AsyncDBPool.dispose()


if __name__ == "__main__":
    asyncio.run(main(Path(sys.argv[1] if len(sys.argv) > 1 else "data")))
