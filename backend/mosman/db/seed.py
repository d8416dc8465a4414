#!/usr/bin/env python3
"""
Reference data seeding.

Creates the default pockets and donation/expense categories with fixed ids,
and optionally bootstraps the first admin profile for a user that already
exists at the identity provider. Safe to run repeatedly.

Usage:
    python -m mosman.db.seed
    python -m mosman.db.seed --admin-id <uuid> --admin-email a@b.c --admin-name "Admin"
"""
import argparse
import asyncio
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mosman.models.category import DonationCategory, ExpenseCategory
from mosman.models.pocket import Pocket
from mosman.models.user_profile import UserProfile, UserRole

logger = logging.getLogger(__name__)

DEFAULT_POCKETS = [
    ("11111111-1111-1111-1111-111111111111", "Kas Umum", "Kas untuk operasional dan kegiatan umum masjid"),
    ("22222222-2222-2222-2222-222222222222", "Kas Pembangunan", "Kas untuk pembangunan dan renovasi masjid"),
    ("33333333-3333-3333-3333-333333333333", "Kas Sawah", "Kas dari hasil pengelolaan sawah masjid"),
    ("44444444-4444-4444-4444-444444444444", "Kas Anggota", "Kas iuran dan kontribusi anggota masjid"),
]

DEFAULT_DONATION_CATEGORIES = [
    ("aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa", "Infaq Umum", "Sumbangan umum untuk operasional masjid"),
    ("bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb", "Zakat", "Zakat mal dan fitrah"),
    ("cccccccc-cccc-cccc-cccc-cccccccccccc", "Sedekah", "Sedekah sukarela"),
    ("dddddddd-dddd-dddd-dddd-dddddddddddd", "Wakaf", "Wakaf tunai atau barang"),
]

DEFAULT_EXPENSE_CATEGORIES = [
    ("eeeeeeee-eeee-eeee-eeee-eeeeeeeeeeee", "Operasional", "Biaya operasional harian masjid"),
    ("ffffffff-ffff-ffff-ffff-ffffffffffff", "Pemeliharaan Gedung", "Perbaikan dan pemeliharaan bangunan"),
    ("10101010-1010-1010-1010-101010101010", "Gaji Pegawai", "Gaji imam, marbot, dan pegawai masjid"),
    ("20202020-2020-2020-2020-202020202020", "Kegiatan Keagamaan", "Biaya kajian, pengajian, dan kegiatan islami"),
    ("30303030-3030-3030-3030-303030303030", "Utilitas", "Listrik, air, dan kebutuhan utilitas lainnya"),
]


async def _insert_missing(db: AsyncSession, model, rows: list[tuple[str, str, str]]) -> int:
    result = await db.execute(select(model.id).where(model.id.in_([row[0] for row in rows])))
    existing = set(result.scalars().all())

    created = 0
    for row_id, name, description in rows:
        if row_id in existing:
            continue
        db.add(model(id=row_id, name=name, description=description, is_active=True))
        created += 1
    return created


async def seed_reference_data(db: AsyncSession) -> dict[str, int]:
    """Insert default pockets and categories that are not there yet."""
    counts = {
        "pockets": await _insert_missing(db, Pocket, DEFAULT_POCKETS),
        "donation_categories": await _insert_missing(db, DonationCategory, DEFAULT_DONATION_CATEGORIES),
        "expense_categories": await _insert_missing(db, ExpenseCategory, DEFAULT_EXPENSE_CATEGORIES),
    }
    await db.flush()
    logger.info(f"Reference data seeded: {counts}")
    return counts


async def seed_admin_profile(
    db: AsyncSession,
    user_id: str,
    email: Optional[str],
    full_name: str,
) -> UserProfile:
    """Create (or promote) the profile of an identity-provider user as admin."""
    result = await db.execute(select(UserProfile).where(UserProfile.id == user_id))
    profile = result.scalar_one_or_none()

    if profile is None:
        profile = UserProfile(id=user_id, email=email, full_name=full_name)
        db.add(profile)

    profile.role = UserRole.ADMIN
    profile.is_active = True
    await db.flush()
    logger.info(f"Admin profile ready: id={user_id}")
    return profile


async def main(args: argparse.Namespace) -> None:
    from mosman.db.base import async_session_maker, init_db

    await init_db()
    async with async_session_maker() as session:
        counts = await seed_reference_data(session)
        print(f"Seeded: {counts}")
        if args.admin_id:
            await seed_admin_profile(session, args.admin_id, args.admin_email, args.admin_name)
            print(f"Admin profile ready for {args.admin_id}")
        await session.commit()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed pockets, categories and an admin profile.")
    parser.add_argument("--admin-id", help="Identity provider user id to make admin")
    parser.add_argument("--admin-email", default=None)
    parser.add_argument("--admin-name", default="Administrator")
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main(parser.parse_args()))
